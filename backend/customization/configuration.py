"""
Storefront configuration of customizable items and their pricing
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from backend.catalog.models import JewelryItem
from backend.core.cache_utils import cache_item_configuration, get_cached_item_configuration
from .models import CustomizationOption as CustomizationOptionRow
from .types import CustomizationOption, CustomizationSetting

logger = logging.getLogger(__name__)

NATURAL = 'natural'
LAB_GROWN = 'lab_grown'
DIAMOND_TYPE_KEY = 'diamond_type'
BLACK_ONYX = 'black_onyx'


def build_settings(option_rows) -> List[CustomizationSetting]:
    """
    Group option rows into settings.

    Settings are ordered by `setting_display_order` and options by
    `display_order`; setting metadata is taken from the first row seen.
    """
    grouped = {}
    for row in option_rows:
        entry = grouped.get(row.setting_id)
        if entry is None:
            entry = grouped[row.setting_id] = {'row': row, 'options': []}
        entry['options'].append(CustomizationOption(
            option_id=row.option_id,
            option_name=row.option_name,
            price=row.price if row.price is not None else Decimal('0'),
            price_lab_grown=row.price_lab_grown,
            image_url=row.image_url or None,
            color_gradient=row.color_gradient or None,
            display_order=row.display_order,
            is_active=row.is_active,
        ))

    settings = []
    for setting_id, entry in grouped.items():
        first = entry['row']
        settings.append(CustomizationSetting(
            id=setting_id,
            title=first.setting_title,
            required=first.required if first.required is not None else True,
            options=tuple(sorted(entry['options'], key=lambda option: option.display_order)),
            affects_image_variant=first.affects_image_variant,
            display_order=first.setting_display_order,
        ))
    settings.sort(key=lambda setting: setting.display_order)
    return settings


def get_active_option_rows(product_id):
    return CustomizationOptionRow.objects.filter(
        jewelry_item_id=product_id,
        is_active=True
    ).order_by('setting_display_order', 'display_order', 'id')


def load_item_settings(product_id) -> List[CustomizationSetting]:
    return build_settings(get_active_option_rows(product_id))


def serialize_item(item: JewelryItem, settings: List[CustomizationSetting]):
    def money(value):
        return str(value) if value is not None else None

    return {
        'id': item.id,
        'name': item.name,
        'slug': item.slug,
        'type': item.type,
        'description': item.description,
        'base_image': item.base_image_url or '',
        'base_price': money(item.base_price),
        'base_price_lab_grown': money(item.base_price_lab_grown),
        'black_onyx_base_price': money(item.black_onyx_base_price),
        'black_onyx_base_price_lab_grown': money(item.black_onyx_base_price_lab_grown),
        'settings': [setting.to_dict() for setting in settings],
    }


def get_item_configuration(slug) -> Optional[Dict]:
    """Storefront configuration of an active customizable item, or None"""
    cached_data, cache_key = get_cached_item_configuration(slug)
    if cached_data is not None:
        return cached_data

    item = JewelryItem.objects.filter(slug=slug, is_active=True, product_type='customizable').first()
    if item is None:
        logger.info(f"No active customizable jewelry item with slug '{slug}'")
        return None

    data = serialize_item(item, load_item_settings(item.id))
    cache_item_configuration(cache_key, data)
    return data


def _base_price(item, state, diamond_type):
    lab_grown = diamond_type == LAB_GROWN

    if state.get('first_stone') == BLACK_ONYX and item.black_onyx_base_price is not None:
        if lab_grown and item.black_onyx_base_price_lab_grown is not None:
            return item.black_onyx_base_price_lab_grown
        return item.black_onyx_base_price

    if lab_grown and item.base_price_lab_grown:
        return item.base_price_lab_grown
    return item.base_price or Decimal('0')


def calculate_total_price(item, settings, state, diamond_type=NATURAL, price_multipliers=None) -> Decimal:
    """
    Base price plus the price of every selected option.

    `settings` should be the rule-filtered settings: a selection whose
    option is no longer offered is not charged. Each option price is
    scaled by the multiplier a rule set on its setting.
    """
    price_multipliers = price_multipliers or {}
    total = Decimal(_base_price(item, state, diamond_type))

    for setting in settings:
        selected = state.get(setting.id)
        if not selected or not isinstance(selected, str):
            continue
        option = setting.get_option(selected)
        if option is None:
            continue

        if diamond_type == LAB_GROWN and option.price_lab_grown is not None:
            option_price = option.price_lab_grown
        else:
            option_price = option.price or Decimal('0')
        total += Decimal(option_price) * price_multipliers.get(setting.id, Decimal('1'))

    return total.quantize(Decimal('0.01'))
