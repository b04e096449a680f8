"""
Evaluate one shopper selection of a customizable item.

Runs the item's rules through a CustomizationSession and derives what the
storefront and checkout need from the settled state: total price, variant
filename and the pre-rendered picture when one is uploaded.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .configuration import DIAMOND_TYPE_KEY, NATURAL, load_item_settings
from .filename_service import get_filename_service
from .rules_engine import LogicRulesEngine
from .session import STOREFRONT_DEFAULTS, CustomizationSession, clear_unavailable_selections, default_selections
from .variant_generator import resolve_variant_image

logger = logging.getLogger(__name__)


@dataclass
class SelectionEvaluation:
    item: object
    session: CustomizationSession
    total_price: Decimal
    variant_filename: Optional[str]
    image_url: Optional[str]

    @property
    def selections(self):
        """Settled state without the diamond type marker"""
        return {key: value for key, value in self.session.state.items() if key != DIAMOND_TYPE_KEY}

    def missing_required(self) -> List[str]:
        """Titles of required settings the shopper left empty"""
        return [
            setting.title for setting in self.session.result.filtered_settings
            if setting.required and not self.session.state.get(setting.id)
        ]

    def summary(self) -> str:
        """'Chain Type: Black Leather, Metal: White Gold' in setting order"""
        parts = []
        for setting in self.session.result.filtered_settings:
            value = self.session.state.get(setting.id)
            if not value:
                continue
            option = setting.get_option(value) if isinstance(value, str) else None
            parts.append(f"{setting.title}: {option.option_name if option else value}")
        return ', '.join(parts)

    def to_dict(self):
        data = self.session.result.to_dict()
        data.update({
            'state': self.session.state,
            'diamond_type': self.session.diamond_type,
            'consumed_proposals': self.session.consumed_proposals,
            'total_price': str(self.total_price),
            'variant_filename': self.variant_filename,
            'image_url': self.image_url,
        })
        return data


def evaluate_selection(item, state=None, diamond_type=NATURAL, apply_defaults=True, consumed_proposals=None):
    state = {key: value for key, value in (state or {}).items() if value != ''}
    state[DIAMOND_TYPE_KEY] = diamond_type

    hooks = [clear_unavailable_selections]
    if apply_defaults:
        hooks.append(default_selections(STOREFRONT_DEFAULTS))

    engine = LogicRulesEngine.create(item.id)
    session = CustomizationSession(
        engine, load_item_settings(item.id), state=state, hooks=hooks,
        consumed_proposals=consumed_proposals
    )

    variant_options = session.image_variant_options()
    variant_filename = None
    if variant_options:
        variant_filename = get_filename_service().generate_dynamic_filename(item.type, variant_options)
        session.resolve_variant_image(lambda options: resolve_variant_image(item.type, options))

    return SelectionEvaluation(
        item=item,
        session=session,
        total_price=session.total_price(item),
        variant_filename=variant_filename,
        image_url=session.image_url or item.base_image_url or None,
    )
