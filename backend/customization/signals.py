"""
Cache invalidation signals
Drop cached filename mappings and item configurations when options or rules change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete, pre_save
from django.dispatch import receiver
import logging

from backend.catalog.models import JewelryItem
from backend.core.cache_utils import invalidate_item_configuration
from .filename_service import get_filename_service
from .models import CustomizationOption, CustomizationLogicRule

logger = logging.getLogger(__name__)


def _item_for(instance):
    try:
        return instance.jewelry_item
    except JewelryItem.DoesNotExist:
        return None


@receiver([post_save, post_delete], sender=CustomizationOption)
def invalidate_option_caches(sender, instance, **kwargs):
    """Invalidate filename mappings of the item's type and its storefront configuration"""
    item = _item_for(instance)
    if item is None:
        return
    jewelry_type, slug = item.type, item.slug

    # After commit, so the cache is not refilled from the old rows
    def invalidate_after_commit():
        get_filename_service().clear_cache(jewelry_type)
        invalidate_item_configuration(slug)

    transaction.on_commit(invalidate_after_commit)


@receiver(pre_save, sender=JewelryItem)
def remember_item_cache_keys(sender, instance, **kwargs):
    """Keep the stored type and slug so a rename also clears the old entries"""
    instance._cached_type_slug = None
    if instance.pk is None:
        return
    previous = JewelryItem.objects.filter(pk=instance.pk).values_list('type', 'slug').first()
    if previous is not None:
        instance._cached_type_slug = previous


@receiver([post_save, post_delete], sender=JewelryItem)
def invalidate_item_caches(sender, instance, **kwargs):
    """An item's type, slug or active flag changes which mappings apply"""
    jewelry_types = {instance.type}
    slugs = {instance.slug}
    previous = getattr(instance, '_cached_type_slug', None)
    if previous is not None:
        jewelry_types.add(previous[0])
        slugs.add(previous[1])

    def invalidate_after_commit():
        service = get_filename_service()
        for jewelry_type in jewelry_types:
            service.clear_cache(jewelry_type)
        for slug in slugs:
            invalidate_item_configuration(slug)

    transaction.on_commit(invalidate_after_commit)


@receiver([post_save, post_delete], sender=CustomizationLogicRule)
def log_rule_change(sender, instance, **kwargs):
    if 'created' not in kwargs:
        action = 'deleted'
    else:
        action = 'created' if kwargs['created'] else 'updated'
    logger.info(f"Logic rule '{instance.rule_name}' {action} for product {instance.jewelry_item_id}")
