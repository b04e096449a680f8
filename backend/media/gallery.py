"""
Multi-image galleries of variant pictures.

A gallery is keyed by the variant filename without its extension and
combines pictures uploaded for that variant with shared media linked to it.
"""
import os
import logging
from django.db import transaction
from django.db.models import Max
from .models import VariantImage, SharedMedia, VariantSharedMedia

logger = logging.getLogger(__name__)

# Shared pictures always come after the variant's own pictures
SHARED_ORDER_OFFSET = 1000


def variant_key_for(filename):
    return os.path.splitext(filename)[0]


def get_variant_images(variant_key):
    """Return (direct images, [(shared media, display order)]) for a variant"""
    direct_images = list(VariantImage.objects.filter(variant_key=variant_key).order_by('display_order', 'id'))
    links = VariantSharedMedia.objects.filter(variant_key=variant_key).select_related('shared_media').order_by(
        'display_order', 'id'
    )
    shared_images = [(link.shared_media, link.display_order) for link in links]
    return direct_images, shared_images


def get_variant_images_by_filename(filename):
    """
    Urls of the gallery of a variant: primary first, then by display order.
    An empty list means the caller should fall back to the single variant picture.
    """
    direct_images, shared_images = get_variant_images(variant_key_for(filename))

    entries = [(not image.is_primary, image.display_order, image.image_url) for image in direct_images]
    entries.extend((True, order + SHARED_ORDER_OFFSET, media.image_url) for media, order in shared_images)
    entries.sort(key=lambda entry: (entry[0], entry[1]))
    return [url for _, _, url in entries]


@transaction.atomic
def add_variant_image(variant_key, image_url, is_primary=False):
    """Append a picture to a variant's gallery; a new primary demotes the old one"""
    current_max = VariantImage.objects.filter(variant_key=variant_key).aggregate(max_order=Max('display_order'))
    next_order = (current_max['max_order'] if current_max['max_order'] is not None else -1) + 1

    if is_primary:
        VariantImage.objects.filter(variant_key=variant_key, is_primary=True).update(is_primary=False)

    image = VariantImage.objects.create(
        variant_key=variant_key,
        image_url=image_url,
        display_order=next_order,
        is_primary=is_primary
    )
    logger.info(f"Added image {image.id} to gallery {variant_key} at position {next_order}")
    return image


@transaction.atomic
def reorder_variant_images(variant_key, image_ids):
    """Set display order to the position of each id in `image_ids`"""
    images = {image.id: image for image in VariantImage.objects.filter(variant_key=variant_key, id__in=image_ids)}
    missing = [image_id for image_id in image_ids if image_id not in images]
    if missing:
        raise VariantImage.DoesNotExist(f"Images {missing} are not in gallery {variant_key}")

    for index, image_id in enumerate(image_ids):
        image = images[image_id]
        if image.display_order != index:
            image.display_order = index
            image.save(update_fields=['display_order', 'updated_at'])


def link_shared_media(variant_key, shared_media: SharedMedia, display_order=None):
    if display_order is None:
        current_max = VariantSharedMedia.objects.filter(variant_key=variant_key).aggregate(
            max_order=Max('display_order')
        )
        display_order = (current_max['max_order'] if current_max['max_order'] is not None else -1) + 1

    link, created = VariantSharedMedia.objects.update_or_create(
        variant_key=variant_key,
        shared_media=shared_media,
        defaults={'display_order': display_order}
    )
    if created:
        logger.info(f"Linked shared media {shared_media.id} to gallery {variant_key}")
    return link
