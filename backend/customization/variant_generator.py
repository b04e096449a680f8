"""
Enumerate the image variants of a customizable product.

Every combination of image-affecting options that the product's logic
rules allow becomes one variant, named by the filename its pre-rendered
picture is expected under in the `customization-item` bucket.
"""
import itertools
import logging
import os
from typing import Dict, List, Optional

from django.db import DatabaseError

from backend.media.storage import CUSTOMIZATION_ITEM, StorageError, get_storage
from .configuration import build_settings, get_active_option_rows
from .filename_service import get_filename_service
from .rules_engine import LogicRulesEngine
from .types import ProductVariant, VariantGenerationResult, VariantOption

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.webp', '.PNG', '.png')
DEDUPLICATED_TYPES = ('necklace', 'bracelet')


class VariantGenerationError(Exception):
    """Raised when the options of a product cannot be loaded"""


def get_storage_base_url(product_type) -> str:
    return f"{product_type}s/"


def generate_upload_path(product_type, filename) -> str:
    return f"{product_type}s/{filename}"


def variant_id_for(product_id, options: List[VariantOption]) -> str:
    return f"{product_id}_{'-'.join(sorted(option.option_id for option in options))}"


def variant_name_for(options: List[VariantOption]) -> str:
    return ' + '.join(option.option_name for option in options)


def find_existing_file(filename, existing_files) -> Optional[str]:
    """First of `<base>.webp`, `<base>.PNG`, `<base>.png` present in `existing_files`"""
    base, _ = os.path.splitext(filename)
    for extension in IMAGE_EXTENSIONS:
        candidate = base + extension
        if candidate in existing_files:
            return candidate
    return None


class VariantGenerator:
    def __init__(self, storage=None, filename_service=None, engine_factory=None):
        self.storage = storage
        self.filename_service = filename_service
        self.engine_factory = engine_factory or LogicRulesEngine.create

    def _storage(self):
        return self.storage or get_storage()

    def _filename_service(self):
        return self.filename_service or get_filename_service()

    def generate_variants_for_product(self, product_id, product_type) -> VariantGenerationResult:
        try:
            option_rows = list(get_active_option_rows(product_id))
        except DatabaseError as e:
            logger.error(f"Error fetching customization options for product {product_id}: {str(e)}")
            raise VariantGenerationError(f"Database error: {str(e)}") from e

        if not option_rows:
            logger.info(f"No customization options found for product {product_id}")
            return VariantGenerationResult()

        engine = self.engine_factory(product_id)
        all_settings = build_settings(option_rows)

        groups = self.group_image_options(option_rows)
        combinations = self.generate_combinations(groups)
        valid_combinations = self.filter_with_rules(combinations, engine, all_settings)
        logger.info(
            f"Product {product_id}: {len(valid_combinations)} valid variants "
            f"({len(combinations) - len(valid_combinations)} excluded by rules)"
        )

        filename_service = self._filename_service()
        variants = []
        seen_filenames = set()
        for combination in valid_combinations:
            filename = filename_service.generate_dynamic_filename(product_type, combination)
            if product_type in DEDUPLICATED_TYPES:
                if filename in seen_filenames:
                    logger.debug(f"Skipping duplicate {product_type} variant: {filename}")
                    continue
                seen_filenames.add(filename)

            variants.append(ProductVariant(
                id=variant_id_for(product_id, combination),
                name=variant_name_for(combination),
                filename=filename,
                options=list(combination),
            ))

        self.check_image_existence(product_type, variants)
        return VariantGenerationResult(variants=variants)

    @staticmethod
    def group_image_options(option_rows) -> List[List[VariantOption]]:
        """Options grouped by setting in row order, skipping settings that do not change the photo"""
        groups: Dict[str, List[VariantOption]] = {}
        for row in option_rows:
            if not row.affects_image_variant:
                continue
            groups.setdefault(row.setting_id, []).append(VariantOption(
                setting_id=row.setting_id,
                setting_title=row.setting_title,
                option_id=row.option_id,
                option_name=row.option_name,
            ))
        return list(groups.values())

    @staticmethod
    def generate_combinations(groups) -> List[List[VariantOption]]:
        """Cartesian product; the first group varies slowest"""
        if not groups:
            return []
        return [list(combination) for combination in itertools.product(*groups)]

    @staticmethod
    def filter_with_rules(combinations, engine, all_settings) -> List[List[VariantOption]]:
        valid = []
        for combination in combinations:
            state = {option.setting_id: option.option_id for option in combination}
            try:
                result = engine.apply_rules(all_settings, state)
                if all(result.is_option_available(option.setting_id, option.option_id) for option in combination):
                    valid.append(combination)
                else:
                    logger.debug(f"Excluded variant {variant_name_for(combination)} (violates rules)")
            except Exception as e:
                # Keep the combination; a broken rule must not hide products
                logger.error(f"Error validating variant {variant_name_for(combination)}: {str(e)}", exc_info=True)
                valid.append(combination)
        return valid

    def check_image_existence(self, product_type, variants: List[ProductVariant]):
        """
        List the product type's folder once and mark the variants whose
        picture is present. A listing failure leaves every variant missing.
        """
        if not variants:
            return

        storage = self._storage()
        folder = get_storage_base_url(product_type).rstrip('/')
        try:
            existing_files = set(storage.list_files(CUSTOMIZATION_ITEM, folder))
        except StorageError as e:
            logger.error(f"Error listing storage files in {folder}: {str(e)}")
            return

        found = 0
        for variant in variants:
            actual_filename = find_existing_file(variant.filename, existing_files)
            if actual_filename is None:
                continue
            variant.filename = actual_filename
            variant.image_url = storage.get_public_url(
                CUSTOMIZATION_ITEM, generate_upload_path(product_type, actual_filename)
            )
            variant.exists = True
            found += 1

        logger.info(f"Found {found} existing images out of {len(variants)} {product_type} variants")


def resolve_variant_image(product_type, variant_options, storage=None, filename_service=None) -> Optional[str]:
    """Public url of the picture for one selection, or None when it is not uploaded"""
    storage = storage or get_storage()
    filename_service = filename_service or get_filename_service()

    filename = filename_service.generate_dynamic_filename(product_type, variant_options)
    try:
        existing_files = set(storage.list_files(CUSTOMIZATION_ITEM, get_storage_base_url(product_type)))
    except StorageError as e:
        logger.warning(f"Could not resolve variant image {filename}: {str(e)}")
        return None

    actual_filename = find_existing_file(filename, existing_files)
    if actual_filename is None:
        return None
    return storage.get_public_url(CUSTOMIZATION_ITEM, generate_upload_path(product_type, actual_filename))
