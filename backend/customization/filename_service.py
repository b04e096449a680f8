"""
Filenames of pre-rendered variant images.

A variant image is stored as `<type>-<chain>-<stones>-<metal>-<extras>.webp`
where every segment is the option's `filename_slug` (or its raw option id
when no slug is mapped). Mappings are read from the database per jewelry
type and cached with a TTL.
"""
import logging
import time
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.core.cache import cache

from backend.core.cache_utils import FILENAME_MAPPING_CACHE_TTL

logger = logging.getLogger(__name__)

CHAIN_SETTING = 'chain_type'
FIRST_STONE_SETTING = 'first_stone'
SECOND_STONE_SETTING = 'second_stone'
METAL_SETTING = 'metal'
STANDARD_SETTINGS = (CHAIN_SETTING, FIRST_STONE_SETTING, SECOND_STONE_SETTING, METAL_SETTING)

TWO_WORD_STONES = ('blue_sapphire', 'pink_sapphire', 'yellow_sapphire')
SINGLE_WORD_STONES = ('ruby', 'emerald', 'diamond', 'sapphire')

FILENAME_EXTENSION = '.webp'


@dataclass(frozen=True)
class FilenameMapping:
    option_id: str
    filename_slug: str
    setting_id: str


def _option_pairs(variant_options) -> List[Tuple[str, str]]:
    """Accept VariantOption objects, dicts or (setting_id, option_id) pairs"""
    pairs = []
    for option in variant_options:
        if isinstance(option, dict):
            pairs.append((option['setting_id'], option['option_id']))
        elif isinstance(option, (tuple, list)):
            pairs.append((option[0], option[1]))
        else:
            pairs.append((option.setting_id, option.option_id))
    return pairs


def extract_stone(stone_id: str) -> str:
    """
    Strip a contextual prefix from a stone option id.

    `necklace_diamond` -> `diamond`, `bracelet_blue_sapphire` -> `blue_sapphire`.
    Ids that do not end with a known stone are returned unchanged.
    """
    if not stone_id or '_' not in stone_id:
        return stone_id

    parts = stone_id.split('_')
    two_word = '_'.join(parts[-2:])
    if two_word in TWO_WORD_STONES:
        return two_word
    if parts[-1] in SINGLE_WORD_STONES:
        return parts[-1]
    return stone_id


def select_stone_options(first_stone: Optional[str], second_stone: Optional[str]) -> List[str]:
    """
    Stones that appear in the filename.

    A non-diamond first stone paired with a second stone shows both;
    otherwise the second stone alone, else the first stone alone.
    """
    if first_stone and second_stone and extract_stone(first_stone) != 'diamond':
        return [first_stone, second_stone]
    if second_stone:
        return [second_stone]
    if first_stone:
        return [first_stone]
    return []


def build_filename(jewelry_type: str, variant_options, slug_map: Dict[str, str]) -> str:
    """Build a variant filename from (setting_id, option_id) pairs and a slug map"""
    pairs = _option_pairs(variant_options)
    by_setting = {}
    for setting_id, option_id in pairs:
        by_setting.setdefault(setting_id, option_id)

    def slug(option_id):
        return slug_map.get(option_id) or option_id

    parts = [jewelry_type]
    if by_setting.get(CHAIN_SETTING):
        parts.append(slug(by_setting[CHAIN_SETTING]))

    stones = select_stone_options(by_setting.get(FIRST_STONE_SETTING), by_setting.get(SECOND_STONE_SETTING))
    parts.extend(slug(stone) for stone in stones)

    if by_setting.get(METAL_SETTING):
        parts.append(slug(by_setting[METAL_SETTING]))

    for setting_id, option_id in pairs:
        if setting_id not in STANDARD_SETTINGS:
            parts.append(slug(option_id))

    return '-'.join(parts) + FILENAME_EXTENSION


class FilenameMappingCache:
    """
    TTL cache of filename mappings keyed by jewelry type.

    Backed by the Django cache so every worker shares it. The clock is
    injectable; expiry is checked against it rather than left to the
    backend so tests can advance time.
    """
    KEY_PREFIX = 'filename_mappings'

    def __init__(self, ttl=None, backend=None, clock=None):
        self.ttl = ttl if ttl is not None else getattr(settings, 'FILENAME_MAPPING_CACHE_TTL', FILENAME_MAPPING_CACHE_TTL)
        self.backend = backend if backend is not None else cache
        self.clock = clock or time.time

    def _key(self, jewelry_type):
        return f"{self.KEY_PREFIX}:{jewelry_type}"

    @property
    def _index_key(self):
        return f"{self.KEY_PREFIX}:__types__"

    def get(self, jewelry_type) -> Optional[List[FilenameMapping]]:
        entry = self.backend.get(self._key(jewelry_type))
        if not entry:
            return None
        if self.clock() >= entry['expires_at']:
            self.backend.delete(self._key(jewelry_type))
            return None
        return [FilenameMapping(**mapping) for mapping in entry['mappings']]

    def set(self, jewelry_type, mappings: List[FilenameMapping]):
        entry = {
            'expires_at': self.clock() + self.ttl,
            'mappings': [asdict(mapping) for mapping in mappings],
        }
        self.backend.set(self._key(jewelry_type), entry, self.ttl)

        cached_types = set(self.backend.get(self._index_key) or [])
        cached_types.add(jewelry_type)
        self.backend.set(self._index_key, sorted(cached_types), None)

    def clear(self, jewelry_type=None):
        if jewelry_type:
            self.backend.delete(self._key(jewelry_type))
            return

        cached_types = self.backend.get(self._index_key) or []
        for cached_type in cached_types:
            self.backend.delete(self._key(cached_type))
        self.backend.delete(self._index_key)


def load_filename_mappings(jewelry_type) -> List[FilenameMapping]:
    """Read mappings from the database: image-affecting options with a slug"""
    from .models import CustomizationOption

    rows = CustomizationOption.objects.filter(
        jewelry_item__type=jewelry_type,
        jewelry_item__is_active=True,
        is_active=True,
        affects_image_variant=True,
        filename_slug__isnull=False,
    ).exclude(filename_slug='').values('option_id', 'filename_slug', 'setting_id')

    return [FilenameMapping(**row) for row in rows]


class DynamicFilenameService:
    def __init__(self, mapping_cache=None, loader=None):
        self.cache = mapping_cache or FilenameMappingCache()
        self.loader = loader or load_filename_mappings

    def get_filename_mappings(self, jewelry_type) -> List[FilenameMapping]:
        """
        Mappings for one jewelry type, served from cache when fresh.

        A failed database read is logged and yields an empty list, which is
        not cached.
        """
        cached = self.cache.get(jewelry_type)
        if cached is not None:
            return cached

        try:
            mappings = self.loader(jewelry_type)
        except Exception as e:
            logger.error(f"Error loading filename mappings for {jewelry_type}: {str(e)}", exc_info=True)
            return []

        self.cache.set(jewelry_type, mappings)
        logger.info(f"Loaded {len(mappings)} filename mappings for {jewelry_type}")
        return mappings

    def get_slug_map(self, jewelry_type) -> Dict[str, str]:
        return {mapping.option_id: mapping.filename_slug for mapping in self.get_filename_mappings(jewelry_type)}

    def get_filename_slug(self, jewelry_type, option_id) -> str:
        return self.get_slug_map(jewelry_type).get(option_id) or option_id

    def generate_dynamic_filename(self, jewelry_type, variant_options) -> str:
        filename = build_filename(jewelry_type, variant_options, self.get_slug_map(jewelry_type))
        logger.debug(f"Generated filename for {jewelry_type}: {filename}")
        return filename

    def clear_cache(self, jewelry_type=None):
        self.cache.clear(jewelry_type)
        if jewelry_type:
            logger.info(f"Cleared filename mapping cache for {jewelry_type}")
        else:
            logger.info("Cleared all filename mapping caches")

    def refresh_after_db_change(self, jewelry_type) -> List[FilenameMapping]:
        """Drop the cached mappings of a type and load them again"""
        self.clear_cache(jewelry_type)
        mappings = self.get_filename_mappings(jewelry_type)
        logger.info(f"Refreshed filename mappings for {jewelry_type}")
        return mappings

    def validate_variant_mappings(self, jewelry_type, variant_options: Iterable) -> Tuple[bool, List[str]]:
        """Return (is_valid, missing option ids) for options lacking a mapping"""
        slug_map = self.get_slug_map(jewelry_type)
        missing = [option_id for _, option_id in _option_pairs(variant_options) if option_id not in slug_map]
        return not missing, missing


_default_service = None


def get_filename_service() -> DynamicFilenameService:
    global _default_service
    if _default_service is None:
        _default_service = DynamicFilenameService()
    return _default_service
