"""
Caching utilities shared by the storefront apps
Uses the default Django cache (Redis in production)
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
ITEM_CONFIGURATION_CACHE_TTL = 120  # 2 minutes
FILENAME_MAPPING_CACHE_TTL = 300  # 5 minutes
SITE_STYLE_CACHE_TTL = 60  # 1 minute

ITEM_CONFIGURATION_PREFIX = "item_configuration"
SITE_STYLE_CACHE_KEY = "site_style"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    # Convert args and kwargs to a stable string representation
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Note: This requires Redis with SCAN command support
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def get_cached_item_configuration(slug):
    """
    Get a cached storefront configuration for a jewelry item
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(ITEM_CONFIGURATION_PREFIX, slug)
    return cache.get(cache_key), cache_key


def cache_item_configuration(cache_key, data, ttl=ITEM_CONFIGURATION_CACHE_TTL):
    """Cache a storefront configuration"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached item configuration: {cache_key}")


def invalidate_item_configuration(slug=None):
    """Invalidate one item configuration, or all of them"""
    if slug:
        cache.delete(make_cache_key(ITEM_CONFIGURATION_PREFIX, slug))
        logger.debug(f"Invalidated item configuration cache for {slug}")
    else:
        invalidate_cache_pattern(ITEM_CONFIGURATION_PREFIX)
