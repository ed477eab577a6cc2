"""Runtime caches: per-type entity caches and the two-phase registry."""

from entitycache.cache.entity_cache import EntityCache
from entitycache.cache.registry import EntityCacheRegistry

__all__ = [
    "EntityCache",
    "EntityCacheRegistry",
]
