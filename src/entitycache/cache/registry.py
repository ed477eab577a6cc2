"""Two-phase registry of entity caches.

During startup every entity type gets a cache (``create``) and consumers claim
the ones they use (``bind``). ``finalize`` then releases every unclaimed cache
and freezes the registry. Looking up a released type fails with
``EntityCacheReleasedError``, which is distinct from the ``UnknownEntityError``
raised for types that were never entities.

Usage:
    registry = EntityCacheRegistry()
    registry.create(definition, collection)
    players = registry.bind(Player)
    released = registry.finalize()
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from loguru import logger

from entitycache.cache.entity_cache import EntityCache
from entitycache.core.entity.models import EntityDefinition
from entitycache.core.errors import (
    EntityCacheError,
    EntityCacheReleasedError,
    RegistryFinalizedError,
    UnknownEntityError,
)
from entitycache.storage.protocol import DocumentCollection


class EntityCacheRegistry:
    """Maps entity types to their caches across the bind and finalize phases."""

    def __init__(self) -> None:
        self._caches: Mapping[type, EntityCache] = {}
        self._consumed: set[type] = set()
        self._released: set[type] = set()
        self._finalized = False

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def create(self, definition: EntityDefinition, collection: DocumentCollection) -> EntityCache:
        """Register a new, unbound cache for an entity type.

        Args:
            definition: Metadata of the entity type.
            collection: Collection backing the cache.

        Returns:
            The created cache.

        Raises:
            RegistryFinalizedError: If the registry was already finalized.
            EntityCacheError: If the type already has a cache.
        """
        if self._finalized:
            raise RegistryFinalizedError(
                f"Cannot create a cache for [{definition.name}]: registry is finalized"
            )
        entity_type = definition.entity_type
        if entity_type in self._caches:
            raise EntityCacheError(f"Entity [{definition.name}] already has a cache")
        cache = EntityCache(definition, collection)
        self._caches[entity_type] = cache  # type: ignore[index]
        return cache

    def bind(self, entity_type: type) -> EntityCache:
        """Claim the cache of an entity type, keeping it alive past finalize.

        Binding an already bound type returns the same cache.

        Raises:
            UnknownEntityError: If the type was never registered.
            EntityCacheReleasedError: If its cache was released by finalize.
        """
        cache = self._caches.get(entity_type)
        if cache is None:
            raise self._missing(entity_type)
        self._consumed.add(entity_type)
        return cache

    def get(self, entity_type: type) -> EntityCache:
        """Get the cache of a bound entity type.

        Raises:
            UnknownEntityError: If the type was never registered.
            EntityCacheReleasedError: If the type is unbound or was released.
        """
        cache = self._caches.get(entity_type)
        if cache is None:
            raise self._missing(entity_type)
        if entity_type not in self._consumed:
            raise EntityCacheReleasedError(
                f"Entity [{entity_type.__name__}] cache is not bound to any consumer"
            )
        return cache

    def all_caches(self) -> tuple[EntityCache, ...]:
        """Caches of every bound entity type, in registration order."""
        return tuple(
            cache for entity_type, cache in self._caches.items() if entity_type in self._consumed
        )

    def finalize(self) -> list[type]:
        """Release unbound caches and freeze the registry.

        Calling it again is a no-op.

        Returns:
            Entity types whose caches were released.
        """
        if self._finalized:
            return []
        released = [t for t in self._caches if t not in self._consumed]
        for entity_type in released:
            logger.info("Entity [{}] cache released: no consumer bound it", entity_type.__name__)
        self._released.update(released)
        self._caches = MappingProxyType(
            {t: cache for t, cache in self._caches.items() if t in self._consumed}
        )
        self._finalized = True
        return released

    def _missing(self, entity_type: type) -> EntityCacheError:
        name = getattr(entity_type, "__name__", repr(entity_type))
        if entity_type in self._released:
            return EntityCacheReleasedError(
                f"Entity [{name}] cache was released because no consumer bound it"
            )
        return UnknownEntityError(f"[{name}] is not a registered entity")

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._caches

    def __len__(self) -> int:
        return len(self._caches)
