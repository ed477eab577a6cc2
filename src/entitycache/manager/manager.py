"""EntityManager: ordered startup of entity management and consumer interface.

Startup runs once, single-threaded:
    1. discover entity types (package scan or explicit list)
    2. build definitions (shape validation, identity/version checks, strategies)
    3. log the thread-safety advisory for cached entities
    4. reconcile declared indexes into the document store
    5. create one unbound cache per entity

Consumers then ``bind`` the entities they use and the application calls
``finalize`` to release every cache nobody bound.

Usage:
    manager = EntityManager(OrmSettings(entity_package="game.entities"), store)
    manager.initialize()
    players = manager.bind(Player)
    manager.finalize()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from loguru import logger

from entitycache.cache.entity_cache import EntityCache
from entitycache.cache.registry import EntityCacheRegistry
from entitycache.config.settings import OrmSettings
from entitycache.core.definition import build_definition
from entitycache.core.entity.models import EntityDefinition
from entitycache.core.errors import EntityCacheError, UnknownEntityError
from entitycache.discovery.scanner import discover_entities
from entitycache.storage.indexes import IndexReconciler
from entitycache.storage.protocol import DocumentCollection, DocumentStore


class EntityManager:
    """Owns entity definitions and the cache registry for one document store.

    Args:
        settings: Entity package and named strategies.
        store: Document store holding the entity collections.
        entity_types: Explicit entity types; skips the package scan when given.
    """

    def __init__(
        self,
        settings: OrmSettings,
        store: DocumentStore,
        entity_types: Iterable[type] | None = None,
    ):
        self._settings = settings
        self._store = store
        self._entity_types = list(entity_types) if entity_types is not None else None
        self._definitions: dict[type, EntityDefinition] = {}
        self._registry = EntityCacheRegistry()
        self._initialized = False

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def registry(self) -> EntityCacheRegistry:
        return self._registry

    @property
    def definitions(self) -> Mapping[type, EntityDefinition]:
        """Entity type -> definition, read-only."""
        return MappingProxyType(self._definitions)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> list[EntityDefinition]:
        """Run the startup sequence.

        Returns:
            Definitions of every managed entity, in discovery order.

        Raises:
            EntityCacheError: On any configuration problem (scan, definition,
                strategy or index creation), or if already initialized.
        """
        if self._initialized:
            raise EntityCacheError("EntityManager is already initialized")

        entity_types = discover_entities(self._settings.entity_package, self._entity_types)
        definitions: dict[type, EntityDefinition] = {}
        for entity_type in entity_types:
            definition = build_definition(entity_type, self._settings)
            logger.debug("Entity definition: {}", definition)
            definitions[entity_type] = definition

        unsafe = [d.name for d in definitions.values() if d.cached and not d.thread_safe]
        if unsafe:
            logger.warning(
                "Cached entities {} use collections that are not thread-safe; "
                "use immutable or synchronized collections to allow lock-free persistence",
                unsafe,
            )

        IndexReconciler(self._store).reconcile_all(definitions.values())

        for definition in definitions.values():
            self._registry.create(
                definition, self._store.get_collection(definition.collection_name)
            )

        self._definitions = definitions
        self._initialized = True
        logger.info("Entity manager initialized {} entities", len(definitions))
        return list(definitions.values())

    def bind(self, entity_type: type) -> EntityCache:
        """Claim the cache of an entity type.

        Raises:
            UnknownEntityError: If the type is not a managed entity.
            EntityCacheReleasedError: If its cache was released.
        """
        return self._registry.bind(entity_type)

    def finalize(self) -> list[type]:
        """Release caches no consumer bound and freeze the registry.

        Returns:
            Entity types whose caches were released.
        """
        released = self._registry.finalize()
        logger.info(
            "Entity caches finalized: {} bound, {} released",
            len(self._registry.all_caches()),
            len(released),
        )
        return released

    def get_cache(self, entity_type: type) -> EntityCache:
        """Get the cache of a bound entity type."""
        return self._registry.get(entity_type)

    def all_caches(self) -> tuple[EntityCache, ...]:
        """Caches of every bound entity type."""
        return self._registry.all_caches()

    def definition(self, entity_type: type) -> EntityDefinition:
        """Get the definition of a managed entity type.

        Raises:
            UnknownEntityError: If the type is not a managed entity.
        """
        definition = self._definitions.get(entity_type)
        if definition is None:
            name = getattr(entity_type, "__name__", repr(entity_type))
            raise UnknownEntityError(f"[{name}] is not a registered entity")
        return definition

    def get_collection(self, entity_type: type) -> DocumentCollection:
        """Get the document collection backing a managed entity type."""
        return self._store.get_collection(self.definition(entity_type).collection_name)

    def persist_all(self) -> int:
        """Flush dirty entities of every bound cache.

        Returns:
            Number of entities written.
        """
        return sum(cache.persist_all() for cache in self._registry.all_caches())
