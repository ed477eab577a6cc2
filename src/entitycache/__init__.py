"""entitycache: validated, cached entity types over a document store.

Usage:
    from dataclasses import dataclass, field
    from entitycache import (
        EntityManager, MemoryDocumentStore, OrmSettings, entity_cache, identity, index,
    )

    @entity_cache(cache="players", persister="default")
    @dataclass
    class PlayerEntity:
        _id: str = identity(default="")
        _email: str = index(unique=True, default="")
        _scores: dict[str, int] = field(default_factory=dict)

        def id(self) -> str:
            return self._id

        @property
        def email(self) -> str:
            return self._email

        @email.setter
        def email(self, value: str) -> None:
            self._email = value

        @property
        def scores(self) -> dict[str, int]:
            return self._scores

        @scores.setter
        def scores(self, value: dict[str, int]) -> None:
            self._scores = value

    manager = EntityManager(OrmSettings(caches=[...]), MemoryDocumentStore(), [PlayerEntity])
    manager.initialize()
    players = manager.bind(PlayerEntity)
    manager.finalize()
"""

__version__ = "0.1.0"

# Configuration
from entitycache.config import (
    CacheStrategy,
    HostSettings,
    OrmSettings,
    PersisterStrategy,
    PersisterType,
)

# Entities and metadata
from entitycache.core import (
    Entity,
    EntityDefinition,
    IndexSpec,
    TextIndexSpec,
    build_definition,
    entity_cache,
    identity,
    index,
    text_index,
    transient,
    version,
)

# Runtime
from entitycache.cache import EntityCache, EntityCacheRegistry

# Errors
from entitycache.core.errors import (
    DocumentStoreError,
    DuplicateTextIndexError,
    EntityCacheError,
    EntityCacheLookupError,
    EntityCacheReleasedError,
    EntityDefinitionError,
    EntityScanError,
    IdentityFieldError,
    IdentityMismatchError,
    IndexCreationError,
    RegistryFinalizedError,
    StrategyNotFoundError,
    UnknownEntityError,
    UnsupportedFieldError,
    VersionFieldError,
)
from entitycache.discovery import discover_entities
from entitycache.manager import EntityManager

# Storage
from entitycache.storage import (
    DocumentCollection,
    DocumentStore,
    IndexReconciler,
    MemoryDocumentStore,
)

__all__ = [
    "__version__",
    # Entities
    "Entity",
    "EntityDefinition",
    "IndexSpec",
    "TextIndexSpec",
    "entity_cache",
    "identity",
    "version",
    "index",
    "text_index",
    "transient",
    "build_definition",
    # Configuration
    "OrmSettings",
    "HostSettings",
    "CacheStrategy",
    "PersisterStrategy",
    "PersisterType",
    # Discovery and management
    "discover_entities",
    "EntityManager",
    # Runtime
    "EntityCache",
    "EntityCacheRegistry",
    # Storage
    "DocumentStore",
    "DocumentCollection",
    "MemoryDocumentStore",
    "IndexReconciler",
    # Errors
    "EntityCacheError",
    "EntityScanError",
    "EntityDefinitionError",
    "UnsupportedFieldError",
    "IdentityFieldError",
    "IdentityMismatchError",
    "VersionFieldError",
    "DuplicateTextIndexError",
    "StrategyNotFoundError",
    "DocumentStoreError",
    "IndexCreationError",
    "EntityCacheLookupError",
    "UnknownEntityError",
    "EntityCacheReleasedError",
    "RegistryFinalizedError",
]
