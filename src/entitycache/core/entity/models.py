"""Entity models: the Entity protocol and immutable per-type metadata."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from entitycache.config.settings import PersisterStrategy


@runtime_checkable
class Entity(Protocol):
    """A record type with a unique identity, eligible for caching and persistence.

    Classes satisfy the protocol structurally; subclassing it is optional.
    """

    def id(self) -> Any: ...


@dataclass(slots=True, frozen=True)
class EntityCacheMarker:
    """Declarative caching policy attached by ``@entity_cache``."""

    cache: str
    persister: str


@dataclass(slots=True, frozen=True)
class IndexSpec:
    """Single-field index declared on an entity field."""

    field_name: str
    ascending: bool = True
    unique: bool = False


@dataclass(slots=True, frozen=True)
class TextIndexSpec:
    """Full-text index declared on an entity field."""

    field_name: str


@dataclass(frozen=True)
class EntityDefinition:
    """Derived, immutable metadata for one entity type.

    Attributes:
        entity_type: The entity class.
        collection_name: Document store collection backing the entity.
        thread_safe: True when no unsafe mutable collection is reachable
            from the entity's fields.
        cache_capacity: Maximum number of cached instances.
        cache_expiry_millis: Idle time after which a cached instance expires.
        persister_strategy: Policy controlling when the cache flushes.
        id_field: Dataclass field holding the identity.
        version_field: Dataclass field holding the version, if declared.
        index_definitions: Document key -> declared index.
        text_index_definitions: Document key -> declared text index (at most one).
    """

    entity_type: type
    collection_name: str
    thread_safe: bool
    cache_capacity: int
    cache_expiry_millis: int
    persister_strategy: PersisterStrategy
    id_field: str
    version_field: str | None
    index_definitions: Mapping[str, IndexSpec]
    text_index_definitions: Mapping[str, TextIndexSpec]

    @property
    def name(self) -> str:
        """Simple class name of the entity."""
        return self.entity_type.__name__

    @property
    def cached(self) -> bool:
        """Whether the entity declares an explicit caching policy."""
        return "__entity_cache__" in vars(self.entity_type)
