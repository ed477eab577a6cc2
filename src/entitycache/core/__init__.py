"""Core functionalities: stateless entity metadata, validation and strategies.

Architecture Note:
    core/ contains pure, stateless building blocks: they inspect entity types
    and configuration but own no runtime state. For stateful services, see
    discovery/, storage/, cache/ and manager/.
"""

from entitycache.core.definition import build_definition
from entitycache.core.entity import (
    DEFAULT_STRATEGY,
    Entity,
    EntityCacheMarker,
    EntityDefinition,
    IndexSpec,
    TextIndexSpec,
    collection_name,
    document_key,
    entity_cache,
    get_marker,
    identity,
    implements_entity,
    index,
    is_entity_candidate,
    text_index,
    transient,
    version,
)
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
from entitycache.core.strategy import find_strategy, resolve_strategies
from entitycache.core.validation import (
    check_identity_field,
    check_version_field,
    has_unsafe_collection,
)

__all__ = [
    # Entity
    "Entity",
    "EntityCacheMarker",
    "EntityDefinition",
    "IndexSpec",
    "TextIndexSpec",
    "entity_cache",
    "identity",
    "version",
    "index",
    "text_index",
    "transient",
    "DEFAULT_STRATEGY",
    "collection_name",
    "document_key",
    "get_marker",
    "implements_entity",
    "is_entity_candidate",
    # Validation
    "has_unsafe_collection",
    "check_identity_field",
    "check_version_field",
    # Strategy
    "find_strategy",
    "resolve_strategies",
    # Definition
    "build_definition",
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
