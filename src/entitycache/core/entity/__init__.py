"""Entity functionality: protocol, markers, metadata models and naming."""

from entitycache.core.entity.core import (
    DEFAULT_STRATEGY,
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
from entitycache.core.entity.models import (
    Entity,
    EntityCacheMarker,
    EntityDefinition,
    IndexSpec,
    TextIndexSpec,
)

__all__ = [
    # Models
    "Entity",
    "EntityCacheMarker",
    "EntityDefinition",
    "IndexSpec",
    "TextIndexSpec",
    # Markers
    "entity_cache",
    "identity",
    "version",
    "index",
    "text_index",
    "transient",
    "DEFAULT_STRATEGY",
    # Helpers
    "collection_name",
    "document_key",
    "get_marker",
    "implements_entity",
    "is_entity_candidate",
]
