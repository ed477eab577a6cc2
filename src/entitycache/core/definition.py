"""EntityDefinition construction: validation, identity checks and strategies."""

from __future__ import annotations

from types import MappingProxyType

from entitycache.config.settings import OrmSettings
from entitycache.core.entity.core import (
    collection_name,
    index_definitions,
    text_index_definitions,
)
from entitycache.core.entity.models import EntityDefinition
from entitycache.core.errors import DuplicateTextIndexError
from entitycache.core.strategy import resolve_strategies
from entitycache.core.validation import (
    check_identity_field,
    check_version_field,
    has_unsafe_collection,
)


def build_definition(cls: type, settings: OrmSettings) -> EntityDefinition:
    """Validate an entity type and derive its immutable definition.

    Runs the type safety validator, the identity and version checks and the
    strategy resolver, then collects the declared indexes. Building twice for
    the same type and settings yields equal definitions.

    Args:
        cls: Entity class.
        settings: Configuration holding the named strategies.

    Returns:
        The entity's definition.

    Raises:
        EntityDefinitionError: If the entity shape, identity, version or text
            index declarations are invalid.
        StrategyNotFoundError: If a named strategy is not configured.
    """
    unsafe = has_unsafe_collection(cls)
    id_field = check_identity_field(cls)
    version_field = check_version_field(cls)
    cache_strategy, persister_strategy = resolve_strategies(cls, settings)

    text_indexes = text_index_definitions(cls)
    if len(text_indexes) > 1:
        raise DuplicateTextIndexError(
            f"The entity [{cls.__name__}] can have only one text index, "
            f"found {sorted(text_indexes)}"
        )

    return EntityDefinition(
        entity_type=cls,
        collection_name=collection_name(cls),
        thread_safe=not unsafe,
        cache_capacity=cache_strategy.size,
        cache_expiry_millis=cache_strategy.expire_millisecond,
        persister_strategy=persister_strategy,
        id_field=id_field.name,
        version_field=version_field.name if version_field else None,
        index_definitions=MappingProxyType(index_definitions(cls)),
        text_index_definitions=MappingProxyType(text_indexes),
    )
