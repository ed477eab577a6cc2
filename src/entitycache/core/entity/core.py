"""Entity markers, field roles and naming conventions.

Usage:
    @entity_cache(cache="hot", persister="minute")
    @dataclass
    class PlayerEntity:
        _id: str = identity(default="")
        _version: int = version()
        email: str = index(default="", unique=True)
        bio: str = text_index(default="")
        scores: list[int] = field(default_factory=list)

        def id(self) -> str:
            return self._id

        @property
        def version(self) -> int:
            return self._version

        @version.setter
        def version(self, value: int) -> None:
            self._version = value
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import MISSING, Field, is_dataclass
from typing import Any, overload

from entitycache.config.settings import DEFAULT_STRATEGY_NAME as DEFAULT_STRATEGY
from entitycache.core.entity.models import Entity, EntityCacheMarker, IndexSpec, TextIndexSpec

IDENTITY = "entitycache.identity"
VERSION = "entitycache.version"
INDEX = "entitycache.index"
TEXT_INDEX = "entitycache.text_index"
TRANSIENT = "entitycache.transient"


def _role_field(role: str, value: Any, default: Any, default_factory: Any, **kwargs: Any) -> Any:
    metadata = {**kwargs.pop("metadata", {}), role: value}
    return dataclasses.field(
        default=default, default_factory=default_factory, metadata=metadata, **kwargs
    )


def identity(*, default: Any = MISSING, default_factory: Any = MISSING, **kwargs: Any) -> Any:
    """Declare the identity field of an entity.

    The field must be non-public (``_`` prefix) and exposed through ``id()``.
    """
    return _role_field(IDENTITY, True, default, default_factory, **kwargs)


def version(*, default: int = 0, **kwargs: Any) -> Any:
    """Declare the optimistic-concurrency version field (non-public ``int``)."""
    return _role_field(VERSION, True, default, MISSING, **kwargs)


def index(
    *,
    ascending: bool = True,
    unique: bool = False,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    **kwargs: Any,
) -> Any:
    """Declare a single-field index on an entity field.

    Args:
        ascending: Sort order of the index.
        unique: Whether the store must reject duplicate values.
        default: Field default.
        default_factory: Field default factory.
        **kwargs: Passed through to ``dataclasses.field``.
    """
    return _role_field(
        INDEX, IndexSpec("", ascending=ascending, unique=unique), default, default_factory, **kwargs
    )


def text_index(*, default: Any = MISSING, default_factory: Any = MISSING, **kwargs: Any) -> Any:
    """Declare a full-text index on an entity field. One per entity."""
    return _role_field(TEXT_INDEX, True, default, default_factory, **kwargs)


def transient(*, default: Any = MISSING, default_factory: Any = MISSING, **kwargs: Any) -> Any:
    """Declare a field that is neither validated nor persisted."""
    return _role_field(TRANSIENT, True, default, default_factory, **kwargs)


@overload
def entity_cache(cls: type) -> type: ...


@overload
def entity_cache(
    cls: None = None, *, cache: str = DEFAULT_STRATEGY, persister: str = DEFAULT_STRATEGY
) -> Callable[[type], type]: ...


def entity_cache(
    cls: type | None = None,
    *,
    cache: str = DEFAULT_STRATEGY,
    persister: str = DEFAULT_STRATEGY,
) -> type | Callable[[type], type]:
    """Mark a dataclass as a cached entity with named strategies.

    Supports three forms:
        @entity_cache
        @entity_cache()
        @entity_cache(cache="hot", persister="minute")

    Args:
        cls: The class to mark, or None if called with arguments.
        cache: Name of the configured cache strategy.
        persister: Name of the configured persister strategy.

    Returns:
        Decorated class or decorator function.

    Raises:
        TypeError: If the class is not a dataclass.

    Note:
        Apply @entity_cache AFTER @dataclass.
    """

    def decorator(c: type) -> type:
        if not is_dataclass(c):
            raise TypeError(
                f"Entity {c.__name__} must be a dataclass. Did you forget @dataclass decorator?"
            )
        c.__entity_cache__ = EntityCacheMarker(cache=cache, persister=persister)  # type: ignore
        return c

    if cls is None:
        return decorator
    return decorator(cls)


def get_marker(cls: type) -> EntityCacheMarker | None:
    """Return the ``@entity_cache`` marker declared directly on a class."""
    marker = vars(cls).get("__entity_cache__")
    return marker if isinstance(marker, EntityCacheMarker) else None


def implements_entity(cls: type) -> bool:
    """Check whether a class provides the Entity capability."""
    return isinstance(cls, type) and cls is not Entity and issubclass(cls, Entity)


def is_entity_candidate(cls: Any) -> bool:
    """Check whether a class should be picked up by entity discovery.

    Marked classes always qualify; unmarked ones must be dataclasses
    implementing ``Entity``.
    """
    if not isinstance(cls, type):
        return False
    if get_marker(cls) is not None:
        return True
    return is_dataclass(cls) and implements_entity(cls)


def collection_name(cls: type) -> str:
    """Collection name for an entity: ``PlayerEntity`` -> ``player``."""
    name = cls.__name__
    name = name[:1].lower() + name[1:]
    if name.endswith("Entity"):
        name = name[: -len("Entity")]
    return name


def document_key(field_name: str) -> str:
    """Document key for a non-identity field: ``_email`` -> ``email``."""
    return field_name.lstrip("_") or field_name


def is_public(field_name: str) -> bool:
    """Public fields are directly accessible; ``_`` prefixed ones are not."""
    return not field_name.startswith("_")


def persistent_fields(cls: type) -> tuple[Field[Any], ...]:
    """Dataclass fields that are validated and persisted (transient ones skipped)."""
    return tuple(f for f in dataclasses.fields(cls) if not f.metadata.get(TRANSIENT))


def fields_with_role(cls: type, role: str) -> tuple[Field[Any], ...]:
    """Persistent fields carrying a given role marker."""
    return tuple(f for f in persistent_fields(cls) if role in f.metadata)


def index_definitions(cls: type) -> dict[str, IndexSpec]:
    """Collect declared single-field indexes keyed by document key."""
    result: dict[str, IndexSpec] = {}
    for f in fields_with_role(cls, INDEX):
        declared: IndexSpec = f.metadata[INDEX]
        key = document_key(f.name)
        result[key] = IndexSpec(key, ascending=declared.ascending, unique=declared.unique)
    return result


def text_index_definitions(cls: type) -> dict[str, TextIndexSpec]:
    """Collect declared text indexes keyed by document key."""
    return {
        document_key(f.name): TextIndexSpec(document_key(f.name))
        for f in fields_with_role(cls, TEXT_INDEX)
    }
