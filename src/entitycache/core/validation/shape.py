"""Type safety validation of entity field graphs.

Decides whether an entity's reachable fields are safe to share across threads
without defensive copying, and rejects field shapes the cache cannot support.

Usage:
    unsafe = has_unsafe_collection(PlayerEntity)
    thread_safe = not unsafe

Rules:
    - Numeric and string fields, byte arrays, opaque identifiers, timestamps
      and enumerations are leaves.
    - Other arrays (``tuple``, ``array.array``) are rejected.
    - List, set and map fields must be parameterized; map keys must be base
      types; nested containers are walked with the same rules and may not hold
      arrays or bare collections.
    - Any other class is an embedded record, validated recursively.

Hard errors raise ``UnsupportedFieldError``/``EntityDefinitionError``. Use of a
mutable collection from ``UNSAFE_COLLECTIONS`` only marks the result unsafe.
"""

from __future__ import annotations

import dataclasses
from dataclasses import MISSING, dataclass, field, is_dataclass
from typing import Any, get_args, get_type_hints

from entitycache.core.entity.core import IDENTITY, is_public, persistent_fields
from entitycache.core.errors import EntityDefinitionError, UnsupportedFieldError
from entitycache.core.types import (
    UNSAFE_COLLECTIONS,
    CollectionKind,
    collection_kind,
    collection_origin,
    is_array_type,
    is_base_type,
    is_byte_array,
    is_class,
    is_enum_type,
    is_immutable_leaf,
    is_parameterized,
    is_union,
    type_name,
    unwrap,
)


@dataclass(slots=True)
class _Walk:
    """State of one validation run: finished results and the active path."""

    results: dict[type, bool] = field(default_factory=dict)
    visiting: set[type] = field(default_factory=set)


def has_unsafe_collection(cls: type) -> bool:
    """Validate an entity's field graph and report unsafe collection usage.

    Each run starts from a fresh memo, so validating the same type twice
    yields the same answer.

    Args:
        cls: Entity class to validate.

    Returns:
        True if any reachable field uses a mutable collection implementation
        from ``UNSAFE_COLLECTIONS``.

    Raises:
        EntityDefinitionError: If the class is not a plain data holder.
        UnsupportedFieldError: If a field shape is unsupported.
    """
    return _check_class(cls, cls, _Walk())


def assert_plain_data_holder(cls: type, entity: type) -> None:
    """Check that a class is a mutable, non-generic, no-argument dataclass.

    Non-public fields (``_`` prefix) other than the identity field need an
    accessor and a mutator: a property with a setter, or ``get_x``/``set_x``.

    Args:
        cls: Class to check (entity or embedded record).
        entity: Entity being validated, for error messages.

    Raises:
        EntityDefinitionError: On the first violated requirement.
    """
    if not (is_class(cls) and is_dataclass(cls)):
        raise EntityDefinitionError(
            f"[class:{cls.__qualname__}] in entity [{entity.__name__}] must be a dataclass"
        )
    if cls.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        raise EntityDefinitionError(
            f"[class:{cls.__qualname__}] in entity [{entity.__name__}] must not be frozen"
        )
    if getattr(cls, "__type_params__", ()) or getattr(cls, "__parameters__", ()):
        raise EntityDefinitionError(f"[class:{cls.__qualname__}] can't be a generic class")

    for f in dataclasses.fields(cls):
        if f.init and f.default is MISSING and f.default_factory is MISSING:
            raise EntityDefinitionError(
                f"[class:{cls.__qualname__}] must be constructible without arguments, "
                f"[field:{f.name}] has no default"
            )

    for f in persistent_fields(cls):
        if is_public(f.name) or f.metadata.get(IDENTITY):
            continue
        name = f.name.lstrip("_")
        prop = getattr(cls, name, None)
        if isinstance(prop, property):
            has_getter, has_setter = prop.fget is not None, prop.fset is not None
        else:
            has_getter = callable(getattr(cls, f"get_{name}", None))
            has_setter = callable(getattr(cls, f"set_{name}", None))
        if not has_getter:
            raise EntityDefinitionError(
                f"[class:{cls.__qualname__}] [field:{f.name}] has no accessor "
                f"(property '{name}' or method 'get_{name}')"
            )
        if not has_setter:
            raise EntityDefinitionError(
                f"[class:{cls.__qualname__}] [field:{f.name}] has no mutator "
                f"(property setter '{name}' or method 'set_{name}')"
            )


def resolve_hints(cls: type) -> dict[str, Any]:
    """Resolve a class's annotations, failing with the class name attached."""
    try:
        return get_type_hints(cls, include_extras=True)
    except Exception as e:
        raise EntityDefinitionError(
            f"[class:{cls.__qualname__}] type annotations cannot be resolved: {e}"
        ) from e


def _check_class(cls: type, entity: type, walk: _Walk) -> bool:
    if cls in walk.results:
        return walk.results[cls]
    if cls in walk.visiting:
        # Self-reference: the branch in progress reports its own result.
        return False
    if is_enum_type(cls):
        return False

    assert_plain_data_holder(cls, entity)
    hints = resolve_hints(cls)
    try:
        sample = cls()
    except Exception as e:
        raise EntityDefinitionError(
            f"[class:{cls.__qualname__}] cannot be constructed without arguments: {e}"
        ) from e

    walk.visiting.add(cls)
    unsafe = False
    for f in persistent_fields(cls):
        value = getattr(sample, f.name, None)
        unsafe |= _check_field(entity, cls, f.name, hints[f.name], value, walk)
    walk.visiting.discard(cls)
    walk.results[cls] = unsafe
    return unsafe


def _check_field(
    entity: type, owner: type, field_name: str, hint: Any, value: Any, walk: _Walk
) -> bool:
    tp = unwrap(hint)
    where = f"[class:{owner.__qualname__}] [field:{field_name}]"

    if is_base_type(tp) or is_byte_array(tp) or is_immutable_leaf(tp) or is_enum_type(tp):
        return False
    if is_array_type(tp):
        raise UnsupportedFieldError(
            f"{where} array type [{type_name(tp)}] is not supported, only bytes arrays are"
        )

    kind = collection_kind(tp)
    if kind is not None:
        if not is_parameterized(tp):
            raise UnsupportedFieldError(
                f"{where} type declaration is incorrect, not a generic class [{type_name(tp)}]"
            )
        implementation = type(value) if collection_kind(type(value)) is not None else None
        unsafe = (implementation or collection_origin(tp)) in UNSAFE_COLLECTIONS
        return unsafe | _check_type_arguments(entity, where, kind, tp, walk)

    if is_union(tp) or not is_class(tp):
        raise UnsupportedFieldError(f"{where} type [{type_name(tp)}] is not supported")
    return _check_class(tp, entity, walk)


def _check_type_arguments(
    entity: type, where: str, kind: CollectionKind, tp: Any, walk: _Walk
) -> bool:
    args = get_args(tp)
    if kind is CollectionKind.MAP:
        if len(args) != 2:
            raise UnsupportedFieldError(
                f"{where} map type declaration is incorrect, key and value types are required"
            )
        key, element = args
        if not is_base_type(unwrap(key)):
            raise UnsupportedFieldError(
                f"{where} key type [{type_name(key)}] of the map must be a base type"
            )
    else:
        if len(args) != 1:
            raise UnsupportedFieldError(
                f"{where} {kind.name.lower()} type declaration is incorrect, "
                f"exactly one element type is required"
            )
        element = args[0]
    return _check_element(entity, where, element, walk)


def _check_element(entity: type, where: str, hint: Any, walk: _Walk) -> bool:
    tp = unwrap(hint)

    if is_base_type(tp) or is_immutable_leaf(tp) or is_enum_type(tp):
        return False
    if is_byte_array(tp) or is_array_type(tp):
        raise UnsupportedFieldError(
            f"{where} in entity [{entity.__name__}] type [{type_name(tp)}] does not support "
            f"multi-dimensional arrays or nested arrays"
        )

    kind = collection_kind(tp)
    if kind is not None:
        if not is_parameterized(tp):
            raise UnsupportedFieldError(
                f"{where} in entity [{entity.__name__}] nested collection [{type_name(tp)}] "
                f"must declare its element types"
            )
        unsafe = collection_origin(tp) in UNSAFE_COLLECTIONS
        return unsafe | _check_type_arguments(entity, where, kind, tp, walk)

    if is_union(tp) or not is_class(tp):
        raise UnsupportedFieldError(
            f"{where} in entity [{entity.__name__}] type [{type_name(tp)}] is incorrect"
        )
    return _check_class(tp, entity, walk)
