"""Runtime type classification used by entity validation.

Field shapes are judged from resolved type hints (``typing.get_type_hints``),
so string annotations and ``from __future__ import annotations`` both work.
"""

from __future__ import annotations

import array
import datetime
import numbers
import types
import uuid
from collections import OrderedDict, defaultdict, deque
from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from enum import Enum, auto
from typing import Annotated, Any, Union, get_args, get_origin

from bson import ObjectId

OPAQUE_ID_TYPES: tuple[type, ...] = (ObjectId, uuid.UUID)
"""Store-generated identifiers: always safe, never recursed into."""

UNSAFE_COLLECTIONS: frozenset[type] = frozenset({list, deque, set, dict, OrderedDict, defaultdict})
"""Mutable collections that are unsafe for unsynchronized shared access.

Membership is exact: a subclass with its own locking is not listed.
"""

BYTE_ARRAY_TYPES: tuple[type, ...] = (bytes, bytearray)

IMMUTABLE_LEAF_TYPES: tuple[type, ...] = (*OPAQUE_ID_TYPES, datetime.datetime)
"""Non-numeric value types stored natively by document stores."""


class CollectionKind(Enum):
    """Collection families the validator knows how to walk."""

    LIST = auto()
    SET = auto()
    MAP = auto()


def is_class(tp: Any) -> bool:
    """Check whether a type hint is a plain class (not ``list[int]`` and friends)."""
    return isinstance(tp, type) and not isinstance(tp, types.GenericAlias)


def is_base_type(tp: Any) -> bool:
    """Check whether a type is a structural leaf (numeric or string).

    Args:
        tp: Resolved type hint.

    Returns:
        True for ``numbers.Number`` subclasses (``bool`` included) and ``str``.
    """
    return is_class(tp) and (issubclass(tp, numbers.Number) or issubclass(tp, str))


def is_byte_array(tp: Any) -> bool:
    """Check whether a type is a byte array (``bytes`` or ``bytearray``)."""
    return is_class(tp) and issubclass(tp, BYTE_ARRAY_TYPES)


def is_array_type(tp: Any) -> bool:
    """Check whether a type is a non-byte array (``tuple`` or ``array.array``)."""
    origin = get_origin(tp) or tp
    return isinstance(origin, type) and issubclass(origin, (tuple, array.array))


def is_opaque_id(tp: Any) -> bool:
    """Check whether a type is a store-generated identifier."""
    return is_class(tp) and issubclass(tp, OPAQUE_ID_TYPES)


def is_immutable_leaf(tp: Any) -> bool:
    """Check whether a type is an opaque identifier or a native timestamp."""
    return is_class(tp) and issubclass(tp, IMMUTABLE_LEAF_TYPES)


def is_enum_type(tp: Any) -> bool:
    """Check whether a type is an enumeration."""
    return is_class(tp) and issubclass(tp, Enum)


def collection_kind(tp: Any) -> CollectionKind | None:
    """Classify a (possibly parameterized) type as list, set or map.

    Args:
        tp: Resolved type hint, bare (``list``) or parameterized (``list[str]``).

    Returns:
        The collection family, or None when the type is not a collection.
        Strings, byte arrays and tuples are never collections here.
    """
    origin = get_origin(tp) or tp
    if not isinstance(origin, type):
        return None
    if issubclass(origin, (str, tuple, *BYTE_ARRAY_TYPES)):
        return None
    if issubclass(origin, Mapping):
        return CollectionKind.MAP
    if issubclass(origin, AbstractSet):
        return CollectionKind.SET
    if issubclass(origin, Sequence) or issubclass(origin, deque):
        return CollectionKind.LIST
    return None


def collection_origin(tp: Any) -> type:
    """Return the collection class behind a type hint (``list[str]`` -> ``list``)."""
    return get_origin(tp) or tp


def is_parameterized(tp: Any) -> bool:
    """Check whether a collection hint declares its element types."""
    return bool(get_args(tp))


def is_union(tp: Any) -> bool:
    """Check whether a type hint is a union (``X | Y`` or ``typing.Union``)."""
    origin = get_origin(tp)
    return origin is Union or origin is types.UnionType


def unwrap(tp: Any) -> Any:
    """Strip ``Annotated`` and ``Optional`` wrappers from a type hint.

    Args:
        tp: Resolved type hint.

    Returns:
        The inner type. Unions with more than one non-None member are
        returned unchanged so callers can reject them.
    """
    while True:
        if get_origin(tp) is Annotated:
            tp = get_args(tp)[0]
            continue
        if is_union(tp):
            members = [arg for arg in get_args(tp) if arg is not type(None)]
            if len(members) == 1:
                tp = members[0]
                continue
        return tp


def type_name(tp: Any) -> str:
    """Readable name for a type hint, for error messages."""
    if is_class(tp):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")
