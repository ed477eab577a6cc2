"""Entity <-> document conversion.

Documents use ``_id`` for the identity field and the field name without its
leading underscore for every other persistent field. Decoding is driven by the
entity's type hints, so map keys, enums, numbers and embedded records come
back with their declared types. Collection fields keep the implementation
class of the entity's default value (a lock-guarded list stays one).
"""

from __future__ import annotations

import dataclasses
import numbers
from collections import defaultdict
from enum import Enum
from typing import Any, get_args

from entitycache.core.entity.core import IDENTITY, document_key, persistent_fields
from entitycache.core.types import (
    CollectionKind,
    collection_kind,
    collection_origin,
    is_class,
    is_enum_type,
    unwrap,
)
from entitycache.core.validation.shape import resolve_hints
from entitycache.storage.protocol import Document

_PLAIN = (str, bool, int, float)


def field_key(f: dataclasses.Field[Any]) -> str:
    """Document key of a dataclass field."""
    return "_id" if f.metadata.get(IDENTITY) else document_key(f.name)


def encode(entity: Any) -> Document:
    """Convert an entity (or embedded record) to a document.

    Args:
        entity: Dataclass instance.

    Returns:
        A new document; transient fields are omitted.
    """
    return {
        field_key(f): _encode_value(getattr(entity, f.name))
        for f in persistent_fields(type(entity))
    }


def _encode_value(value: Any) -> Any:
    if value is None or isinstance(value, _PLAIN):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, numbers.Number):
        return str(value)
    if isinstance(value, bytearray):
        return bytes(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return encode(value)
    if collection_kind(type(value)) is CollectionKind.MAP:
        return {_encode_key(k): _encode_value(v) for k, v in value.items()}
    if collection_kind(type(value)) is not None:
        return [_encode_value(item) for item in value]
    return value


def _encode_key(key: Any) -> str:
    return key if isinstance(key, str) else str(key)


def decode[T](cls: type[T], document: Document) -> T:
    """Build an entity (or embedded record) from a document.

    Missing keys keep the field's default value; unknown keys are ignored.

    Args:
        cls: Dataclass type to build.
        document: Source document.

    Returns:
        New instance of ``cls``.
    """
    hints = resolve_hints(cls)
    instance = cls()
    for f in persistent_fields(cls):
        key = field_key(f)
        if key not in document:
            continue
        current = getattr(instance, f.name, None)
        value = _decode_value(hints[f.name], document[key], current)
        object.__setattr__(instance, f.name, value)
    return instance


def _decode_value(hint: Any, raw: Any, current: Any = None) -> Any:
    tp = unwrap(hint)
    if raw is None:
        return None
    if is_enum_type(tp):
        return tp(raw)
    if is_class(tp) and dataclasses.is_dataclass(tp):
        return decode(tp, raw)

    kind = collection_kind(tp)
    if kind is not None:
        args = get_args(tp)
        implementation = None
        if current is not None and collection_kind(type(current)) is kind:
            implementation = type(current)
        if kind is CollectionKind.MAP:
            key_type, value_type = args
            items = {
                _decode_value(key_type, k): _decode_value(value_type, v) for k, v in raw.items()
            }
            return _rebuild(implementation or collection_origin(tp), items, current, dict)
        element_type = args[0]
        items = [_decode_value(element_type, item) for item in raw]
        fallback = set if kind is CollectionKind.SET else list
        return _rebuild(implementation or collection_origin(tp), items, current, fallback)

    if tp is bool and isinstance(raw, str):
        # Map keys are stored as str(key).
        return raw == "True"
    if is_class(tp) and not isinstance(raw, tp):
        return tp(raw)
    return raw


def _rebuild(implementation: type, items: Any, current: Any, fallback: type) -> Any:
    if implementation is defaultdict:
        factory = current.default_factory if isinstance(current, defaultdict) else None
        return defaultdict(factory, items)
    if getattr(implementation, "__abstractmethods__", None):
        return fallback(items)
    return implementation(items)
