"""Identity and version field checks.

Usage:
    check_identity_field(PlayerEntity)
    check_version_field(PlayerEntity)

The identity check catches ``id()`` implementations wired to the wrong field:
a random value is written straight into the identity field of a throwaway
instance and ``id()`` must hand the same value back.
"""

from __future__ import annotations

import random
import string
import uuid
from collections.abc import Callable
from dataclasses import Field
from typing import Any, get_type_hints

from bson import ObjectId

from entitycache.core.entity.core import (
    IDENTITY,
    VERSION,
    fields_with_role,
    implements_entity,
    is_public,
)
from entitycache.core.errors import (
    IdentityFieldError,
    IdentityMismatchError,
    VersionFieldError,
)
from entitycache.core.types import type_name
from entitycache.core.validation.shape import resolve_hints

_ID_VALUE_FACTORIES: dict[type, Callable[[], Any]] = {
    int: lambda: random.randint(1, 2**63 - 1),
    float: lambda: random.uniform(1.0, 1e9),
    str: lambda: "".join(random.choices(string.ascii_letters + string.digits, k=10)),
    ObjectId: ObjectId,
    uuid.UUID: uuid.uuid4,
}
"""Random value generators for the supported identity types."""


def identity_field(cls: type) -> Field[Any]:
    """Return the single identity field of an entity.

    Raises:
        IdentityFieldError: If there is not exactly one identity field.
    """
    fields = fields_with_role(cls, IDENTITY)
    if len(fields) != 1:
        raise IdentityFieldError(
            f"The entity [{cls.__name__}] must have exactly one identity field, found {len(fields)}"
        )
    return fields[0]


def check_identity_field(cls: type) -> Field[Any]:
    """Validate the identity field of an entity against its ``id()`` method.

    Args:
        cls: Entity class (already validated as a plain data holder).

    Returns:
        The identity field.

    Raises:
        IdentityFieldError: If the class does not implement ``Entity``, the
            identity field is missing, duplicated, public, of an unsupported
            type, or ``id()`` declares a different return type.
        IdentityMismatchError: If ``id()`` returns a different value than the
            one assigned to the identity field.
    """
    if not implements_entity(cls) or not callable(getattr(cls, "id", None)):
        raise IdentityFieldError(
            f"The entity [{cls.__name__}] does not implement Entity: an id() method is required"
        )

    id_field = identity_field(cls)
    if is_public(id_field.name):
        raise IdentityFieldError(
            f"The identity field [{id_field.name}] of the entity [{cls.__name__}] must be "
            f"non-public (prefix it with '_')"
        )

    field_type = resolve_hints(cls)[id_field.name]
    try:
        return_type = get_type_hints(cls.id).get("return")
    except Exception as e:
        raise IdentityFieldError(
            f"[{cls.__name__}] id() return annotation cannot be resolved: {e}"
        ) from e
    if return_type != field_type:
        raise IdentityFieldError(
            f"[{cls.__name__}] id() return type [{type_name(return_type)}] must be equal "
            f"to the identity field type [{type_name(field_type)}]"
        )

    factory = _ID_VALUE_FACTORIES.get(field_type)
    if factory is None:
        raise IdentityFieldError(
            f"[{cls.__name__}] identity field [{id_field.name}] has type "
            f"[{type_name(field_type)}]; only int, float, str, ObjectId and UUID are supported"
        )

    instance = cls()
    assigned = factory()
    object.__setattr__(instance, id_field.name, assigned)
    returned = instance.id()
    if type(returned) is not type(assigned) or returned != assigned:
        raise IdentityMismatchError(
            f"The identity [field:{assigned!r}] of the entity [{cls.__name__}] and the value "
            f"returned by [method:id() -> {returned!r}] are not equal, please check whether "
            f"id() is implemented correctly"
        )
    return id_field


def check_version_field(cls: type) -> Field[Any] | None:
    """Validate the optional version field of an entity.

    Args:
        cls: Entity class.

    Returns:
        The version field, or None if the entity declares none.

    Raises:
        VersionFieldError: If more than one version field is declared, or the
            field is public or not annotated exactly ``int``.
    """
    fields = fields_with_role(cls, VERSION)
    if not fields:
        return None
    if len(fields) != 1:
        raise VersionFieldError(f"The entity [{cls.__name__}] must have only one version field")

    version_field = fields[0]
    if is_public(version_field.name):
        raise VersionFieldError(
            f"The version field [{version_field.name}] of the entity [{cls.__name__}] "
            f"must be non-public (prefix it with '_')"
        )
    if resolve_hints(cls)[version_field.name] is not int:
        raise VersionFieldError(
            f"The version field [{version_field.name}] of the entity [{cls.__name__}] "
            f"must be of type int"
        )
    return version_field
