"""Entity validation: field graph safety and identity/version checks."""

from entitycache.core.validation.identity import (
    check_identity_field,
    check_version_field,
    identity_field,
)
from entitycache.core.validation.shape import (
    assert_plain_data_holder,
    has_unsafe_collection,
    resolve_hints,
)

__all__ = [
    "has_unsafe_collection",
    "assert_plain_data_holder",
    "resolve_hints",
    "check_identity_field",
    "check_version_field",
    "identity_field",
]
