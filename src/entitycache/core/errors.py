"""Exception hierarchy for entitycache.

Every error here is a startup-time configuration problem: nothing is retried,
and each message names the entity class (and field, where there is one).
"""

from __future__ import annotations


class EntityCacheError(Exception):
    """Base class for all entitycache errors."""


class EntityScanError(EntityCacheError):
    """Scanning the configured entity package failed."""


class EntityDefinitionError(EntityCacheError):
    """An entity type has a shape or declaration the cache cannot support."""


class UnsupportedFieldError(EntityDefinitionError):
    """A field type is rejected by the type safety validator."""


class IdentityFieldError(EntityDefinitionError):
    """The identity field is missing, duplicated, public or mistyped."""


class IdentityMismatchError(IdentityFieldError):
    """``id()`` does not return the value held by the identity field."""


class VersionFieldError(EntityDefinitionError):
    """The version field is duplicated, public or not an ``int``."""


class DuplicateTextIndexError(EntityDefinitionError):
    """More than one text index is declared on one entity type."""


class StrategyNotFoundError(EntityCacheError):
    """A named cache or persister strategy is not configured."""


class DocumentStoreError(EntityCacheError):
    """The document store rejected an operation."""


class IndexCreationError(EntityCacheError):
    """Creating a declared index failed."""


class EntityCacheLookupError(EntityCacheError, LookupError):
    """No cache handle is available for the requested type."""


class UnknownEntityError(EntityCacheLookupError):
    """The requested type was never registered as an entity."""


class EntityCacheReleasedError(EntityCacheLookupError):
    """The entity is known but its cache was never bound and has been released."""


class RegistryFinalizedError(EntityCacheError):
    """The registry no longer accepts new cache entries."""
