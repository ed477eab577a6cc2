"""Configuration module using Pydantic Settings.

Provides typed configuration for entity discovery, the document store
connection and the named cache/persister strategies.

Usage:
    from entitycache.config import OrmSettings, CacheStrategy

    settings = OrmSettings(entity_package="myapp.entities")
"""

from entitycache.config.settings import (
    DEFAULT_CACHE_STRATEGY,
    DEFAULT_PERSISTER_STRATEGY,
    DEFAULT_STRATEGY_NAME,
    CacheStrategy,
    HostSettings,
    OrmSettings,
    PersisterStrategy,
    PersisterType,
)

__all__ = [
    "OrmSettings",
    "HostSettings",
    "CacheStrategy",
    "PersisterStrategy",
    "PersisterType",
    "DEFAULT_STRATEGY_NAME",
    "DEFAULT_CACHE_STRATEGY",
    "DEFAULT_PERSISTER_STRATEGY",
]
