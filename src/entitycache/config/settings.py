"""Configuration settings using Pydantic Settings.

Provides typed configuration with environment variable support.

Usage:
    from entitycache.config import OrmSettings, CacheStrategy

    # Load from environment variables (ORM_*, nested with "__")
    settings = OrmSettings()

    # Or override with explicit values
    settings = OrmSettings(
        entity_package="myapp.entities",
        caches=[CacheStrategy(strategy="hot", size=50_000, expire_millisecond=60_000)],
    )
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STRATEGY_NAME = "default"


class PersisterType(str, Enum):
    """How a persister decides when to flush dirty entities."""

    TIME = "time"  # config is an interval in milliseconds
    CRON = "cron"  # config is a cron expression


class CacheStrategy(BaseModel):
    """Named cache sizing and expiry policy.

    Attributes:
        strategy: Name referenced by ``@entity_cache(cache=...)``.
        size: Maximum number of cached instances per entity type.
        expire_millisecond: Idle time after which a cached instance expires.
    """

    model_config = ConfigDict(frozen=True)

    strategy: str
    size: int = Field(default=10_000, gt=0)
    expire_millisecond: int = Field(default=10 * 60 * 1000, gt=0)


class PersisterStrategy(BaseModel):
    """Named policy controlling when a cache flushes to the store.

    Attributes:
        strategy: Name referenced by ``@entity_cache(persister=...)``.
        type: Flush trigger kind.
        config: Interval in milliseconds (TIME) or cron expression (CRON).
    """

    model_config = ConfigDict(frozen=True)

    strategy: str
    type: PersisterType = PersisterType.TIME
    config: str = "180000"


DEFAULT_CACHE_STRATEGY = CacheStrategy(strategy=DEFAULT_STRATEGY_NAME)
DEFAULT_PERSISTER_STRATEGY = PersisterStrategy(strategy=DEFAULT_STRATEGY_NAME)


class HostSettings(BaseModel):
    """Document store connection parameters.

    Attributes:
        database: Database name.
        address: Named groups of comma-separated ``host:port`` entries.
        user: User name (authentication is skipped when unset).
        password: Password.
        auth_source: Authentication database, ``admin`` when unset.
    """

    database: str = "test"
    address: dict[str, str] = Field(default_factory=dict)
    user: str | None = None
    password: SecretStr | None = None
    auth_source: str | None = None

    def server_addresses(self) -> list[tuple[str, int]]:
        """Flatten ``address`` into ``(host, port)`` pairs.

        Returns:
            Pairs in declaration order; blank entries are skipped.

        Raises:
            ValueError: If an entry is not ``host:port``.
        """
        result: list[tuple[str, int]] = []
        for group in self.address.values():
            for entry in group.split(","):
                entry = entry.strip()
                if not entry:
                    continue
                host, sep, port = entry.rpartition(":")
                if not sep or not host or not port.isdigit():
                    raise ValueError(f"Invalid store address '{entry}', expected host:port")
                result.append((host, int(port)))
        return result

    def credentials(self) -> tuple[str, str, str] | None:
        """Return ``(user, password, auth_source)`` when both user and password are set."""
        if not self.user or self.password is None or not self.password.get_secret_value():
            return None
        return self.user, self.password.get_secret_value(), self.auth_source or "admin"


class OrmSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for entity management.

    Attributes:
        entity_package: Dotted package scanned for entity classes.
        host: Document store connection parameters.
        caches: Named cache strategies.
        persisters: Named persister strategies.

    Environment Variables:
        ORM_ENTITY_PACKAGE
        ORM_HOST__DATABASE, ORM_HOST__ADDRESS, ORM_HOST__USER,
        ORM_HOST__PASSWORD, ORM_HOST__AUTH_SOURCE
        ORM_CACHES, ORM_PERSISTERS (JSON lists)
    """

    model_config = SettingsConfigDict(
        env_prefix="ORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    entity_package: str | None = None
    host: HostSettings = Field(default_factory=HostSettings)
    caches: list[CacheStrategy] = Field(default_factory=list)
    persisters: list[PersisterStrategy] = Field(default_factory=list)

    @field_validator("caches", "persisters")
    @classmethod
    def _unique_names(
        cls, value: list[CacheStrategy] | list[PersisterStrategy]
    ) -> list[CacheStrategy] | list[PersisterStrategy]:
        names = [item.strategy for item in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate strategy names: {', '.join(duplicates)}")
        return value
