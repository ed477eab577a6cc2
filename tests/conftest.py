"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from dataclasses import dataclass, field

from loguru import logger

from entitycache import (
    CacheStrategy,
    EntityManager,
    MemoryDocumentStore,
    OrmSettings,
    entity_cache,
    identity,
    index,
    text_index,
    version,
)


@entity_cache(cache="players")
@dataclass
class FixturePlayerEntity:
    _id: str = identity(default="")
    _email: str = index(unique=True, default="")
    _bio: str = text_index(default="")
    _version: int = version()
    level: int = 0
    tags: list[str] = field(default_factory=list)

    def id(self) -> str:
        return self._id

    @property
    def email(self) -> str:
        return self._email

    @email.setter
    def email(self, value: str) -> None:
        self._email = value

    @property
    def bio(self) -> str:
        return self._bio

    @bio.setter
    def bio(self, value: str) -> None:
        self._bio = value

    def get_version(self) -> int:
        return self._version

    def set_version(self, value: int) -> None:
        self._version = value


@dataclass
class FixtureGuild:
    _id: int = identity(default=0)
    name: str = ""
    members: frozenset[str] = frozenset()

    def id(self) -> int:
        return self._id


@pytest.fixture
def settings() -> OrmSettings:
    """Settings with one named cache strategy, isolated from env files."""
    return OrmSettings(
        _env_file=None,
        caches=[CacheStrategy(strategy="players", size=100, expire_millisecond=60_000)],
    )


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Fresh in-memory document store."""
    return MemoryDocumentStore()


@pytest.fixture
def player_cls():
    return FixturePlayerEntity


@pytest.fixture
def guild_cls():
    return FixtureGuild


@pytest.fixture
def manager(settings, store) -> EntityManager:
    """Initialized manager over the fixture entities."""
    manager = EntityManager(settings, store, [FixturePlayerEntity, FixtureGuild])
    manager.initialize()
    return manager


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
