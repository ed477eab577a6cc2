"""Tests for EntityManager startup and consumer interface."""

from dataclasses import dataclass, field

import pytest

from entitycache import (
    EntityManager,
    MemoryDocumentStore,
    OrmSettings,
    entity_cache,
    identity,
)
from entitycache.core.errors import (
    EntityCacheError,
    EntityCacheReleasedError,
    IndexCreationError,
    StrategyNotFoundError,
    UnknownEntityError,
)


@entity_cache(cache="nowhere")
@dataclass
class Orphan:
    _id: str = identity(default="")

    def id(self) -> str:
        return self._id


@dataclass
class Ledger:
    """Unsafe but not cached: no advisory."""

    _id: str = identity(default="")
    lines: list[str] = field(default_factory=list)

    def id(self) -> str:
        return self._id


class RefusingStore(MemoryDocumentStore):
    def create_index(self, collection_name, field_name, ascending, unique):
        raise RuntimeError("refused")


def test_initialize_builds_definitions_and_indexes(manager, store, player_cls, guild_cls):
    assert set(manager.definitions) == {player_cls, guild_cls}
    assert manager.is_initialized
    index_names = {index.name for index in store.list_indexes("fixturePlayer")}
    assert {"email_1", "bio_text"} <= index_names


def test_initialize_returns_definitions_in_discovery_order(settings, store, player_cls, guild_cls):
    manager = EntityManager(settings, store, [guild_cls, player_cls])

    definitions = manager.initialize()

    assert [d.entity_type for d in definitions] == [guild_cls, player_cls]


def test_advisory_lists_cached_unsafe_entities(settings, store, player_cls, log_messages):
    EntityManager(settings, store, [player_cls, Ledger]).initialize()

    warnings = [m for m in log_messages if "not thread-safe" in m]
    assert len(warnings) == 1
    assert "FixturePlayerEntity" in warnings[0]
    assert "Ledger" not in warnings[0]


def test_initialize_twice_is_rejected(manager):
    with pytest.raises(EntityCacheError, match="already initialized"):
        manager.initialize()


def test_bind_and_finalize(manager, player_cls, guild_cls):
    players = manager.bind(player_cls)

    assert manager.finalize() == [guild_cls]
    assert manager.all_caches() == (players,)
    assert manager.get_cache(player_cls) is players
    with pytest.raises(EntityCacheReleasedError):
        manager.bind(guild_cls)


def test_definition_and_collection_lookup(manager, player_cls):
    assert manager.definition(player_cls).collection_name == "fixturePlayer"
    assert manager.get_collection(player_cls).name == "fixturePlayer"
    with pytest.raises(UnknownEntityError, match="Orphan"):
        manager.definition(Orphan)


def test_persist_all_flushes_bound_caches(manager, player_cls, guild_cls):
    players = manager.bind(player_cls)
    guilds = manager.bind(guild_cls)
    players.update(player_cls(_id="p1", _email="p1@x.io"))
    guilds.update(guild_cls(_id=1, name="red"))

    assert manager.persist_all() == 2
    assert manager.get_collection(guild_cls).find_one(1)["name"] == "red"


def test_missing_strategy_aborts_startup(settings, store, player_cls):
    manager = EntityManager(settings, store, [player_cls, Orphan])

    with pytest.raises(StrategyNotFoundError, match="nowhere"):
        manager.initialize()
    assert not manager.is_initialized
    assert len(manager.registry) == 0
    assert store.collection_names() == []


def test_index_failure_aborts_startup(settings, player_cls):
    manager = EntityManager(settings, RefusingStore(), [player_cls])

    with pytest.raises(IndexCreationError):
        manager.initialize()
    assert not manager.is_initialized
