"""Tests for EntityCache.

Critical Invariants:
- Dirty entities reach the store before they leave the cache (eviction,
  expiry, flush); only invalidate discards pending changes
- Capacity is a hard bound, evicting least recently used entries
- Entities that are not thread-safe are flushed from a deep copy
"""

import copy
import dataclasses
from unittest.mock import MagicMock, patch

import pytest

from entitycache.cache import EntityCache
from entitycache.core import build_definition
from entitycache.core.errors import DocumentStoreError
from entitycache.storage import encode


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def players(player_cls, settings, store, clock) -> EntityCache:
    """Player cache: capacity 100, entries expire after 60 idle seconds."""
    definition = build_definition(player_cls, settings)
    return EntityCache(definition, store.get_collection(definition.collection_name), clock=clock)


def make_player(player_cls, player_id: str, level: int = 0):
    return player_cls(_id=player_id, _email=f"{player_id}@x.io", level=level)


def test_handle_exposes_definition(players, player_cls):
    assert players.entity_type is player_cls
    assert players.thread_safe is False
    assert players.definition.collection_name == "fixturePlayer"
    assert players.size() == 0


def test_load_reads_through_to_store(players, player_cls):
    players.collection.replace_one("p1", encode(make_player(player_cls, "p1", level=3)))

    assert players.get("p1") is None
    loaded = players.load("p1")

    assert loaded == make_player(player_cls, "p1", level=3)
    assert players.get("p1") is loaded
    assert players.load("p1") is loaded
    assert players.size() == 1


def test_load_of_missing_document_returns_none(players):
    assert players.load("ghost") is None
    assert players.size() == 0


def test_update_is_written_only_on_persist(players, player_cls):
    player = make_player(player_cls, "p1")
    players.update(player)

    assert players.collection.find_one("p1") is None
    assert players.persist("p1") is True
    assert players.collection.find_one("p1")["email"] == "p1@x.io"
    assert players.persist("p1") is False


def test_update_now_writes_through(players, player_cls):
    players.update_now(make_player(player_cls, "p1", level=5))

    assert players.collection.find_one("p1")["level"] == 5
    assert players.persist_all() == 0


def test_persist_all_flushes_every_dirty_entity(players, player_cls):
    for player_id in ("p1", "p2", "p3"):
        players.update(make_player(player_cls, player_id))

    assert players.persist_all() == 3
    assert players.collection.count() == 3
    assert players.persist_all() == 0


def test_failed_flush_keeps_unwritten_entities_dirty(players, player_cls):
    """CRITICAL: a write failure mid-flush loses no pending changes.

    Why: entries marked clean before their write would never be written
    again, neither by the next flush nor on eviction.
    """
    for player_id in ("p1", "p2", "p3"):
        players.update(make_player(player_cls, player_id))
    original = players.collection.replace_one
    calls = []

    def fail_first_write(*args, **kwargs):
        calls.append(args[0])
        if len(calls) == 1:
            raise DocumentStoreError("refused")
        return original(*args, **kwargs)

    with patch.object(players.collection, "replace_one", side_effect=fail_first_write):
        with pytest.raises(DocumentStoreError, match="refused"):
            players.persist_all()

    assert players.collection.count() == 0
    assert players.persist_all() == 3
    assert players.collection.count() == 3
    assert players.persist_all() == 0


def test_entry_replaced_during_flush_stays_dirty(players, player_cls):
    players.update(make_player(player_cls, "p1", level=1))
    original = players.collection.replace_one

    def write_then_update(*args, **kwargs):
        result = original(*args, **kwargs)
        players.update(make_player(player_cls, "p1", level=2))
        return result

    with patch.object(players.collection, "replace_one", side_effect=write_then_update):
        assert players.persist_all() == 1

    assert players.collection.find_one("p1")["level"] == 1
    assert players.persist_all() == 1
    assert players.collection.find_one("p1")["level"] == 2


def test_least_recently_used_entry_is_evicted_and_written(player_cls, settings, store, clock):
    definition = dataclasses.replace(build_definition(player_cls, settings), cache_capacity=2)
    cache = EntityCache(definition, store.get_collection("fixturePlayer"), clock=clock)

    cache.update(make_player(player_cls, "p1"))
    cache.update(make_player(player_cls, "p2"))
    cache.get("p1")
    cache.update(make_player(player_cls, "p3"))

    assert cache.size() == 2
    assert cache.get("p2") is None
    assert store.get_collection("fixturePlayer").find_one("p2") is not None
    assert cache.load("p2") is not None


def test_idle_entries_expire_and_are_written(players, player_cls, clock):
    players.update(make_player(player_cls, "p1"))
    clock.advance(30)
    players.update(make_player(player_cls, "p2"))
    clock.advance(31)

    assert players.get("p1") is None
    assert players.get("p2") is not None
    assert players.collection.find_one("p1") is not None


def test_access_keeps_entries_alive(players, player_cls, clock):
    players.update(make_player(player_cls, "p1"))
    for _ in range(3):
        clock.advance(50)
        assert players.get("p1") is not None


def test_invalidate_discards_pending_changes(players, player_cls):
    players.update(make_player(player_cls, "p1"))

    assert players.invalidate("p1") is True
    assert players.invalidate("p1") is False
    assert players.persist_all() == 0
    assert players.collection.find_one("p1") is None


def test_delete_removes_from_cache_and_store(players, player_cls):
    players.update_now(make_player(player_cls, "p1"))

    assert players.delete("p1") is True
    assert players.get("p1") is None
    assert players.collection.find_one("p1") is None
    assert players.delete("p1") is False


def test_unsafe_entities_are_flushed_from_copies(player_cls, guild_cls, settings):
    """CRITICAL: non-thread-safe entities are deep-copied before encoding.

    Why: encoding iterates mutable collections another thread may be changing.
    """
    players = EntityCache(build_definition(player_cls, settings), MagicMock())
    guilds = EntityCache(build_definition(guild_cls, settings), MagicMock())
    players.update(make_player(player_cls, "p1"))
    guilds.update(guild_cls(_id=1, name="red"))

    with patch.object(copy, "deepcopy", wraps=copy.deepcopy) as deepcopy:
        guilds.persist_all()
        assert deepcopy.call_count == 0
        players.persist_all()
        assert deepcopy.call_count >= 1

    players.collection.replace_one.assert_called_once()
    guilds.collection.replace_one.assert_called_once_with(
        1, {"_id": 1, "name": "red", "members": []}, upsert=True
    )
