"""End-to-end startup: scan, validate, reconcile, bind, finalize, use.

Runs against the sample entity package used by the discovery tests.
"""

from pathlib import Path

import pytest

from entitycache import CacheStrategy, EntityManager, MemoryDocumentStore, OrmSettings
from entitycache.core.errors import DocumentStoreError, EntityCacheReleasedError

SAMPLES = Path(__file__).parent.parent / "discovery"


@pytest.fixture
def samples(monkeypatch):
    monkeypatch.syspath_prepend(str(SAMPLES))
    import sample_entities.guilds
    import sample_entities.nested.items
    import sample_entities.players

    return sample_entities


@pytest.fixture
def scan_settings(samples) -> OrmSettings:
    return OrmSettings(
        _env_file=None,
        entity_package="sample_entities",
        caches=[CacheStrategy(strategy="items", size=10)],
    )


def test_full_startup_sequence(samples, scan_settings, log_messages):
    PlayerEntity = samples.players.PlayerEntity
    ItemEntity = samples.nested.items.ItemEntity
    Guild = samples.guilds.Guild
    store = MemoryDocumentStore()
    manager = EntityManager(scan_settings, store)

    manager.initialize()
    players = manager.bind(PlayerEntity)
    items = manager.bind(ItemEntity)
    released = manager.finalize()

    assert released == [Guild]
    assert set(manager.all_caches()) == {players, items}
    assert manager.definition(ItemEntity).cache_capacity == 10
    assert manager.definition(PlayerEntity).thread_safe is False
    assert sorted(store.collection_names()) == ["guild", "item", "player"]
    assert any("PlayerEntity" in m and "not thread-safe" in m for m in log_messages)
    with pytest.raises(EntityCacheReleasedError):
        manager.get_cache(Guild)


def test_entities_round_trip_through_cache_and_store(samples, scan_settings):
    PlayerEntity = samples.players.PlayerEntity
    store = MemoryDocumentStore()
    manager = EntityManager(scan_settings, store)
    manager.initialize()
    players = manager.bind(PlayerEntity)
    manager.finalize()

    players.update(PlayerEntity(_id="p1", email="neo@x.io", friends=["trinity"]))
    manager.persist_all()
    players.invalidate("p1")

    loaded = players.load("p1")
    assert loaded.email == "neo@x.io"
    assert loaded.friends == ["trinity"]


def test_reconciled_unique_index_is_enforced(samples, scan_settings):
    PlayerEntity = samples.players.PlayerEntity
    manager = EntityManager(scan_settings, MemoryDocumentStore())
    manager.initialize()
    players = manager.bind(PlayerEntity)

    players.update_now(PlayerEntity(_id="p1", email="same@x.io"))
    with pytest.raises(DocumentStoreError, match="email"):
        players.update_now(PlayerEntity(_id="p2", email="same@x.io"))


def test_restart_over_existing_store_creates_no_indexes(samples, scan_settings, log_messages):
    store = MemoryDocumentStore()
    EntityManager(scan_settings, store).initialize()
    first_run = [m for m in log_messages if "auto created" in m]

    log_messages.clear()
    EntityManager(scan_settings, store).initialize()

    assert len(first_run) == 3
    assert not [m for m in log_messages if "auto created" in m]
