"""Tests for the two-phase entity cache registry.

Critical Invariants:
- After finalize, all_caches() is exactly the set of bound types
- Unknown and released types fail with distinguishable errors
- The registry is read-only after finalize
"""

import pytest

from entitycache.cache import EntityCacheRegistry
from entitycache.core import build_definition
from entitycache.core.errors import (
    EntityCacheLookupError,
    EntityCacheReleasedError,
    RegistryFinalizedError,
    UnknownEntityError,
)


class NotAnEntity:
    pass


@pytest.fixture
def registry(player_cls, guild_cls, settings, store) -> EntityCacheRegistry:
    registry = EntityCacheRegistry()
    for cls in (player_cls, guild_cls):
        definition = build_definition(cls, settings)
        registry.create(definition, store.get_collection(definition.collection_name))
    return registry


def test_bind_returns_the_created_cache(registry, player_cls):
    cache = registry.bind(player_cls)

    assert cache.entity_type is player_cls
    assert registry.bind(player_cls) is cache
    assert registry.get(player_cls) is cache


def test_finalize_releases_unbound_caches(registry, player_cls, guild_cls, log_messages):
    registry.bind(player_cls)

    released = registry.finalize()

    assert released == [guild_cls]
    assert registry.is_finalized
    assert [cache.entity_type for cache in registry.all_caches()] == [player_cls]
    assert any("FixtureGuild" in message and "released" in message for message in log_messages)


def test_released_and_unknown_types_are_distinguishable(registry, player_cls, guild_cls):
    """CRITICAL: a released type is not reported as "not an entity".

    Why: the fix differs (bind it during startup vs. declare it an entity).
    """
    registry.bind(player_cls)
    registry.finalize()

    with pytest.raises(EntityCacheReleasedError, match="FixtureGuild"):
        registry.bind(guild_cls)
    with pytest.raises(EntityCacheReleasedError):
        registry.get(guild_cls)
    with pytest.raises(UnknownEntityError, match="NotAnEntity"):
        registry.bind(NotAnEntity)
    with pytest.raises(EntityCacheLookupError):
        registry.get(NotAnEntity)


def test_get_of_unbound_type_before_finalize_fails(registry, guild_cls):
    with pytest.raises(EntityCacheReleasedError, match="not bound"):
        registry.get(guild_cls)


def test_bound_cache_survives_finalize(registry, player_cls):
    cache = registry.bind(player_cls)
    registry.finalize()

    assert registry.get(player_cls) is cache
    assert registry.bind(player_cls) is cache


def test_create_after_finalize_is_rejected(registry, player_cls, settings, store):
    registry.finalize()

    with pytest.raises(RegistryFinalizedError):
        registry.create(build_definition(player_cls, settings), store.get_collection("x"))


def test_finalize_twice_is_a_no_op(registry, player_cls):
    registry.bind(player_cls)

    assert len(registry.finalize()) == 1
    assert registry.finalize() == []
    assert len(registry.all_caches()) == 1


def test_all_caches_is_a_tuple_of_bound_caches(registry, player_cls, guild_cls):
    assert registry.all_caches() == ()
    registry.bind(guild_cls)
    registry.bind(player_cls)

    caches = registry.all_caches()

    assert isinstance(caches, tuple)
    assert {cache.entity_type for cache in caches} == {player_cls, guild_cls}
    assert registry.finalize() == []
