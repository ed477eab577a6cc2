"""Cache and persister strategy resolution.

Strategies are resolved by exact name. Entities without an ``@entity_cache``
marker use the reserved name ``"default"``. A configured strategy always wins;
the reserved name falls back to the built-in defaults and any other missing
name is a configuration error. The same rule applies to both strategy kinds.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from entitycache.config.settings import (
    DEFAULT_CACHE_STRATEGY,
    DEFAULT_PERSISTER_STRATEGY,
    DEFAULT_STRATEGY_NAME,
    CacheStrategy,
    OrmSettings,
    PersisterStrategy,
)
from entitycache.core.entity.core import get_marker
from entitycache.core.errors import StrategyNotFoundError

S = TypeVar("S", CacheStrategy, PersisterStrategy)


def find_strategy(strategies: Sequence[S], name: str) -> S | None:
    """Find a strategy by exact name.

    Args:
        strategies: Configured strategies.
        name: Strategy name to match.

    Returns:
        First strategy with that name, None if absent.
    """
    return next((s for s in strategies if s.strategy == name), None)


def _resolve(strategies: Sequence[S], name: str, builtin: S, kind: str, cls: type) -> S:
    found = find_strategy(strategies, name)
    if found is not None:
        return found
    if name == DEFAULT_STRATEGY_NAME:
        return builtin
    raise StrategyNotFoundError(
        f"No {kind} strategy [{name}] configured for entity [{cls.__name__}]"
    )


def resolve_strategies(
    cls: type, settings: OrmSettings
) -> tuple[CacheStrategy, PersisterStrategy]:
    """Resolve the cache and persister strategy for an entity type.

    Args:
        cls: Entity class.
        settings: Configuration holding the named strategy lists.

    Returns:
        Tuple of (cache strategy, persister strategy).

    Raises:
        StrategyNotFoundError: If the entity's marker names a strategy other
            than ``"default"`` that is not configured.
    """
    marker = get_marker(cls)
    cache_name = marker.cache if marker else DEFAULT_STRATEGY_NAME
    persister_name = marker.persister if marker else DEFAULT_STRATEGY_NAME
    return (
        _resolve(settings.caches, cache_name, DEFAULT_CACHE_STRATEGY, "cache", cls),
        _resolve(
            settings.persisters, persister_name, DEFAULT_PERSISTER_STRATEGY, "persister", cls
        ),
    )
