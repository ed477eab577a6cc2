"""Entity discovery by walking a package.

Every module under the scan root is imported and every class defined in it
that carries ``@entity_cache`` or is a dataclass implementing ``Entity``
becomes a candidate. An explicit list of types bypasses the walk.

Usage:
    types = discover_entities("game.entities")
    types = discover_entities(None, [Player, Account])
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from collections.abc import Iterable, Iterator
from types import ModuleType

from loguru import logger

from entitycache.core.entity.core import is_entity_candidate
from entitycache.core.errors import EntityScanError


def _import(module_name: str) -> ModuleType:
    try:
        return importlib.import_module(module_name)
    except Exception as e:
        raise EntityScanError(f"Failed to import module [{module_name}]: {e}") from e


def _raise_walk_error(module_name: str) -> None:
    raise EntityScanError(f"Failed to import package [{module_name}] while scanning")


def iter_modules(scan_root: str) -> Iterator[ModuleType]:
    """Import the scan root and every module below it.

    Args:
        scan_root: Dotted name of a package (or a single module).

    Yields:
        Imported modules, the root first.

    Raises:
        EntityScanError: If any module fails to import.
    """
    root = _import(scan_root)
    yield root
    if not hasattr(root, "__path__"):
        return
    for _finder, name, _ispkg in pkgutil.walk_packages(
        root.__path__, prefix=f"{scan_root}.", onerror=_raise_walk_error
    ):
        yield _import(name)


def entity_classes(module: ModuleType) -> list[type]:
    """Entity candidates defined (not merely imported) in a module."""
    return [
        obj
        for _, obj in inspect.getmembers(module, inspect.isclass)
        if obj.__module__ == module.__name__ and is_entity_candidate(obj)
    ]


def discover_entities(
    scan_root: str | None, entity_types: Iterable[type] | None = None
) -> list[type]:
    """Collect the entity types to manage.

    Args:
        scan_root: Package to scan; ignored when ``entity_types`` is given.
        entity_types: Explicit entity types.

    Returns:
        Entity types without duplicates, in first-seen order.

    Raises:
        EntityScanError: If scanning fails or there is nothing to scan.
    """
    if entity_types is not None:
        found = list(entity_types)
        source = "explicit list"
    elif scan_root:
        found = [cls for module in iter_modules(scan_root) for cls in entity_classes(module)]
        source = scan_root
    else:
        raise EntityScanError("No entity package configured and no entity types given")

    discovered = list(dict.fromkeys(found))
    if not discovered:
        logger.warning("No entity found in [{}]", source)
    else:
        logger.debug("Discovered {} entities in [{}]", len(discovered), source)
    return discovered
