"""Entity discovery."""

from entitycache.discovery.scanner import discover_entities, entity_classes, iter_modules

__all__ = [
    "discover_entities",
    "entity_classes",
    "iter_modules",
]
