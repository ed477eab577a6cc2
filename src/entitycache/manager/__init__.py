"""Entity management startup and consumer interface."""

from entitycache.manager.manager import EntityManager

__all__ = ["EntityManager"]
