"""Adapters for external document databases.

Usage:
    from entitycache.adapters.mongo import MongoDocumentStore
"""

from entitycache.adapters.mongo import MongoCollection, MongoDocumentStore

__all__ = [
    "MongoDocumentStore",
    "MongoCollection",
]
