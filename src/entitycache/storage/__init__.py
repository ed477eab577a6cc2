"""Storage: document store protocol, codec, in-memory store and index reconciliation."""

from entitycache.storage.codec import decode, encode
from entitycache.storage.indexes import IndexReconciler
from entitycache.storage.memory import MemoryCollection, MemoryDocumentStore
from entitycache.storage.protocol import Document, DocumentCollection, DocumentStore, IndexInfo

__all__ = [
    "DocumentStore",
    "DocumentCollection",
    "Document",
    "IndexInfo",
    "MemoryDocumentStore",
    "MemoryCollection",
    "IndexReconciler",
    "encode",
    "decode",
]
