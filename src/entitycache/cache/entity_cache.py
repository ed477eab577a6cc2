"""Per-type entity cache: bounded LRU with idle expiry over a document collection.

Usage:
    cache = EntityCache(definition, store.get_collection(definition.collection_name))
    player = cache.load("p1")          # cache, then store on a miss
    player.set_name("neo")
    cache.update(player)               # mark dirty
    cache.persist_all()                # flush dirty entities
"""

from __future__ import annotations

import copy as cp
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from entitycache.core.entity.models import EntityDefinition
from entitycache.storage.codec import decode, encode
from entitycache.storage.protocol import DocumentCollection


@dataclass(slots=True)
class _Entry:
    entity: Any
    accessed_at: float
    dirty: bool = False


class EntityCache:
    """Cache handle for one entity type.

    Entries are evicted least-recently-used once ``cache_capacity`` is
    exceeded, and expire after ``cache_expiry_millis`` without access. Dirty
    entries are written back before they leave the cache; ``invalidate`` is
    the only way to drop pending changes.

    Args:
        definition: Metadata of the cached entity type.
        collection: Collection the entities are loaded from and written to.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        definition: EntityDefinition,
        collection: DocumentCollection,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._definition = definition
        self._collection = collection
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: OrderedDict[Any, _Entry] = OrderedDict()

    @property
    def definition(self) -> EntityDefinition:
        """Metadata of the cached entity type."""
        return self._definition

    @property
    def entity_type(self) -> type:
        return self._definition.entity_type

    @property
    def thread_safe(self) -> bool:
        return self._definition.thread_safe

    @property
    def collection(self) -> DocumentCollection:
        return self._collection

    def size(self) -> int:
        """Number of live (non-expired) entries."""
        with self._lock:
            self._expire()
            return len(self._entries)

    def get(self, entity_id: Any) -> Any | None:
        """Get a cached entity without touching the store.

        Returns:
            The entity, or None if it is not cached or has expired.
        """
        with self._lock:
            entry = self._touch(entity_id)
            return entry.entity if entry is not None else None

    def load(self, entity_id: Any) -> Any | None:
        """Get an entity, loading it from the store on a cache miss.

        Returns:
            The entity, or None if the store has no such document.
        """
        with self._lock:
            entry = self._touch(entity_id)
            if entry is not None:
                return entry.entity
            document = self._collection.find_one(entity_id)
            if document is None:
                return None
            entity = decode(self.entity_type, document)
            self._put(entity_id, _Entry(entity, self._clock()))
            return entity

    def update(self, entity: Any) -> None:
        """Cache an entity and mark it for the next flush."""
        with self._lock:
            self._put(entity.id(), _Entry(entity, self._clock(), dirty=True))

    def update_now(self, entity: Any) -> None:
        """Cache an entity and write it to the store immediately."""
        with self._lock:
            self._put(entity.id(), _Entry(entity, self._clock()))
            self._write(entity)

    def invalidate(self, entity_id: Any) -> bool:
        """Drop an entity from the cache, discarding unflushed changes.

        Returns:
            True if the entity was cached.
        """
        with self._lock:
            return self._entries.pop(entity_id, None) is not None

    def delete(self, entity_id: Any) -> bool:
        """Remove an entity from the cache and the store.

        Returns:
            True if the store held the document.
        """
        with self._lock:
            self._entries.pop(entity_id, None)
            return self._collection.delete_one(entity_id)

    def persist(self, entity_id: Any) -> bool:
        """Write one cached entity if it is dirty.

        Returns:
            True if a write happened.
        """
        with self._lock:
            entry = self._entries.get(entity_id)
            if entry is None or not entry.dirty:
                return False
            self._write(entry.entity)
            entry.dirty = False
            return True

    def persist_all(self) -> int:
        """Flush every dirty entity.

        Entities that are not thread-safe are deep-copied under the lock so
        encoding never races a concurrent mutation of their collections. An
        entry is marked clean only once its write succeeded, and only if it
        was not replaced in the meantime.

        Returns:
            Number of entities written.

        Raises:
            DocumentStoreError: If a write fails. Entries not yet written stay
                dirty and are retried by the next flush.
        """
        with self._lock:
            self._expire()
            pending: list[tuple[Any, _Entry, Any]] = [
                (entity_id, entry, entry.entity if self.thread_safe else cp.deepcopy(entry.entity))
                for entity_id, entry in self._entries.items()
                if entry.dirty
            ]
        written = 0
        try:
            for entity_id, entry, snapshot in pending:
                self._write(snapshot)
                written += 1
                with self._lock:
                    if self._entries.get(entity_id) is entry:
                        entry.dirty = False
        finally:
            if written:
                logger.debug("Persisted {} [{}] entities", written, self._definition.name)
        return written

    def _touch(self, entity_id: Any) -> _Entry | None:
        self._expire()
        entry = self._entries.get(entity_id)
        if entry is not None:
            entry.accessed_at = self._clock()
            self._entries.move_to_end(entity_id)
        return entry

    def _put(self, entity_id: Any, entry: _Entry) -> None:
        self._entries.pop(entity_id, None)
        self._entries[entity_id] = entry
        while len(self._entries) > self._definition.cache_capacity:
            _, evicted = self._entries.popitem(last=False)
            if evicted.dirty:
                self._write(evicted.entity)

    def _expire(self) -> None:
        deadline = self._clock() - self._definition.cache_expiry_millis / 1000
        # Entries are kept in access order, so expired ones are at the front.
        while self._entries:
            entity_id, entry = next(iter(self._entries.items()))
            if entry.accessed_at > deadline:
                break
            del self._entries[entity_id]
            if entry.dirty:
                self._write(entry.entity)

    def _write(self, entity: Any) -> None:
        entity_id = entity.id()
        self._collection.replace_one(entity_id, encode(entity), upsert=True)

    def __repr__(self) -> str:
        return f"EntityCache({self._definition.name}, size={len(self._entries)})"
