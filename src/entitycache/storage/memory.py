"""In-memory document store implementation.

Simple dict-based store suitable for single-process use and testing. Mirrors
the parts of document database behaviour entity management relies on:
an implicit ``_id_`` index, ``<field>_1`` / ``<field>_-1`` / ``<field>_text``
index names, at most one text index per collection, and unique indexes that
refuse duplicate data both at creation and on write.

Usage:
    store = MemoryDocumentStore()
    store.create_index("player", "email", ascending=True, unique=True)
    store.get_collection("player").replace_one("p1", {"_id": "p1", "email": "a@b.c"})
"""

from __future__ import annotations

import copy as cp
import threading
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from entitycache.core.errors import DocumentStoreError
from entitycache.storage.protocol import Document, IndexInfo

_ID_INDEX = "_id_"


@dataclass(slots=True, frozen=True)
class _IndexState:
    key_fields: tuple[str, ...]
    unique: bool = False
    text: bool = False


class MemoryCollection:
    """One collection of a ``MemoryDocumentStore``.

    Documents are copied on the way in and out, so callers never share
    mutable state with the store.
    """

    def __init__(self, name: str, store: MemoryDocumentStore) -> None:
        self._name = name
        self._store = store
        self._documents: dict[Any, Document] = {}

    @property
    def name(self) -> str:
        """Collection name."""
        return self._name

    def find_one(self, document_id: Any) -> Document | None:
        """Get a copy of a document by identity."""
        with self._store._lock:
            document = self._documents.get(document_id)
            return cp.deepcopy(document) if document is not None else None

    def find(self, filter: Mapping[str, Any] | None = None) -> Iterator[Document]:
        """Iterate copies of documents matching every ``filter`` value."""
        with self._store._lock:
            matches = [
                cp.deepcopy(document)
                for document in self._documents.values()
                if all(document.get(key) == value for key, value in (filter or {}).items())
            ]
        return iter(matches)

    def replace_one(self, document_id: Any, document: Document, upsert: bool = True) -> bool:
        """Replace or insert a document, enforcing unique indexes.

        Args:
            document_id: Identity of the document.
            document: New content; ``_id`` is forced to ``document_id``.
            upsert: Insert when no document has this identity.

        Returns:
            True if a document was written.

        Raises:
            DocumentStoreError: If a unique index would be violated.
        """
        with self._store._lock:
            if document_id not in self._documents and not upsert:
                return False
            stored = {**cp.deepcopy(document), "_id": document_id}
            for index_name, index in self._store._indexes_of(self._name).items():
                if index.unique and self._conflicts(index, stored, document_id):
                    raise DocumentStoreError(
                        f"Duplicate key in collection [{self._name}] for unique index "
                        f"[{index_name}]: {_key_of(index, stored)}"
                    )
            self._documents[document_id] = stored
            return True

    def delete_one(self, document_id: Any) -> bool:
        """Delete a document. Returns True if it existed."""
        with self._store._lock:
            return self._documents.pop(document_id, None) is not None

    def count(self) -> int:
        """Number of documents in the collection."""
        with self._store._lock:
            return len(self._documents)

    def _conflicts(self, index: _IndexState, document: Document, document_id: Any) -> bool:
        key = _key_of(index, document)
        return any(
            _key_of(index, other) == key
            for other_id, other in self._documents.items()
            if other_id != document_id
        )


def _key_of(index: _IndexState, document: Document) -> tuple[Any, ...]:
    return tuple(document.get(name) for name in index.key_fields)


class MemoryDocumentStore:
    """Dict-backed ``DocumentStore``.

    Structure:
        _collections[name] = MemoryCollection
        _indexes[name][index_name] = index state
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._lock = threading.RLock()
        self._collections: dict[str, MemoryCollection] = {}
        self._indexes: dict[str, dict[str, _IndexState]] = {}

    def _indexes_of(self, collection_name: str) -> dict[str, _IndexState]:
        return self._indexes.setdefault(collection_name, {_ID_INDEX: _IndexState(("_id",), True)})

    def _ensure_collection(self, collection_name: str) -> MemoryCollection:
        collection = self._collections.get(collection_name)
        if collection is None:
            collection = MemoryCollection(collection_name, self)
            self._collections[collection_name] = collection
            self._indexes_of(collection_name)
        return collection

    def list_indexes(self, collection_name: str) -> Sequence[IndexInfo]:
        """List indexes of a collection; empty when the collection does not exist."""
        with self._lock:
            if collection_name not in self._collections:
                return []
            return [
                IndexInfo(name=name, key_fields=index.key_fields)
                for name, index in self._indexes_of(collection_name).items()
            ]

    def create_index(
        self, collection_name: str, field_name: str, ascending: bool, unique: bool
    ) -> str:
        """Create a single-field index, creating the collection if needed.

        Creating an identical index again is a no-op returning the same name.

        Raises:
            DocumentStoreError: If an index with the same name but different
                options exists, or unique data constraints are violated.
        """
        name = f"{field_name}_{1 if ascending else -1}"
        state = _IndexState((field_name,), unique=unique)
        with self._lock:
            collection = self._ensure_collection(collection_name)
            indexes = self._indexes_of(collection_name)
            existing = indexes.get(name)
            if existing is not None:
                if existing != state:
                    raise DocumentStoreError(
                        f"Index [{name}] already exists on [{collection_name}] "
                        f"with different options"
                    )
                return name
            if unique:
                seen: set[Any] = set()
                for document in collection._documents.values():
                    key = _key_of(state, document)
                    if key in seen:
                        raise DocumentStoreError(
                            f"Cannot create unique index [{name}] on [{collection_name}]: "
                            f"duplicate key {key}"
                        )
                    seen.add(key)
            indexes[name] = state
            return name

    def create_text_index(self, collection_name: str, field_name: str) -> str:
        """Create a text index, creating the collection if needed.

        Raises:
            DocumentStoreError: If the collection already has a different text index.
        """
        name = f"{field_name}_text"
        with self._lock:
            self._ensure_collection(collection_name)
            indexes = self._indexes_of(collection_name)
            other = next((n for n, index in indexes.items() if index.text and n != name), None)
            if other is not None:
                raise DocumentStoreError(
                    f"Collection [{collection_name}] already has text index [{other}]"
                )
            indexes[name] = _IndexState((field_name,), text=True)
            return name

    def get_collection(self, collection_name: str) -> MemoryCollection:
        """Get (creating if needed) a collection handle."""
        with self._lock:
            return self._ensure_collection(collection_name)

    def collection_names(self) -> list[str]:
        """Names of all existing collections."""
        with self._lock:
            return list(self._collections)
