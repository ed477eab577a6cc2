"""Document store protocol for swappable backends.

The storage layer abstracts the document database, enabling:
- In-memory (default, tests and local development)
- MongoDB (``entitycache.adapters.mongo``)

Usage:
    store = MemoryDocumentStore()
    manager = EntityManager(settings, store)
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

Document = dict[str, Any]


@dataclass(slots=True, frozen=True)
class IndexInfo:
    """An index as reported by the store.

    Attributes:
        name: Store-assigned index name.
        key_fields: Document keys covered by the index, in order.
    """

    name: str
    key_fields: tuple[str, ...]


@runtime_checkable
class DocumentCollection(Protocol):
    """Typed read/write access to one collection, keyed by ``_id``."""

    @property
    def name(self) -> str:
        """Collection name."""
        ...

    def find_one(self, document_id: Any) -> Document | None:
        """Get a document by identity."""
        ...

    def find(self, filter: Mapping[str, Any] | None = None) -> Iterator[Document]:
        """Iterate documents whose fields equal every value in ``filter``."""
        ...

    def replace_one(self, document_id: Any, document: Document, upsert: bool = True) -> bool:
        """Replace (or insert) a document. Returns True if a document was written."""
        ...

    def delete_one(self, document_id: Any) -> bool:
        """Delete a document. Returns True if it existed."""
        ...

    def count(self) -> int:
        """Number of documents in the collection."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Abstract document database capability consumed by entity management."""

    def list_indexes(self, collection_name: str) -> Sequence[IndexInfo]:
        """List existing indexes of a collection (empty if it does not exist)."""
        ...

    def create_index(
        self, collection_name: str, field_name: str, ascending: bool, unique: bool
    ) -> str:
        """Create a single-field index. Returns the index name."""
        ...

    def create_text_index(self, collection_name: str, field_name: str) -> str:
        """Create a full-text index. Returns the index name."""
        ...

    def get_collection(self, collection_name: str) -> DocumentCollection:
        """Get a handle for reading and writing documents."""
        ...
