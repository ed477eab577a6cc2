"""MongoDB adapter implementing the DocumentStore protocol.

Usage:
    from entitycache.adapters.mongo import MongoDocumentStore
    from entitycache.config import OrmSettings

    settings = OrmSettings()
    store = MongoDocumentStore.from_settings(settings.host)

    # Or wrap an existing database handle
    store = MongoDocumentStore(MongoClient()["game"])
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from loguru import logger
from pymongo import ASCENDING, DESCENDING, TEXT, MongoClient
from pymongo.errors import PyMongoError

from entitycache.core.errors import DocumentStoreError
from entitycache.storage.protocol import Document, IndexInfo

if TYPE_CHECKING:
    from pymongo.collection import Collection
    from pymongo.database import Database

    from entitycache.config.settings import HostSettings


class MongoCollection:
    """``DocumentCollection`` over a pymongo collection."""

    def __init__(self, collection: Collection[Document]) -> None:
        self._collection = collection

    @property
    def name(self) -> str:
        """Collection name."""
        return self._collection.name

    def find_one(self, document_id: Any) -> Document | None:
        """Get a document by identity."""
        return self._collection.find_one({"_id": document_id})

    def find(self, filter: Mapping[str, Any] | None = None) -> Iterator[Document]:
        """Iterate documents matching ``filter``."""
        return iter(self._collection.find(dict(filter or {})))

    def replace_one(self, document_id: Any, document: Document, upsert: bool = True) -> bool:
        """Replace or insert a document.

        Raises:
            DocumentStoreError: If the server rejects the write.
        """
        try:
            result = self._collection.replace_one(
                {"_id": document_id}, {**document, "_id": document_id}, upsert=upsert
            )
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Failed to write [{document_id}] to collection [{self.name}]: {e}"
            ) from e
        return result.matched_count > 0 or result.upserted_id is not None

    def delete_one(self, document_id: Any) -> bool:
        """Delete a document. Returns True if it existed."""
        return self._collection.delete_one({"_id": document_id}).deleted_count > 0

    def count(self) -> int:
        """Number of documents in the collection."""
        return self._collection.count_documents({})


class MongoDocumentStore:
    """``DocumentStore`` backed by a MongoDB database.

    Args:
        database: pymongo database handle.
        client: Owning client, closed by ``close()`` when given.
    """

    def __init__(self, database: Database[Document], client: MongoClient[Document] | None = None):
        self._database = database
        self._client = client

    @classmethod
    def from_settings(cls, host: HostSettings) -> MongoDocumentStore:
        """Connect using the configured addresses and credentials.

        The pool holds between 1 and ``2 * cpu_count + 1`` connections. When
        no address is configured the driver default (``localhost:27017``) is used.
        UUIDs use the standard binary representation.

        Args:
            host: Connection parameters.

        Returns:
            Store owning a new client.
        """
        options: dict[str, Any] = {
            "maxPoolSize": (os.cpu_count() or 1) * 2 + 1,
            "minPoolSize": 1,
            "uuidRepresentation": "standard",
        }
        addresses = host.server_addresses()
        if addresses:
            options["host"] = [f"{address}:{port}" for address, port in addresses]
        credentials = host.credentials()
        if credentials is not None:
            user, password, auth_source = credentials
            options.update(username=user, password=password, authSource=auth_source)

        client: MongoClient[Document] = MongoClient(**options)
        logger.info("Connecting to database [{}] at {}", host.database, addresses or "default")
        return cls(client[host.database], client)

    def list_indexes(self, collection_name: str) -> Sequence[IndexInfo]:
        """List indexes of a collection.

        Text indexes report their fields through ``weights``; the server keys
        them as ``_fts``/``_ftsx``.
        """
        return [
            IndexInfo(name=index["name"], key_fields=_key_fields(index))
            for index in self._database[collection_name].list_indexes()
        ]

    def create_index(
        self, collection_name: str, field_name: str, ascending: bool, unique: bool
    ) -> str:
        """Create a single-field index.

        Raises:
            DocumentStoreError: If the server refuses the index.
        """
        direction = ASCENDING if ascending else DESCENDING
        try:
            return self._database[collection_name].create_index(
                [(field_name, direction)], unique=unique
            )
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Failed to create index on [{collection_name}.{field_name}]: {e}"
            ) from e

    def create_text_index(self, collection_name: str, field_name: str) -> str:
        """Create a text index.

        Raises:
            DocumentStoreError: If the server refuses the index.
        """
        try:
            return self._database[collection_name].create_index([(field_name, TEXT)])
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Failed to create text index on [{collection_name}.{field_name}]: {e}"
            ) from e

    def get_collection(self, collection_name: str) -> MongoCollection:
        """Get a handle for reading and writing documents."""
        return MongoCollection(self._database[collection_name])

    def close(self) -> None:
        """Close the owned client, if any."""
        if self._client is not None:
            self._client.close()


def _key_fields(index: Mapping[str, Any]) -> tuple[str, ...]:
    key = index["key"]
    if "_fts" not in key:
        return tuple(key)
    prefix = tuple(name for name in key if name not in ("_fts", "_ftsx"))
    return prefix + tuple(index.get("weights", {}))
