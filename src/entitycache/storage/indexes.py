"""Index reconciliation: additive sync of declared indexes into the store.

An index counts as present when any existing index covers the declared field,
whatever its order or uniqueness. Existing indexes are never altered or
dropped; only missing ones are created.

Usage:
    reconciler = IndexReconciler(store)
    created = reconciler.reconcile_all(definitions)
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from entitycache.core.entity.models import EntityDefinition
from entitycache.core.errors import DuplicateTextIndexError, IndexCreationError
from entitycache.storage.protocol import DocumentStore


class IndexReconciler:
    """Creates indexes that entity definitions declare but the store lacks.

    Args:
        store: Document store to reconcile against.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def has_index(self, collection_name: str, field_name: str) -> bool:
        """Check whether any existing index covers a field.

        Args:
            collection_name: Collection to inspect.
            field_name: Document key to look for.

        Returns:
            True if some index's key fields include ``field_name``.
        """
        return any(
            field_name in index.key_fields for index in self._store.list_indexes(collection_name)
        )

    def reconcile(self, definition: EntityDefinition) -> list[str]:
        """Create the missing indexes of one entity.

        Args:
            definition: Entity definition declaring the indexes.

        Returns:
            Names of the indexes created (empty when all were present).

        Raises:
            DuplicateTextIndexError: If more than one text index is declared.
            IndexCreationError: If the store refuses to create an index.
        """
        if len(definition.text_index_definitions) > 1:
            raise DuplicateTextIndexError(
                f"A collection can have only one text index, entity [{definition.name}] "
                f"declares {sorted(definition.text_index_definitions)}"
            )

        collection = definition.collection_name
        created: list[str] = []
        for field_name, spec in definition.index_definitions.items():
            if self.has_index(collection, field_name):
                continue
            try:
                index_name = self._store.create_index(
                    collection, field_name, ascending=spec.ascending, unique=spec.unique
                )
            except Exception as e:
                raise IndexCreationError(
                    f"Failed to create index on [{definition.name}] collection [{collection}] "
                    f"field [{field_name}]: {e}"
                ) from e
            logger.info(
                "Collection [{}] auto created field index [{}][{}] ascending [{}] unique [{}]",
                collection,
                field_name,
                index_name,
                spec.ascending,
                spec.unique,
            )
            created.append(index_name)

        for field_name in definition.text_index_definitions:
            if self.has_index(collection, field_name):
                continue
            try:
                index_name = self._store.create_text_index(collection, field_name)
            except Exception as e:
                raise IndexCreationError(
                    f"Failed to create text index on [{definition.name}] collection "
                    f"[{collection}] field [{field_name}]: {e}"
                ) from e
            logger.info(
                "Collection [{}] auto created text index [{}][{}]",
                collection,
                field_name,
                index_name,
            )
            created.append(index_name)
        return created

    def reconcile_all(self, definitions: Iterable[EntityDefinition]) -> dict[type, list[str]]:
        """Reconcile every definition, sequentially.

        Returns:
            Entity type -> names of indexes created for it.
        """
        return {definition.entity_type: self.reconcile(definition) for definition in definitions}
