"""Primitive document store contract consumed by the DAO."""

from collections.abc import Iterable, Sequence
from typing import Protocol

# Reserved primary-key field of every stored document
ID_FIELD = "_id"
# Reserved field holding the synthetic pagination key
CURSOR_FIELD = "_cursor"

Document = dict[str, object]


class Store(Protocol):
    """
    Key-value/document store primitives.

    Every operation addresses a physical collection by name and a document
    by its primary key. Single-document operations are atomic; batch
    operations are one round trip each but give no isolation.
    """

    def upsert(
        self,
        collection: str,
        key: str,
        document: Document,
        preserve: Iterable[str] = (),
    ) -> None:
        """Insert or fully replace a document, keeping ``preserve`` fields."""
        ...

    def update_fields(self, collection: str, key: str, fields: Document) -> int:
        """Merge ``fields`` into an existing document; return modified count."""
        ...

    def find_one(
        self, collection: str, key: str, projection: Sequence[str] | None = None
    ) -> Document | None:
        """Find a document by key."""
        ...

    def find_many(
        self,
        collection: str,
        keys: Sequence[str],
        projection: Sequence[str] | None = None,
    ) -> list[Document]:
        """Find every document whose key is in ``keys``."""
        ...

    def scan(
        self, collection: str, field: str, after: str | None, limit: int
    ) -> list[Document]:
        """
        Return up to ``limit`` documents with ``field > after``, ascending.

        Only documents holding a string ``field`` are returned, so every
        result carries a key to continue from.
        """
        ...

    def delete_one(self, collection: str, key: str) -> int:
        """Delete a document by key; return deleted count."""
        ...

    def delete_many(self, collection: str, keys: Sequence[str]) -> int:
        """Delete every document whose key is in ``keys``."""
        ...

    def bulk_upsert(
        self,
        collection: str,
        documents: Sequence[Document],
        preserve: Iterable[str] = (),
    ) -> None:
        """Upsert documents in order; a later duplicate key replaces an earlier one."""
        ...

    def bulk_update(
        self, collection: str, updates: Sequence[tuple[str, Document]]
    ) -> int:
        """Apply partial updates in order, stopping at the first failure."""
        ...

    def create_collection(self, collection: str) -> None:
        """Create a physical collection."""
        ...

    def drop_collection(self, collection: str) -> None:
        """Drop a physical collection."""
        ...

    def count(self, collection: str) -> int:
        """Count documents in a collection."""
        ...

    def list_collection_names(self) -> list[str]:
        """List every physical collection."""
        ...

    def close(self) -> None:
        """Release the underlying client."""
        ...
