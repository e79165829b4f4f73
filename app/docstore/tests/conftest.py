"""Pytest configuration and fixtures for document store tests."""

import copy
from collections.abc import Iterable, Sequence

import pytest

from docstore.dao import DocumentDAO
from docstore.errors import StoreReadError, StoreWriteError
from docstore.manager import DatabaseManager
from docstore.record_codec import RecordCodec
from docstore.store import ID_FIELD, Document
from docstore.tenant_catalog import TenantCatalog

ROOT_TENANT = "root"
PREFIX = "docstore"


class InMemoryStore:
    """Dict-backed store with MongoDB-like semantics and failure injection."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, Document]] = {}
        self.failing_keys: set[str] = set()
        self.fail_reads = False
        self.fail_admin = False
        self.close_count = 0

    def _docs(self, collection: str) -> dict[str, Document]:
        # collections spring into existence on first write, as in MongoDB
        return self.collections.setdefault(collection, {})

    def _check_write(self, key: str) -> None:
        if key in self.failing_keys:
            raise StoreWriteError(f"Write rejected for {key}")

    def _check_read(self) -> None:
        if self.fail_reads:
            raise StoreReadError("Read rejected")

    def _check_admin(self) -> None:
        if self.fail_admin:
            raise StoreWriteError("Admin command rejected")

    @staticmethod
    def _project(document: Document, projection: Sequence[str] | None) -> Document:
        document = copy.deepcopy(document)
        if projection is None:
            return document
        return {
            key: value
            for key, value in document.items()
            if key == ID_FIELD or key in projection
        }

    def upsert(
        self,
        collection: str,
        key: str,
        document: Document,
        preserve: Iterable[str] = (),
    ) -> None:
        self._check_write(key)
        docs = self._docs(collection)
        replacement = copy.deepcopy(document)
        replacement[ID_FIELD] = key
        existing = docs.get(key)
        if existing is not None:
            for field in preserve:
                if field in existing:
                    replacement[field] = existing[field]
        docs[key] = replacement

    def update_fields(self, collection: str, key: str, fields: Document) -> int:
        self._check_write(key)
        document = self._docs(collection).get(key)
        if document is None:
            return 0
        document.update(copy.deepcopy(fields))
        return 1

    def find_one(
        self, collection: str, key: str, projection: Sequence[str] | None = None
    ) -> Document | None:
        self._check_read()
        document = self.collections.get(collection, {}).get(key)
        return None if document is None else self._project(document, projection)

    def find_many(
        self,
        collection: str,
        keys: Sequence[str],
        projection: Sequence[str] | None = None,
    ) -> list[Document]:
        self._check_read()
        wanted = set(keys)
        return [
            self._project(document, projection)
            for key, document in self.collections.get(collection, {}).items()
            if key in wanted
        ]

    def scan(
        self, collection: str, field: str, after: str | None, limit: int
    ) -> list[Document]:
        self._check_read()
        documents = [
            document
            for document in self.collections.get(collection, {}).values()
            if isinstance(document.get(field), str)
            and (after is None or document[field] > after)
        ]
        documents.sort(key=lambda d: d[field])
        return [copy.deepcopy(document) for document in documents[:limit]]

    def delete_one(self, collection: str, key: str) -> int:
        self._check_write(key)
        return int(self._docs(collection).pop(key, None) is not None)

    def delete_many(self, collection: str, keys: Sequence[str]) -> int:
        return sum(self.delete_one(collection, key) for key in keys)

    def bulk_upsert(
        self,
        collection: str,
        documents: Sequence[Document],
        preserve: Iterable[str] = (),
    ) -> None:
        preserve = tuple(preserve)
        for index, document in enumerate(documents):
            try:
                self.upsert(collection, document[ID_FIELD], document, preserve)
            except StoreWriteError as e:
                raise StoreWriteError(str(e), committed=index) from e

    def bulk_update(
        self, collection: str, updates: Sequence[tuple[str, Document]]
    ) -> int:
        modified = 0
        for index, (key, fields) in enumerate(updates):
            try:
                modified += self.update_fields(collection, key, fields)
            except StoreWriteError as e:
                raise StoreWriteError(str(e), committed=index) from e
        return modified

    def create_collection(self, collection: str) -> None:
        self._check_admin()
        if collection in self.collections:
            raise StoreWriteError(f"Collection {collection} already exists")
        self.collections[collection] = {}

    def drop_collection(self, collection: str) -> None:
        self._check_admin()
        self.collections.pop(collection, None)

    def count(self, collection: str) -> int:
        self._check_read()
        return len(self.collections.get(collection, {}))

    def list_collection_names(self) -> list[str]:
        self._check_read()
        return list(self.collections)

    def close(self) -> None:
        self.close_count += 1


@pytest.fixture
def memory_store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def manager(memory_store: InMemoryStore) -> DatabaseManager:
    """Database manager handing out the in-memory store."""
    return DatabaseManager(store_factory=lambda: memory_store)


@pytest.fixture
def catalog(manager: DatabaseManager) -> TenantCatalog:
    """Tenant catalog with a fixed prefix and root tenant."""
    catalog = TenantCatalog(manager, prefix=PREFIX, root_tenant=ROOT_TENANT)
    manager.add_connect_listener(catalog.ensure_root)
    return catalog


@pytest.fixture
def dao(manager: DatabaseManager, catalog: TenantCatalog) -> DocumentDAO:
    """DAO that raises on write errors."""
    return DocumentDAO(
        manager,
        catalog=catalog,
        codec=RecordCodec(),
        fail_on_write_errors=True,
        page_limit=10,
    )


@pytest.fixture
def lenient_dao(manager: DatabaseManager, catalog: TenantCatalog) -> DocumentDAO:
    """DAO that only logs write errors."""
    return DocumentDAO(
        manager, catalog=catalog, codec=RecordCodec(), fail_on_write_errors=False
    )
