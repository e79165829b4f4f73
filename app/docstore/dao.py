"""
Tenant-scoped CRUD, batch and pagination over the document store.

Every call is one independent request; no locks are held here. A single
upsert, merge or delete is atomic per document in MongoDB, but nothing is
atomic across records: a concurrent reader can observe a batch half applied.
Two concurrent ``create`` calls for the same id both succeed and the later
one replaces the earlier document whole. Pages are not stable under
concurrent writes: deletes can make a page skip records and inserts near a
page boundary can duplicate or omit one. Retries are left to the caller.
"""

import logging
from collections.abc import Sequence

from server.config import Settings

from .errors import StoreError
from .manager import DatabaseManager
from .models import Pager, Record
from .record_codec import RecordCodec
from .store import CURSOR_FIELD, ID_FIELD, Document
from .tenant_catalog import TenantCatalog
from .utils import AccessOrderedDict, generate_id, is_blank, utc_now

logger = logging.getLogger(__name__)


class DocumentDAO:
    """Data access object for records in tenant collections."""

    def __init__(
        self,
        manager: DatabaseManager,
        catalog: TenantCatalog | None = None,
        codec: RecordCodec | None = None,
        fail_on_write_errors: bool | None = None,
        page_limit: int | None = None,
    ) -> None:
        """
        Initialize the DAO.

        Args:
            manager: Owner of the shared store client
            catalog: Tenant collection catalog
            codec: Record encoder/decoder
            fail_on_write_errors: Raise failed writes instead of only
                logging them (defaults to settings)
            page_limit: Default page size when no pager is given

        """
        settings = Settings()
        self.manager = manager
        self.catalog = catalog or TenantCatalog(manager)
        self.codec = codec or RecordCodec()
        self.fail_on_write_errors = (
            settings.fail_on_write_errors
            if fail_on_write_errors is None
            else fail_on_write_errors
        )
        self.page_limit = page_limit or settings.page_limit

    def _collection(self, tenant: str | None) -> str | None:
        collection = self.catalog.physical_name(tenant)
        if collection is None:
            logger.debug("Blank tenant, skipping operation")
        return collection

    def _write_failed(self, action: str, subject: object, error: StoreError) -> None:
        """Log a failed write and re-raise it unless write errors are ignored."""
        logger.error("DAO.%s() failed for %s: %s", action, subject, error)
        if self.fail_on_write_errors:
            raise error

    @staticmethod
    def _prepare_new(tenant: str, record: Record) -> None:
        if is_blank(record.id):
            record.id = generate_id()
            logger.debug("Generated id: %s", record.id)
        if record.created is None:
            record.created = utc_now()
        record.tenant = tenant

    def _update_document(self, record: Record) -> Document:
        record.updated = utc_now()
        document = self.codec.encode(record, locked_filter=True, include_blank=True)
        document.pop(ID_FIELD, None)
        return document

    # Core operations

    def create(self, tenant: str, record: Record | None) -> str | None:
        """
        Store a record, replacing any record with the same id.

        An id and creation timestamp are assigned when missing. Replaying a
        create with the same id drops properties missing from the new call.

        Returns:
            The record id, or None when nothing was stored

        """
        if record is None:
            return None
        collection = self._collection(tenant)
        if collection is None:
            return None

        self._prepare_new(tenant, record)
        document = self.codec.encode(record, assign_cursor=True)
        store = self.manager.get_store()
        try:
            store.upsert(collection, record.id, document, preserve=(CURSOR_FIELD,))
        except StoreError as e:
            self._write_failed("create", record.id, e)
        logger.debug("DAO.create() %s", record.id)
        return record.id

    def read(self, tenant: str, key: str | None) -> Record | None:
        """Read a record by id; None when absent."""
        if is_blank(key):
            return None
        collection = self._collection(tenant)
        if collection is None:
            return None

        store = self.manager.get_store()
        try:
            document = store.find_one(collection, key)
        except StoreError:
            logger.exception("DAO.read() failed for %s", key)
            return None

        decoded = self.codec.decode(document)
        record = decoded.record if decoded else None
        logger.debug("DAO.read() %s -> %s", key, record.type if record else None)
        return record

    def update(self, tenant: str, record: Record | None) -> None:
        """
        Merge a record's fields into the stored document.

        Locked fields and fields set to None keep their stored values; a
        record that does not exist is not created.
        """
        if record is None or record.id is None:
            return
        collection = self._collection(tenant)
        if collection is None:
            return

        document = self._update_document(record)
        if not document:
            return
        store = self.manager.get_store()
        try:
            modified = store.update_fields(collection, record.id, document)
        except StoreError as e:
            self._write_failed("update", record.id, e)
            return
        logger.debug("DAO.update() %s modified=%d", record.id, modified)

    def delete(self, tenant: str, record: Record | None) -> None:
        """Delete a record by id."""
        if record is None or record.id is None:
            return
        collection = self._collection(tenant)
        if collection is None:
            return

        store = self.manager.get_store()
        try:
            store.delete_one(collection, record.id)
        except StoreError as e:
            self._write_failed("delete", record.id, e)
        logger.debug("DAO.delete() %s", record.id)

    # Batch operations

    def create_all(self, tenant: str, records: Sequence[Record | None] | None) -> None:
        """
        Store several records in one ordered batch.

        When records share an id the last one in submission order wins,
        both within the batch and against stored records.
        """
        if not records:
            return
        collection = self._collection(tenant)
        if collection is None:
            return

        documents = []
        for record in records:
            if record is None:
                continue
            self._prepare_new(tenant, record)
            documents.append(self.codec.encode(record, assign_cursor=True))
        if not documents:
            return

        store = self.manager.get_store()
        try:
            store.bulk_upsert(collection, documents, preserve=(CURSOR_FIELD,))
        except StoreError as e:
            self._write_failed("create_all", f"{len(documents)} records", e)
        logger.debug("DAO.create_all() %d", len(documents))

    def read_all(
        self,
        tenant: str,
        keys: Sequence[str] | None,
        include_all_columns: bool = True,
    ) -> AccessOrderedDict:
        """
        Read several records by id.

        Args:
            tenant: Tenant ID
            keys: Record ids to look up
            include_all_columns: Read full records; when False only the
                base record fields are loaded

        Returns:
            Mapping of id to record in store order, without missing ids

        """
        keys = [key for key in keys or [] if not is_blank(key)]
        collection = self._collection(tenant)
        if not keys or collection is None:
            return AccessOrderedDict()

        results = AccessOrderedDict(maxsize=len(keys))
        projection = None if include_all_columns else self.codec.summary_columns()
        store = self.manager.get_store()
        try:
            documents = store.find_many(collection, keys, projection)
        except StoreError:
            logger.exception("DAO.read_all() failed for %d keys", len(keys))
            return results

        for document in documents:
            decoded = self.codec.decode(document, partial=not include_all_columns)
            if decoded is not None:
                results[decoded.record.id] = decoded.record
        logger.debug("DAO.read_all() %d", len(results))
        return results

    def read_page(self, tenant: str, pager: Pager | None = None) -> list[Record]:
        """
        Read the next page of a tenant's records in cursor key order.

        The pager's ``last_key`` and ``count`` advance only when the store
        answered; on failure an empty page is returned and the pager is left
        as it was.
        """
        collection = self._collection(tenant)
        if collection is None:
            return []
        if pager is None:
            pager = Pager(limit=self.page_limit)

        store = self.manager.get_store()
        try:
            documents = store.scan(
                collection, CURSOR_FIELD, pager.last_key, pager.limit
            )
        except StoreError:
            logger.exception("DAO.read_page() failed after %s", pager.last_key)
            return []

        results: list[Record] = []
        last_key = pager.last_key
        for document in documents:
            # skip past documents that fail to decode as well
            last_key = document.get(CURSOR_FIELD) or last_key
            decoded = self.codec.decode(document)
            if decoded is not None:
                results.append(decoded.record)

        pager.last_key = last_key
        pager.count += len(results)
        logger.debug(
            "DAO.read_page() after %s, results: %d", pager.last_key, len(results)
        )
        return results

    def update_all(self, tenant: str, records: Sequence[Record | None] | None) -> None:
        """
        Merge several records in one ordered batch.

        The first failing update aborts the rest; updates before it stay
        applied.
        """
        if records is None:
            return
        collection = self._collection(tenant)
        if collection is None:
            return

        updates = [
            (record.id, self._update_document(record))
            for record in records
            if record is not None and record.id is not None
        ]
        if not updates:
            return

        store = self.manager.get_store()
        try:
            modified = store.bulk_update(collection, updates)
        except StoreError as e:
            self._write_failed("update_all", [key for key, _ in updates], e)
            return
        logger.debug("DAO.update_all() %d, modified: %d", len(updates), modified)

    def delete_all(self, tenant: str, records: Sequence[Record | None] | None) -> None:
        """Delete several records in one call."""
        if not records:
            return
        collection = self._collection(tenant)
        if collection is None:
            return

        keys = [record.id for record in records if record is not None and record.id]
        if not keys:
            return

        store = self.manager.get_store()
        try:
            store.delete_many(collection, keys)
        except StoreError as e:
            self._write_failed("delete_all", keys, e)
        logger.debug("DAO.delete_all() %d", len(keys))

    # Tenant-bound views

    def scoped(self, tenant: str) -> "TenantScope":
        """Get the DAO operations bound to one tenant."""
        return TenantScope(self, tenant)

    @property
    def root(self) -> "TenantScope":
        """DAO operations bound to the root tenant."""
        return self.scoped(self.catalog.root_tenant)


class TenantScope:
    """The DAO operations with the tenant argument filled in."""

    def __init__(self, dao: DocumentDAO, tenant: str) -> None:
        self.dao = dao
        self.tenant = tenant

    def create(self, record: Record | None) -> str | None:
        return self.dao.create(self.tenant, record)

    def read(self, key: str | None) -> Record | None:
        return self.dao.read(self.tenant, key)

    def update(self, record: Record | None) -> None:
        self.dao.update(self.tenant, record)

    def delete(self, record: Record | None) -> None:
        self.dao.delete(self.tenant, record)

    def create_all(self, records: Sequence[Record | None] | None) -> None:
        self.dao.create_all(self.tenant, records)

    def read_all(
        self, keys: Sequence[str] | None, include_all_columns: bool = True
    ) -> AccessOrderedDict:
        return self.dao.read_all(self.tenant, keys, include_all_columns)

    def read_page(self, pager: Pager | None = None) -> list[Record]:
        return self.dao.read_page(self.tenant, pager)

    def update_all(self, records: Sequence[Record | None] | None) -> None:
        self.dao.update_all(self.tenant, records)

    def delete_all(self, records: Sequence[Record | None] | None) -> None:
        self.dao.delete_all(self.tenant, records)
