"""MongoDB implementation of the store primitives."""

import logging
import re
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Self

from pymongo import ASCENDING, MongoClient, ReplaceOne, UpdateOne
from pymongo.database import Database
from pymongo.errors import (
    BulkWriteError,
    ConfigurationError,
    ConnectionFailure,
    OperationFailure,
    PyMongoError,
)

from server.config import Settings

from .errors import StoreConnectionError, StoreError, StoreReadError, StoreWriteError
from .store import ID_FIELD, Document

logger = logging.getLogger(__name__)


def mask_uri(uri: str) -> str:
    """Hide credentials in a MongoDB connection URI."""
    return re.sub(r"mongodb(\+srv)?://.*@", r"mongodb\1://<user:password>@", uri)


@contextmanager
def _translate_errors(error_class: type[StoreError], action: str) -> Iterator[None]:
    """Re-raise driver errors as store errors."""
    try:
        yield
    except BulkWriteError as e:
        write_errors = e.details.get("writeErrors") or [{}]
        committed = write_errors[0].get("index", 0)
        raise StoreWriteError(
            f"{action} failed after {committed} operations: {write_errors[0]}",
            committed=committed,
        ) from e
    except PyMongoError as e:
        raise error_class(f"{action} failed: {e}") from e


def _replacement(
    document: Document, preserve: Iterable[str]
) -> list[dict[str, object]] | None:
    """
    Build an update pipeline that replaces a document but keeps stored fields.

    Returns None when nothing needs preserving and a plain replace will do.
    """
    kept = {
        field: {"$ifNull": [f"${field}", {"$literal": document[field]}]}
        for field in preserve
        if field in document
    }
    if not kept:
        return None
    # $literal keeps string values starting with "$" from being read as paths
    return [{"$replaceWith": {"$mergeObjects": [{"$literal": document}, kept]}}]


class MongoStore:
    """Store primitives backed by a pymongo database."""

    def __init__(self, client: MongoClient, database: Database) -> None:
        self.client = client
        self.db = database

    @classmethod
    def connect(cls, settings: Settings | None = None) -> Self:
        """
        Connect to MongoDB and verify the server is reachable.

        Raises:
            StoreConnectionError: If the server is unreachable or auth fails

        """
        if settings is None:
            settings = Settings()

        options: dict[str, object] = {"tz_aware": True, "tls": settings.mongodb_tls}
        if settings.mongodb_tls:
            options["tlsAllowInvalidHostnames"] = (
                settings.mongodb_tls_allow_invalid_hostnames
            )

        client = None
        try:
            if settings.mongodb_uri:
                logger.info(
                    "MongoDB uri: %s, database: %s",
                    mask_uri(settings.mongodb_uri),
                    settings.mongodb_database,
                )
                client = MongoClient(settings.mongodb_uri, **options)
            else:
                logger.info(
                    "MongoDB host: %s:%s, database: %s",
                    settings.mongodb_host,
                    settings.mongodb_port,
                    settings.mongodb_database,
                )
                if settings.mongodb_username and settings.mongodb_password:
                    options["username"] = settings.mongodb_username
                    options["password"] = settings.mongodb_password
                    options["authSource"] = settings.mongodb_database
                client = MongoClient(
                    settings.mongodb_host, settings.mongodb_port, **options
                )
            client.admin.command("ping")
        except (ConnectionFailure, ConfigurationError, OperationFailure) as e:
            if client is not None:
                client.close()
            raise StoreConnectionError(f"Cannot connect to MongoDB: {e}") from e

        return cls(client, client[settings.mongodb_database])

    def upsert(
        self,
        collection: str,
        key: str,
        document: Document,
        preserve: Iterable[str] = (),
    ) -> None:
        pipeline = _replacement(document, preserve)
        with _translate_errors(StoreWriteError, f"Upsert {collection}/{key}"):
            if pipeline is None:
                self.db[collection].replace_one({ID_FIELD: key}, document, upsert=True)
            else:
                self.db[collection].update_one({ID_FIELD: key}, pipeline, upsert=True)

    def update_fields(self, collection: str, key: str, fields: Document) -> int:
        with _translate_errors(StoreWriteError, f"Update {collection}/{key}"):
            result = self.db[collection].update_one({ID_FIELD: key}, {"$set": fields})
        return result.modified_count

    def find_one(
        self, collection: str, key: str, projection: Sequence[str] | None = None
    ) -> Document | None:
        with _translate_errors(StoreReadError, f"Find {collection}/{key}"):
            return self.db[collection].find_one({ID_FIELD: key}, projection)

    def find_many(
        self,
        collection: str,
        keys: Sequence[str],
        projection: Sequence[str] | None = None,
    ) -> list[Document]:
        with _translate_errors(StoreReadError, f"Find many in {collection}"):
            cursor = self.db[collection].find(
                {ID_FIELD: {"$in": list(keys)}}, projection
            )
            return list(cursor)

    def scan(
        self, collection: str, field: str, after: str | None, limit: int
    ) -> list[Document]:
        # documents written without a cursor key are left out of every scan
        condition = {"$type": "string"} if after is None else {"$gt": after}
        query = {field: condition}
        with _translate_errors(StoreReadError, f"Scan {collection}"):
            cursor = (
                self.db[collection]
                .find(query)
                .sort(field, ASCENDING)
                .batch_size(limit)
                .limit(limit)
            )
            return list(cursor)

    def delete_one(self, collection: str, key: str) -> int:
        with _translate_errors(StoreWriteError, f"Delete {collection}/{key}"):
            result = self.db[collection].delete_one({ID_FIELD: key})
        return result.deleted_count

    def delete_many(self, collection: str, keys: Sequence[str]) -> int:
        with _translate_errors(StoreWriteError, f"Delete many in {collection}"):
            result = self.db[collection].delete_many({ID_FIELD: {"$in": list(keys)}})
        return result.deleted_count

    def bulk_upsert(
        self,
        collection: str,
        documents: Sequence[Document],
        preserve: Iterable[str] = (),
    ) -> None:
        if not documents:
            return
        preserve = tuple(preserve)
        requests: list[ReplaceOne | UpdateOne] = []
        for document in documents:
            key = document[ID_FIELD]
            pipeline = _replacement(document, preserve)
            if pipeline is None:
                requests.append(ReplaceOne({ID_FIELD: key}, document, upsert=True))
            else:
                requests.append(UpdateOne({ID_FIELD: key}, pipeline, upsert=True))
        with _translate_errors(StoreWriteError, f"Bulk upsert in {collection}"):
            self.db[collection].bulk_write(requests, ordered=True)

    def bulk_update(
        self, collection: str, updates: Sequence[tuple[str, Document]]
    ) -> int:
        if not updates:
            return 0
        requests = [
            UpdateOne({ID_FIELD: key}, {"$set": fields}) for key, fields in updates
        ]
        with _translate_errors(StoreWriteError, f"Bulk update in {collection}"):
            result = self.db[collection].bulk_write(requests, ordered=True)
        return result.modified_count

    def create_collection(self, collection: str) -> None:
        with _translate_errors(StoreWriteError, f"Create collection {collection}"):
            self.db.create_collection(collection)

    def drop_collection(self, collection: str) -> None:
        with _translate_errors(StoreWriteError, f"Drop collection {collection}"):
            self.db.drop_collection(collection)

    def count(self, collection: str) -> int:
        with _translate_errors(StoreReadError, f"Count {collection}"):
            return self.db[collection].count_documents({})

    def list_collection_names(self) -> list[str]:
        with _translate_errors(StoreReadError, "List collections"):
            return self.db.list_collection_names()

    def close(self) -> None:
        self.client.close()
