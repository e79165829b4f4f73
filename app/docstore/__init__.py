"""Multi-tenant document store - codecs, tenant catalog and DAO."""

from .dao import DocumentDAO, TenantScope
from .errors import (
    DocstoreError,
    StoreConnectionError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from .field_codec import desanitize, desanitize_fields, sanitize, sanitize_fields
from .manager import DatabaseManager
from .metadata import RecordTypeRegistry, default_registry
from .models import Pager, Record, Tenant
from .record_codec import Decoded, RecordCodec
from .store import CURSOR_FIELD, ID_FIELD, Store
from .tenant_catalog import TenantCatalog

__all__ = [
    "CURSOR_FIELD",
    "ID_FIELD",
    "DatabaseManager",
    "Decoded",
    "DocstoreError",
    "DocumentDAO",
    "Pager",
    "Record",
    "RecordCodec",
    "RecordTypeRegistry",
    "Store",
    "StoreConnectionError",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "Tenant",
    "TenantCatalog",
    "TenantScope",
    "default_registry",
    "desanitize",
    "desanitize_fields",
    "sanitize",
    "sanitize_fields",
]
