"""Process-wide document store wiring."""

import atexit

from docstore.dao import DocumentDAO
from docstore.manager import DatabaseManager
from docstore.tenant_catalog import TenantCatalog

from . import config

# Global database manager instance
db_manager = DatabaseManager(config.Settings())
catalog = TenantCatalog(db_manager)
db_manager.add_connect_listener(catalog.ensure_root)
dao = DocumentDAO(db_manager, catalog=catalog)

atexit.register(db_manager.disconnect)
