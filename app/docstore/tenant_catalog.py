"""Physical collection naming and lifecycle for tenants."""

import logging
from typing import TYPE_CHECKING

from server.config import Settings

from .errors import StoreError
from .models import Tenant
from .store import Store

if TYPE_CHECKING:
    from .manager import DatabaseManager

logger = logging.getLogger(__name__)


class TenantCatalog:
    """Maps tenants to physical collections and manages their lifecycle."""

    def __init__(
        self,
        manager: "DatabaseManager",
        prefix: str | None = None,
        root_tenant: str | None = None,
    ) -> None:
        """
        Initialize the tenant catalog.

        Args:
            manager: Owner of the shared store client
            prefix: Collection name prefix (defaults to settings)
            root_tenant: Root tenant identifier (defaults to settings)

        """
        settings = Settings()
        self.manager = manager
        self.prefix = prefix or settings.collection_prefix
        self.root_tenant = root_tenant or settings.root_tenant

    def is_root(self, tenant_id: str | None) -> bool:
        """Check whether a tenant is the root tenant."""
        return bool(tenant_id) and tenant_id == self.root_tenant

    def physical_name(self, tenant_id: str | None) -> str | None:
        """
        Get the physical collection name of a tenant.

        Names are ``<prefix>-<tenant_id>``; the root tenant and names that
        already carry the prefix are returned unchanged.
        """
        if not tenant_id or not tenant_id.strip():
            return None
        if self.is_root(tenant_id) or tenant_id.startswith(f"{self.prefix}-"):
            return tenant_id
        return f"{self.prefix}-{tenant_id}"

    @staticmethod
    def _exists(store: Store, name: str) -> bool:
        return any(
            existing.lower() == name.lower()
            for existing in store.list_collection_names()
        )

    def exists_collection(self, tenant_id: str | None) -> bool:
        """Check whether a tenant's collection exists."""
        name = self.physical_name(tenant_id)
        if not name:
            return False
        store = self.manager.get_store()
        try:
            return self._exists(store, name)
        except StoreError:
            logger.exception("Cannot check collection '%s'", name)
            return False

    def _create(self, store: Store, tenant_id: str | None) -> bool:
        name = self.physical_name(tenant_id)
        if not name or any(char.isspace() for char in tenant_id):
            return False
        try:
            if self._exists(store, name):
                return False
            store.create_collection(name)
        except StoreError:
            logger.exception("Cannot create collection '%s'", name)
            return False
        logger.info("Created collection '%s'", name)
        return True

    def create_collection(self, tenant_id: str | None) -> bool:
        """
        Create a tenant's collection.

        Returns:
            False when the id is blank or has whitespace, the collection
            already exists or the store failed; True when created.

        """
        if not tenant_id or not tenant_id.strip():
            return False
        return self._create(self.manager.get_store(), tenant_id)

    def drop_collection(self, tenant_id: str | None) -> bool:
        """Drop a tenant's collection; False when it does not exist."""
        name = self.physical_name(tenant_id)
        if not name:
            return False
        store = self.manager.get_store()
        try:
            if not self._exists(store, name):
                return False
            store.drop_collection(name)
        except StoreError:
            logger.exception("Cannot drop collection '%s'", name)
            return False
        logger.info("Dropped collection '%s'", name)
        return True

    def count(self, tenant_id: str | None) -> int:
        """Count documents in a tenant's collection; -1 on failure."""
        name = self.physical_name(tenant_id)
        if not name:
            return -1
        store = self.manager.get_store()
        try:
            return store.count(name)
        except StoreError:
            logger.exception("Cannot count collection '%s'", name)
            return -1

    def list_collections(self) -> list[str]:
        """List every physical collection name."""
        return self.manager.get_store().list_collection_names()

    def ensure_root(self, store: Store) -> None:
        """Provision the root tenant's collection on a freshly connected store."""
        self._create(store, self.root_tenant)

    def on_tenant_created(self, tenant: Tenant | None) -> bool:
        """Provision a dedicated collection for a new tenant."""
        if tenant is None or tenant.shared:
            return False
        return self.create_collection(tenant.id)

    def on_tenant_deleted(self, tenant: Tenant | None) -> bool:
        """Drop the dedicated collection of a deleted tenant."""
        if tenant is None or tenant.shared:
            return False
        return self.drop_collection(tenant.id)
