"""Ownership of the shared document store client."""

import logging
import threading
from collections.abc import Callable
from types import TracebackType
from typing import Self

from server.config import Settings

from .errors import StoreConnectionError
from .store import Store

logger = logging.getLogger(__name__)

StoreFactory = Callable[[], Store]
ConnectListener = Callable[[Store], None]


class DatabaseManager:
    """
    Manages the process-wide store connection.

    The client is built lazily on first use and torn down once; both steps
    are guarded so concurrent callers never build or close it twice. A
    disconnected manager stays closed.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store_factory: StoreFactory | None = None,
    ) -> None:
        """
        Initialize the database manager.

        Args:
            settings: Connection settings (defaults to Settings())
            store_factory: Builds a connected store (defaults to MongoDB)

        """
        self.settings = settings or Settings()
        self._store_factory = store_factory or self._connect_mongodb
        self._store: Store | None = None
        self._closed = False
        self._lock = threading.Lock()
        self._connect_listeners: list[ConnectListener] = []

    def _connect_mongodb(self) -> Store:
        from .mongo_store import MongoStore

        return MongoStore.connect(self.settings)

    def add_connect_listener(self, listener: ConnectListener) -> None:
        """Register a callback run once right after the store connects."""
        self._connect_listeners.append(listener)

    @property
    def connected(self) -> bool:
        """Whether the store client is currently open."""
        return self._store is not None

    def get_store(self) -> Store:
        """
        Get the shared store, connecting on first use.

        Raises:
            StoreConnectionError: If the store cannot be reached or the
                manager was disconnected

        """
        store = self._store
        if store is not None:
            return store

        with self._lock:
            if self._closed:
                raise StoreConnectionError("Document store manager is closed")
            if self._store is None:
                store = self._store_factory()
                for listener in self._connect_listeners:
                    listener(store)
                self._store = store
                logger.info("Document store connected")
            return self._store

    def disconnect(self) -> None:
        """
        Close the store connection for good.

        Later calls are no-ops and ``get_store`` raises afterwards.
        """
        with self._lock:
            self._closed = True
            store, self._store = self._store, None
        if store is not None:
            store.close()
            logger.info("Document store disconnected")

    def __enter__(self) -> Self:
        self.get_store()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.disconnect()
