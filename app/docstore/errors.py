"""Exceptions raised by the document store."""


class DocstoreError(Exception):
    """Base class for document store errors."""


class StoreError(DocstoreError):
    """An operation against the backing store failed."""


class StoreConnectionError(StoreError):
    """The store is unreachable or rejected the credentials."""


class StoreReadError(StoreError):
    """A read operation was rejected by the store."""


class StoreWriteError(StoreError):
    """
    A write operation was rejected by the store.

    Args:
        message: Error description
        committed: Operations of an ordered batch applied before the failure

    """

    def __init__(self, message: str, committed: int = 0) -> None:
        super().__init__(message)
        self.committed = committed
