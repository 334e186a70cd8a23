"""Services package."""

from finledger.services.storage import (
    AuditStorageInterface,
    ConflictError,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConflictError",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "NotFoundError",
    "StorageError",
]
