"""
Storage Services Package

Provides the abstract ledger/audit store interfaces and an in-memory
implementation. Any relational store can be plugged in by implementing
LedgerStoreInterface.
"""

from finledger.services.storage.interface import (
    AuditStorageInterface,
    ConflictError,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from finledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStoreInterface",
    # Exceptions
    "ConflictError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
]
