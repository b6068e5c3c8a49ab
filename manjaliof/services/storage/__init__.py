"""
Storage Services Package

Provides the abstract ledger interface and its concrete backends.
SQLite is the default; the JSON snapshot backends keep the whole ledger
in one human-readable file.
"""

from manjaliof.services.storage.interface import (
    AlreadyExistsError,
    BackupableStorage,
    CommitError,
    InvariantViolationError,
    LedgerStorageInterface,
    NotFoundError,
    SessionClosedError,
    SessionState,
    StorageError,
    StorageFormatError,
    StorageIOError,
)
from manjaliof.services.storage.json_backend import (
    JsonLedgerStorage,
    WriteThroughJsonStorage,
)
from manjaliof.services.storage.sqlite_backend import SqliteLedgerStorage
from manjaliof.services.storage.factory import open_storage

__all__ = [
    # Interfaces
    "BackupableStorage",
    "LedgerStorageInterface",
    "SessionState",
    # Backends
    "JsonLedgerStorage",
    "SqliteLedgerStorage",
    "WriteThroughJsonStorage",
    "open_storage",
    # Exceptions
    "AlreadyExistsError",
    "CommitError",
    "InvariantViolationError",
    "NotFoundError",
    "SessionClosedError",
    "StorageError",
    "StorageFormatError",
    "StorageIOError",
]
