"""Services package."""

from manjaliof.services.post_scripts import (
    PostScriptCall,
    PostScriptError,
    PostScriptRunner,
)
from manjaliof.services.storage import (
    AlreadyExistsError,
    BackupableStorage,
    CommitError,
    InvariantViolationError,
    JsonLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    SessionClosedError,
    SessionState,
    SqliteLedgerStorage,
    StorageError,
    StorageFormatError,
    StorageIOError,
    WriteThroughJsonStorage,
    open_storage,
)

__all__ = [
    # Post scripts
    "PostScriptCall",
    "PostScriptError",
    "PostScriptRunner",
    # Storage services
    "AlreadyExistsError",
    "CommitError",
    "BackupableStorage",
    "InvariantViolationError",
    "JsonLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "SessionClosedError",
    "SessionState",
    "SqliteLedgerStorage",
    "StorageError",
    "StorageFormatError",
    "StorageIOError",
    "WriteThroughJsonStorage",
    "open_storage",
]
