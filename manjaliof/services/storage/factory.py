"""Pick the ledger backend once, at startup."""

from datetime import datetime
from typing import Callable, Optional

from manjaliof.config import StorageSettings
from manjaliof.models.timestamps import utc_now
from manjaliof.services.storage.interface import LedgerStorageInterface
from manjaliof.services.storage.json_backend import JsonLedgerStorage, WriteThroughJsonStorage
from manjaliof.services.storage.sqlite_backend import SqliteLedgerStorage


def open_storage(
    settings: StorageSettings,
    clock: Optional[Callable[[], datetime]] = None,
) -> LedgerStorageInterface:
    """
    Open a ledger session on the configured backend.

    Raises:
        ConfigurationError: If the data folder isn't configured
        StorageIOError: If the backing store can't be opened
    """
    clock = clock or utc_now

    if settings.backend == "sqlite":
        return SqliteLedgerStorage(
            settings.db_path,
            clock=clock,
            lock_retry_attempts=settings.lock_retry_attempts,
            lock_timeout_seconds=settings.lock_timeout_seconds,
        )
    if settings.backend == "json":
        return JsonLedgerStorage(settings.json_path, clock=clock)
    if settings.backend == "json-write-through":
        return WriteThroughJsonStorage(settings.json_path, clock=clock)

    raise ValueError(f"Unknown ledger backend: {settings.backend}")
