"""
Commit-or-discard lifecycle for one CLI run.

    with ledger_session(storage, audit_logger) as db:
        db.add_client(...)
        db.renew_client(...)
    # committed here, or discarded if anything above raised

A run either applies all of its effects or none of them.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from manjaliof.audit import AuditLogger
from manjaliof.services.storage import LedgerStorageInterface


@contextmanager
def ledger_session(
    storage: LedgerStorageInterface,
    audit_logger: Optional[AuditLogger] = None,
) -> Iterator[LedgerStorageInterface]:
    """
    Yield an open storage; commit on normal exit, discard on any exception.

    A failing commit propagates as StorageError and leaves the session
    discarded.
    """
    try:
        yield storage
        storage.commit()
    except BaseException as e:
        storage.discard()
        if audit_logger:
            audit_logger.log_session_discarded(storage.backend_name, reason=str(e) or type(e).__name__)
        raise

    if audit_logger:
        audit_logger.log_session_committed(storage.backend_name)
