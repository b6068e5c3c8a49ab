"""
Tests for the commit-or-discard session wrapper and the audit trail it writes.
"""

import pytest

from manjaliof.audit import AuditLogger
from manjaliof.models.audit import AuditEventType
from manjaliof.services.storage import (
    CommitError,
    JsonLedgerStorage,
    SessionState,
    StorageIOError,
)
from manjaliof.session import ledger_session


class FailingCommitStorage(JsonLedgerStorage):
    """JSON backend whose write-back always fails."""

    def _finalize(self) -> None:
        raise StorageIOError("disk full")


def event_types(audit_logger):
    return [event.event_type for event in audit_logger.events]


class TestLedgerSession:
    """Tests for ledger_session."""

    def test_commits_on_normal_exit(self, tmp_path, clock):
        storage = JsonLedgerStorage(tmp_path / "data.json", clock=clock)
        audit_logger = AuditLogger()

        with ledger_session(storage, audit_logger) as db:
            db.add_client("alice", 30, "pouya", 60, "")

        assert storage.state is SessionState.COMMITTED
        assert (tmp_path / "data.json").exists()
        assert event_types(audit_logger) == [AuditEventType.SESSION_COMMITTED]

    def test_discards_and_reraises(self, tmp_path, clock):
        storage = JsonLedgerStorage(tmp_path / "data.json", clock=clock)
        audit_logger = AuditLogger()

        with pytest.raises(RuntimeError):
            with ledger_session(storage, audit_logger) as db:
                db.add_client("alice", 30, "pouya", 60, "")
                raise RuntimeError("boom")

        assert storage.state is SessionState.DISCARDED
        assert not (tmp_path / "data.json").exists()
        [event] = audit_logger.events
        assert event.event_type == AuditEventType.SESSION_DISCARDED
        assert event.error_message == "boom"

    def test_commit_failure_becomes_commit_error(self, tmp_path, clock):
        storage = FailingCommitStorage(tmp_path / "data.json", clock=clock)
        audit_logger = AuditLogger()

        with pytest.raises(CommitError) as exc_info:
            with ledger_session(storage, audit_logger) as db:
                db.add_client("alice", 30, "pouya", 60, "")

        assert "disk full" in str(exc_info.value)
        assert storage.state is SessionState.DISCARDED
        assert event_types(audit_logger) == [AuditEventType.SESSION_DISCARDED]

    def test_works_without_audit_logger(self, tmp_path, clock):
        storage = JsonLedgerStorage(tmp_path / "data.json", clock=clock)

        with ledger_session(storage):
            storage.add_client("alice", 30, "pouya", 60, "")

        assert storage.state is SessionState.COMMITTED


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_events_share_correlation_id(self):
        audit_logger = AuditLogger()
        audit_logger.log_client_added("alice", 30, "pouya", 60)
        audit_logger.log_client_renamed("alice", "alicia")

        assert {event.correlation_id for event in audit_logger.events} == {
            audit_logger.correlation_id
        }

    def test_log_error_records_system_error(self):
        audit_logger = AuditLogger()
        audit_logger.log_error("invariant_violation", "client 'alice' has no payments")

        [event] = audit_logger.events
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "client 'alice' has no payments"
