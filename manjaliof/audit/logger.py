"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged with the correlation id
of the session that made it. This provides:
1. Traceability of who collected which payment
2. Debugging capability when a session is discarded
3. A record of what cleanup removed

The audit logger:
- Writes structured lines through structlog to stderr, never to stdout
  (stdout belongs to the client report)
- Never raises: a logging failure must not turn a good session into a failed one
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from manjaliof.models.audit import AuditEvent, AuditEventBuilder


def configure_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        level: Minimum level written to stderr
        json_output: Render JSON lines instead of console text
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.WARNING),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    One instance per session; all its events share the same correlation id.
    """

    def __init__(self, correlation_id: Optional[UUID] = None):
        self.correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger("manjaliof.audit")
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        self.events.append(event)
        log_dict = event.to_log_dict()
        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # stderr may be closed; the ledger session must not fail because of it
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)
            return False
        return True

    def log_client_added(self, name: str, days: int, seller: str, money: int) -> None:
        self.log(AuditEventBuilder.client_added(
            name, days, seller, money, correlation_id=self.correlation_id,
        ))

    def log_client_renewed(self, name: str, days: int, seller: str, money: int) -> None:
        self.log(AuditEventBuilder.client_renewed(
            name, days, seller, money, correlation_id=self.correlation_id,
        ))

    def log_clients_renewed_all(self, days: int) -> None:
        self.log(AuditEventBuilder.clients_renewed_all(days, correlation_id=self.correlation_id))

    def log_client_removed(self, name: str) -> None:
        self.log(AuditEventBuilder.client_removed(name, correlation_id=self.correlation_id))

    def log_client_renamed(self, old_name: str, new_name: str) -> None:
        self.log(AuditEventBuilder.client_renamed(
            old_name, new_name, correlation_id=self.correlation_id,
        ))

    def log_client_info_set(self, target: str, info: str) -> None:
        self.log(AuditEventBuilder.client_info_set(
            target, info, correlation_id=self.correlation_id,
        ))

    def log_cleanup_removed(self, name: str, days_expired: int) -> None:
        self.log(AuditEventBuilder.cleanup_removed(
            name, days_expired, correlation_id=self.correlation_id,
        ))

    def log_session_committed(self, backend: str) -> None:
        self.log(AuditEventBuilder.session_committed(backend, correlation_id=self.correlation_id))

    def log_session_discarded(self, backend: str, reason: str) -> None:
        self.log(AuditEventBuilder.session_discarded(
            backend, reason, correlation_id=self.correlation_id,
        ))

    def log_post_script_failed(self, script: str, error_message: str) -> None:
        self.log(AuditEventBuilder.post_script_failed(
            script, error_message, correlation_id=self.correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=self.correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for one ledger session.
    """
    return uuid4()
