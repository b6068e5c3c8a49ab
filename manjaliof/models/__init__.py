"""
Data Models Package

This package contains all Pydantic models used by manjaliof.
Everything the ledger stores or logs conforms to these schemas.
"""

from manjaliof.models.ledger import (
    AllClients,
    Client,
    MatchInfo,
    OnePerson,
    Payment,
    Target,
    renewed_expire_time,
)
from manjaliof.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from manjaliof.models.timestamps import (
    TIMESTAMP_FORMAT,
    datetime_from_str,
    datetime_to_str,
    utc_now,
)

__all__ = [
    # Ledger models
    "AllClients",
    "Client",
    "MatchInfo",
    "OnePerson",
    "Payment",
    "Target",
    "renewed_expire_time",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Timestamp codec
    "TIMESTAMP_FORMAT",
    "datetime_from_str",
    "datetime_to_str",
    "utc_now",
]
