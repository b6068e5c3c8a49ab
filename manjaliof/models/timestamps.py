"""
Timestamp codec shared by both ledger backends.

Timestamps are persisted as fixed-format text, second precision, UTC:

    2024-12-15 08:30:00

DESIGN DECISION: One human-readable format for every stored timestamp.
Anyone opening data.db or data.json can read the expiry dates directly.
"""

from datetime import datetime, timezone

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    """Current UTC time, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def datetime_to_str(value: datetime) -> str:
    return to_utc(value).strftime(TIMESTAMP_FORMAT)


def datetime_from_str(text: str) -> datetime:
    """
    Parse a stored timestamp.

    Raises:
        ValueError: If the text is not in TIMESTAMP_FORMAT
    """
    if not isinstance(text, str):
        raise ValueError(f"timestamp must be text, got {type(text).__name__}")
    return datetime.strptime(text, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
