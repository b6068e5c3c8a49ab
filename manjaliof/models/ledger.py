"""
Ledger Data Models for manjaliof

These models define the schemas for everything stored in the ledger:
- Client: one subscriber, keyed by a unique name
- Payment: one payment event, immutable once recorded
- Target: selector used by bulk info updates

DESIGN DECISION: Timestamps are always aware UTC datetimes truncated to
whole seconds. That makes the in-memory value identical to what the
backends persist, so a save/load cycle never changes a client.
"""

from datetime import datetime, timedelta
from typing import Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from manjaliof.models.timestamps import datetime_from_str, datetime_to_str, to_utc


def _coerce_timestamp(value: Any) -> Any:
    """Accept stored text or datetimes; leave anything else to pydantic."""
    if isinstance(value, str):
        return datetime_from_str(value)
    if isinstance(value, datetime):
        return to_utc(value).replace(microsecond=0)
    return value


def renewed_expire_time(current: datetime, now: datetime, days: int) -> datetime:
    """
    New expiry for a renewal.

    A client renewed before expiry keeps the remaining time; a client
    renewed after expiry starts counting from now.
    """
    return max(now, current) + timedelta(days=days)


# =============================================================================
# PAYMENT
# =============================================================================

class Payment(BaseModel):
    """A single payment event. Never modified after it is recorded."""
    model_config = ConfigDict(frozen=True)

    seller: str = Field(
        ...,
        description="Who collected the payment"
    )
    money: int = Field(
        ...,
        ge=0,
        description="Amount paid"
    )
    date: datetime = Field(
        ...,
        description="When the payment was made (UTC)"
    )

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _coerce_timestamp(v)

    @field_serializer('date', when_used='json')
    def serialize_date(self, v: datetime) -> str:
        return datetime_to_str(v)


# =============================================================================
# CLIENT
# =============================================================================

class Client(BaseModel):
    """
    One ledger subscriber.

    Payments are kept in insertion order, most recent last.
    A client always has at least one payment; the backends enforce that.
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field(
        ...,
        description="Unique client name (primary key)"
    )
    expire_time: datetime = Field(
        ...,
        description="When the subscription ends (UTC)"
    )
    payments: list[Payment] = Field(
        ...,
        description="Payment history, oldest first"
    )
    info: Optional[str] = Field(
        default=None,
        description="Short free-text annotation"
    )

    @field_validator('expire_time', mode='before')
    @classmethod
    def parse_expire_time(cls, v: Any) -> Any:
        return _coerce_timestamp(v)

    @field_serializer('expire_time', when_used='json')
    def serialize_expire_time(self, v: datetime) -> str:
        return datetime_to_str(v)

    @classmethod
    def new(
        cls,
        name: str,
        days: int,
        seller: str,
        money: int,
        info: str,
        now: datetime,
    ) -> "Client":
        """Build a brand new client with its initial payment."""
        return cls(
            name=name,
            expire_time=now + timedelta(days=days),
            payments=[Payment(seller=seller, money=money, date=now)],
            info=info,
        )

    @property
    def last_payment(self) -> Optional[Payment]:
        return self.payments[-1] if self.payments else None

    @property
    def info_text(self) -> str:
        """Info with the read-side default applied."""
        return self.info if self.info is not None else ""

    def is_expired(self, now: datetime) -> bool:
        return self.expire_time < now

    def days_left(self, now: datetime) -> int:
        """Whole days until expiry, truncated toward zero (negative once expired)."""
        return int((self.expire_time - now).total_seconds() / 86400)


# =============================================================================
# TARGET - selector for set_client_info
# =============================================================================

class AllClients(BaseModel):
    """Every client in the ledger."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["all"] = "all"

    def matches(self, client: Client) -> bool:
        return True


class MatchInfo(BaseModel):
    """Every client whose current info equals `info` exactly."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["match_info"] = "match_info"
    info: str

    def matches(self, client: Client) -> bool:
        return client.info == self.info


class OnePerson(BaseModel):
    """Exactly one client, by name. The only target that can miss."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["one_person"] = "one_person"
    name: str

    def matches(self, client: Client) -> bool:
        return client.name == self.name


Target = Union[AllClients, MatchInfo, OnePerson]
