"""
Command Flows for manjaliof

This module ties the ledger contract to the commands a user can run:
add, renew, renew-all, remove, rename, set-info, list and cleanup.

DESIGN DECISION: Flows only talk to LedgerStorageInterface.
- They never commit; the session wrapper around them does
- They return which post script should run, but never run it; scripts
  run only after the session committed
- Every mutation is audited

This is the "glue" between validated user input and the storage layer.
"""

from datetime import datetime
from typing import Callable, Optional

from manjaliof.audit import AuditLogger
from manjaliof.models.ledger import (
    AllClients,
    Client,
    MatchInfo,
    OnePerson,
    Target,
)
from manjaliof.models.timestamps import utc_now
from manjaliof.services.post_scripts import PostScriptCall
from manjaliof.services.storage import LedgerStorageInterface


DEFAULT_GRACE_DAYS = 5


def describe_target(target: Target) -> str:
    """Short human-readable form of a target, for logs."""
    if isinstance(target, AllClients):
        return "all clients"
    if isinstance(target, MatchInfo):
        return f"clients with info '{target.info}'"
    if isinstance(target, OnePerson):
        return f"client '{target.name}'"
    raise TypeError(f"unknown target: {target!r}")


class LedgerCommands:
    """
    Runs user commands against one open ledger session.

    Each flow returns the post script to run after commit, or None.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        clock: Callable[[], datetime] = utc_now,
        grace_days: int = DEFAULT_GRACE_DAYS,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._clock = clock
        self._grace_days = grace_days
        self._audit_logger = audit_logger

    def add(
        self,
        name: str,
        days: int,
        seller: str,
        money: int,
        info: str,
    ) -> Optional[PostScriptCall]:
        self._storage.add_client(name, days, seller, money, info)
        if self._audit_logger:
            self._audit_logger.log_client_added(name, days, seller, money)
        return PostScriptCall(script="add", args=[name])

    def renew(
        self,
        name: str,
        days: int,
        seller: str,
        money: int,
        info: str,
    ) -> Optional[PostScriptCall]:
        """Renew a client and overwrite its info in the same session."""
        self._storage.renew_client(name, days, seller, money)
        self._storage.set_client_info(OnePerson(name=name), info)
        if self._audit_logger:
            self._audit_logger.log_client_renewed(name, days, seller, money)
        return PostScriptCall(script="renew", args=[name])

    def renew_all(self, days: int) -> Optional[PostScriptCall]:
        self._storage.renew_all_clients(days)
        if self._audit_logger:
            self._audit_logger.log_clients_renewed_all(days)
        return None

    def remove(self, name: str) -> Optional[PostScriptCall]:
        self._storage.remove_client(name)
        if self._audit_logger:
            self._audit_logger.log_client_removed(name)
        return PostScriptCall(script="delete", args=[name])

    def rename(self, old_name: str, new_name: str) -> Optional[PostScriptCall]:
        self._storage.rename_client(old_name, new_name)
        if self._audit_logger:
            self._audit_logger.log_client_renamed(old_name, new_name)
        return PostScriptCall(script="rename", args=[old_name, new_name])

    def set_info(self, target: Target, info: str) -> Optional[PostScriptCall]:
        self._storage.set_client_info(target, info)
        if self._audit_logger:
            self._audit_logger.log_client_info_set(describe_target(target), info)
        return None

    def current_info(self, target: Target) -> str:
        """
        The info to pre-fill when prompting for a new one.

        Raises:
            NotFoundError: If target names a client that doesn't exist
        """
        if isinstance(target, OnePerson):
            return self._storage.get_client_info(target.name)
        if isinstance(target, MatchInfo):
            return target.info
        return ""

    def list_clients(self) -> list[Client]:
        """All clients, the one expiring last first."""
        clients = self._storage.list_clients()
        clients.sort(key=lambda client: client.expire_time, reverse=True)
        return clients

    def cleanup(self) -> list[PostScriptCall]:
        """
        Remove clients expired for at least the grace period.

        Returns:
            One `delete` post script call per removed client
        """
        now = self._clock()
        calls = []

        for client in self._storage.list_clients():
            days_expired = -client.days_left(now)
            if not client.is_expired(now) or days_expired < self._grace_days:
                continue

            self._storage.remove_client(client.name)
            if self._audit_logger:
                self._audit_logger.log_cleanup_removed(client.name, days_expired)
            calls.append(PostScriptCall(script="delete", args=[client.name]))

        return calls
