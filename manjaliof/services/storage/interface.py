"""
Abstract Ledger Storage Interface

DESIGN DECISION: We define one abstract interface for the ledger.
This allows us to:
1. Pick SQLite or a JSON snapshot file at startup without touching callers
2. Run the same contract tests against every backend
3. Keep the command flows decoupled from how data is persisted

Every instance is a SESSION: it starts OPEN, and ends either COMMITTED
(the only path to durability) or DISCARDED (everything it did is gone).
Leaving a `with` block without calling commit() discards.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

import structlog

from manjaliof.models.ledger import Client, Target


logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    """Lifecycle of one ledger session."""
    OPEN = "open"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any backend (SQLite, JSON snapshot, ...) must implement these methods.
    Inputs are trusted: names, sellers and info were validated by the caller.
    """

    backend_name = "abstract"

    def __init__(self) -> None:
        self._state = SessionState.OPEN

    # -- session lifecycle ----------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def commit(self) -> None:
        """
        Finalize every operation of this session durably.

        Raises:
            SessionClosedError: If the session already ended
            CommitError: If finalizing fails (the session is then discarded)
        """
        self._ensure_open()
        try:
            self._finalize()
        except StorageError as e:
            self._state = SessionState.DISCARDED
            raise CommitError(str(e)) from e
        except BaseException:
            self._state = SessionState.DISCARDED
            raise
        self._state = SessionState.COMMITTED
        logger.debug("session_committed", backend=self.backend_name)

    def discard(self) -> None:
        """Abandon every operation of this session. No-op once the session ended."""
        if self._state is not SessionState.OPEN:
            return
        try:
            self._abandon()
        finally:
            self._state = SessionState.DISCARDED
        logger.debug("session_discarded", backend=self.backend_name)

    def __enter__(self) -> "LedgerStorageInterface":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.discard()
        return False

    def _ensure_open(self) -> None:
        if self._state is not SessionState.OPEN:
            raise SessionClosedError(
                f"ledger session is already {self._state.value}"
            )

    @abstractmethod
    def _finalize(self) -> None:
        """Make the session's effects durable (transaction commit or write-back)."""
        pass

    @abstractmethod
    def _abandon(self) -> None:
        """Make sure none of the session's effects become durable."""
        pass

    # -- ledger operations ----------------------------------------------------

    @abstractmethod
    def add_client(
        self,
        name: str,
        days: int,
        seller: str,
        money: int,
        info: str,
    ) -> None:
        """
        Create a client with one initial payment.

        Args:
            name: Unique client name
            days: Subscription length from now
            seller: Who collected the payment
            money: Amount paid
            info: Annotation text

        Raises:
            AlreadyExistsError: If a client with this name exists
        """
        pass

    @abstractmethod
    def renew_client(self, name: str, days: int, seller: str, money: int) -> None:
        """
        Extend a client's subscription and record the payment.

        The new expiry is max(now, expire_time) + days.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        pass

    @abstractmethod
    def renew_all_clients(self, days: int) -> None:
        """Extend every client that is not expired yet by `days`. Expired ones are skipped."""
        pass

    @abstractmethod
    def remove_client(self, name: str) -> None:
        """
        Delete a client together with all of its payments.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        pass

    @abstractmethod
    def list_clients(self) -> list[Client]:
        """
        Return every client, in insertion order, with full payment history.

        Raises:
            StorageError: If stored data can't be read or parsed
        """
        pass

    @abstractmethod
    def rename_client(self, old_name: str, new_name: str) -> None:
        """
        Change a client's name; its payments follow.

        Raises:
            NotFoundError: If old_name doesn't exist
            AlreadyExistsError: If new_name belongs to another client
        """
        pass

    @abstractmethod
    def set_client_info(self, target: Target, info: str) -> None:
        """
        Overwrite info for every client selected by target.

        Matching zero clients is fine for AllClients and MatchInfo.

        Raises:
            NotFoundError: If target is OnePerson and the name doesn't exist
        """
        pass

    @abstractmethod
    def get_client_info(self, name: str) -> str:
        """
        Return the client's info, "" when unset.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        pass


class BackupableStorage(ABC):
    """
    Raw backup/restore pair for backends that write through on every call.

    The caller takes a backup before the first mutation and writes it back
    if anything fails.
    """

    @abstractmethod
    def get_backup(self) -> Optional[Any]:
        """Capture the persisted state verbatim."""
        pass

    @abstractmethod
    def restore_backup(self, backup: Optional[Any]) -> None:
        """Write a previously captured state back, exactly as it was."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Client not found in storage."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"client with name '{name}' doesn't exist")


class AlreadyExistsError(StorageError):
    """Attempted to insert a client whose name is taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"client '{name}' already exists")


class StorageIOError(StorageError):
    """Could not read from or write to the storage backend."""
    pass


class StorageFormatError(StorageError):
    """Persisted data is malformed."""
    pass


class SessionClosedError(StorageError):
    """Operation attempted on a session that was already committed or discarded."""
    pass


class CommitError(StorageError):
    """The session could not be finalized; nothing from it was persisted."""
    pass


class InvariantViolationError(Exception):
    """
    The stored ledger contradicts its own invariants.

    Raised for a client without payment rows, or for a cascade that
    touched zero rows after the client was proven to exist. This means the
    store is corrupt; it is intentionally not a StorageError so callers do
    not treat it as ordinary user error.
    """
    pass
