"""
SQLite Storage Implementation

DESIGN DECISION: One SQLite transaction per session.
- BEGIN IMMEDIATE is issued when the storage is opened, so the write lock
  is held for the whole run and other processes wait or fail at open time
- Every operation runs inside that transaction
- commit() issues COMMIT; anything else ends in ROLLBACK

Nothing is visible to other processes until commit(). If the process
dies before that, SQLite rolls the transaction back on its own.

Tables:
    clients(name TEXT PRIMARY KEY, expire_date TEXT NOT NULL, info TEXT)
    payments(client_name TEXT NOT NULL, seller TEXT NOT NULL,
             date TEXT NOT NULL, money INTEGER NOT NULL)

payments.client_name refers to clients.name, but the reference is not
enforced by SQLite; the operations below keep the two tables consistent.
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Union

import structlog
from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from manjaliof.models.ledger import (
    AllClients,
    Client,
    MatchInfo,
    OnePerson,
    Payment,
    Target,
    renewed_expire_time,
)
from manjaliof.models.timestamps import datetime_from_str, datetime_to_str, utc_now
from manjaliof.services.storage.interface import (
    AlreadyExistsError,
    InvariantViolationError,
    LedgerStorageInterface,
    NotFoundError,
    StorageFormatError,
    StorageIOError,
)


logger = structlog.get_logger(__name__)


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS clients (
        name TEXT PRIMARY KEY,
        expire_date TEXT NOT NULL,
        info TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS payments (
        client_name TEXT NOT NULL,
        seller TEXT NOT NULL,
        date TEXT NOT NULL,
        money INTEGER NOT NULL
    )
    """,
)


def _is_busy(error: BaseException) -> bool:
    """True for the 'database is locked' / 'database is busy' family of errors."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return "locked" in message or "busy" in message


class SqliteLedgerStorage(LedgerStorageInterface):
    """
    SQLite implementation of the ledger.

    The constructor opens the connection and the session transaction.
    """

    backend_name = "sqlite"

    def __init__(
        self,
        db_path: Union[str, Path],
        clock: Callable[[], datetime] = utc_now,
        lock_retry_attempts: int = 3,
        lock_timeout_seconds: float = 5.0,
    ):
        super().__init__()
        self._db_path = str(db_path)
        self._clock = clock
        self._conn = self._open(lock_retry_attempts, lock_timeout_seconds)

    def _open(self, attempts: int, timeout: float) -> sqlite3.Connection:
        try:
            # isolation_level=None: we issue BEGIN/COMMIT/ROLLBACK ourselves
            conn = sqlite3.connect(self._db_path, timeout=timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise StorageIOError(f"cannot open database '{self._db_path}': {e}") from e

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(attempts),
                wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
                retry=retry_if_exception(_is_busy),
                reraise=True,
            ):
                with attempt:
                    conn.execute("BEGIN IMMEDIATE")
            for statement in SCHEMA:
                conn.execute(statement)
        except sqlite3.Error as e:
            conn.close()
            raise StorageIOError(f"cannot start transaction on '{self._db_path}': {e}") from e

        logger.debug("sqlite_session_opened", path=self._db_path)
        return conn

    # -- helpers --------------------------------------------------------------

    def _execute(self, sql: str, params: Iterable = ()) -> sqlite3.Cursor:
        self._ensure_open()
        try:
            return self._conn.execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise StorageIOError(f"sql error: {e}") from e

    def _fetch_all(self, sql: str, params: Iterable = ()) -> list[tuple]:
        cursor = self._execute(sql, params)
        try:
            return cursor.fetchall()
        except sqlite3.Error as e:
            raise StorageIOError(f"sql error: {e}") from e
        finally:
            cursor.close()

    @staticmethod
    def _decode_timestamp(text: str, what: str) -> datetime:
        try:
            return datetime_from_str(text)
        except ValueError as e:
            raise StorageFormatError(f"invalid {what} '{text}': {e}") from e

    def _add_payment(self, client_name: str, seller: str, date: datetime, money: int) -> None:
        self._execute(
            "INSERT INTO payments (client_name, seller, date, money) VALUES (?, ?, ?, ?)",
            (client_name, seller, datetime_to_str(date), money),
        )

    def _get_client_expire_date(self, name: str) -> datetime:
        rows = self._fetch_all("SELECT expire_date FROM clients WHERE name=? LIMIT 1", (name,))
        if not rows:
            raise NotFoundError(name)
        return self._decode_timestamp(rows[0][0], "expire_date")

    # -- session lifecycle ----------------------------------------------------

    def _finalize(self) -> None:
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            try:
                self._conn.execute("ROLLBACK")
            except sqlite3.Error:
                logger.warning("sqlite_rollback_after_failed_commit_failed", path=self._db_path)
            raise StorageIOError(f"cannot commit transaction: {e}") from e
        finally:
            self._conn.close()

    def _abandon(self) -> None:
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            # closing the connection below rolls back as well
            logger.warning("sqlite_rollback_failed", path=self._db_path, error=str(e))
        finally:
            self._conn.close()

    # -- ledger operations ----------------------------------------------------

    def add_client(self, name: str, days: int, seller: str, money: int, info: str) -> None:
        client = Client.new(name, days, seller, money, info, now=self._clock())

        # OR IGNORE keeps the transaction alive; rowcount tells us about duplicates
        cursor = self._execute(
            "INSERT OR IGNORE INTO clients (name, expire_date, info) VALUES (?, ?, ?)",
            (name, datetime_to_str(client.expire_time), info),
        )
        if cursor.rowcount == 0:
            raise AlreadyExistsError(name)

        payment = client.payments[0]
        self._add_payment(name, payment.seller, payment.date, payment.money)

    def renew_client(self, name: str, days: int, seller: str, money: int) -> None:
        now = self._clock()
        expire_date = renewed_expire_time(self._get_client_expire_date(name), now, days)

        cursor = self._execute(
            "UPDATE clients SET expire_date=? WHERE name=?",
            (datetime_to_str(expire_date), name),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(name)

        self._add_payment(name, seller, now, money)

    def renew_all_clients(self, days: int) -> None:
        now = self._clock()
        rows = self._fetch_all("SELECT name, expire_date FROM clients ORDER BY rowid")

        for name, expire_text in rows:
            expire_date = self._decode_timestamp(expire_text, "expire_date")
            if expire_date < now:
                continue

            cursor = self._execute(
                "UPDATE clients SET expire_date=? WHERE name=?",
                (datetime_to_str(renewed_expire_time(expire_date, now, days)), name),
            )
            if cursor.rowcount == 0:
                raise InvariantViolationError(
                    f"client '{name}' disappeared while renewing all clients"
                )

    def remove_client(self, name: str) -> None:
        cursor = self._execute("DELETE FROM clients WHERE name=?", (name,))
        if cursor.rowcount == 0:
            raise NotFoundError(name)

        cursor = self._execute("DELETE FROM payments WHERE client_name=?", (name,))
        if cursor.rowcount == 0:
            raise InvariantViolationError(f"client '{name}' had no payments to remove")

    def list_clients(self) -> list[Client]:
        payments: dict[str, list[Payment]] = {}
        clients: list[Client] = []

        try:
            for client_name, seller, date, money in self._fetch_all(
                "SELECT client_name, seller, date, money FROM payments ORDER BY rowid"
            ):
                payments.setdefault(client_name, []).append(Payment(
                    seller=seller,
                    money=money,
                    date=self._decode_timestamp(date, "payment date"),
                ))

            for name, expire_date, info in self._fetch_all(
                "SELECT name, expire_date, info FROM clients ORDER BY rowid"
            ):
                client_payments = payments.pop(name, None)
                if not client_payments:
                    raise InvariantViolationError(f"client '{name}' has no payments")

                clients.append(Client(
                    name=name,
                    expire_time=self._decode_timestamp(expire_date, "expire_date"),
                    payments=client_payments,
                    info=info,
                ))
        except ValidationError as e:
            raise StorageFormatError(f"invalid row in database: {e}") from e

        if payments:
            logger.warning("orphan_payments_found", client_names=sorted(payments))

        return clients

    def rename_client(self, old_name: str, new_name: str) -> None:
        self._ensure_open()
        try:
            cursor = self._conn.execute(
                "UPDATE clients SET name=? WHERE name=?", (new_name, old_name)
            )
        except sqlite3.IntegrityError as e:
            raise AlreadyExistsError(new_name) from e
        except sqlite3.Error as e:
            raise StorageIOError(f"sql error: {e}") from e

        if cursor.rowcount == 0:
            raise NotFoundError(old_name)

        cursor = self._execute(
            "UPDATE payments SET client_name=? WHERE client_name=?",
            (new_name, old_name),
        )
        if cursor.rowcount == 0:
            raise InvariantViolationError(f"client '{old_name}' had no payments to rename")

    def set_client_info(self, target: Target, info: str) -> None:
        if isinstance(target, AllClients):
            self._execute("UPDATE clients SET info=?", (info,))
        elif isinstance(target, MatchInfo):
            self._execute("UPDATE clients SET info=? WHERE info=?", (info, target.info))
        elif isinstance(target, OnePerson):
            cursor = self._execute("UPDATE clients SET info=? WHERE name=?", (info, target.name))
            if cursor.rowcount == 0:
                raise NotFoundError(target.name)
        else:
            raise TypeError(f"unknown target: {target!r}")

    def get_client_info(self, name: str) -> str:
        rows = self._fetch_all("SELECT info FROM clients WHERE name=? LIMIT 1", (name,))
        if not rows:
            raise NotFoundError(name)
        return rows[0][0] or ""
