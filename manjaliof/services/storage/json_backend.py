"""
JSON Snapshot Storage Implementation

DESIGN DECISION: The whole ledger lives in one JSON file:

    [
      {
        "name": "alice",
        "expire_time": "2024-12-15 08:30:00",
        "payments": [{"seller": "pouya", "money": 60, "date": "2024-11-15 08:30:00"}],
        "info": "idk"
      }
    ]

Two flavours share the parsing/mutation code:
- JsonLedgerStorage reads the file once, mutates an in-memory copy and
  writes the whole collection back in a single write on commit()
- WriteThroughJsonStorage writes after every mutation and undoes the
  session by writing the verbatim pre-session file back

TRADEOFFS:
- No cross-process locking; two runs racing on the same file is unsupported
- Fine for a ledger small enough to list in full
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

import structlog
from pydantic import ValidationError

from manjaliof.models.ledger import (
    AllClients,
    Client,
    MatchInfo,
    OnePerson,
    Payment,
    Target,
    renewed_expire_time,
)
from manjaliof.models.timestamps import utc_now
from manjaliof.services.storage.interface import (
    AlreadyExistsError,
    BackupableStorage,
    InvariantViolationError,
    LedgerStorageInterface,
    NotFoundError,
    StorageFormatError,
    StorageIOError,
)


logger = structlog.get_logger(__name__)


def parse_clients(text: str) -> list[Client]:
    """
    Parse the snapshot file contents.

    An empty (or whitespace-only) file is an empty ledger.

    Raises:
        StorageFormatError: If the text is not a list of client records
        InvariantViolationError: If a client has no payments or a name repeats
    """
    if not text.strip():
        return []

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageFormatError(f"cannot parse json: {e}") from e

    if not isinstance(raw, list):
        raise StorageFormatError("cannot parse json: expected a list of clients")

    clients: list[Client] = []
    seen: set[str] = set()
    for record in raw:
        if isinstance(record, dict) and not record.get("payments"):
            raise InvariantViolationError(f"client '{record.get('name')}' has no payments")
        try:
            client = Client.model_validate(record)
        except ValidationError as e:
            raise StorageFormatError(f"invalid client record: {e}") from e
        if not client.payments:
            raise InvariantViolationError(f"client '{client.name}' has no payments")
        if client.name in seen:
            raise InvariantViolationError(f"client '{client.name}' is stored twice")
        seen.add(client.name)
        clients.append(client)

    return clients


def serialize_clients(clients: list[Client]) -> str:
    return json.dumps(
        [client.model_dump(mode="json") for client in clients],
        indent=2,
        ensure_ascii=False,
    )


class JsonLedgerStorage(LedgerStorageInterface):
    """
    Snapshot backend: cache in memory, write back once on commit.

    Operations within one session see each other's changes through the
    cache. If commit() is never reached the file is left byte-identical.
    """

    backend_name = "json"

    def __init__(
        self,
        file_path: Union[str, Path],
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__()
        self._file_path = Path(file_path)
        self._clock = clock
        self._clients: Optional[list[Client]] = None
        self._dirty = False

    # -- file access ----------------------------------------------------------

    def _read_text(self) -> Optional[str]:
        """Raw file contents, None when the file doesn't exist yet."""
        try:
            return self._file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageIOError(f"cannot open file '{self._file_path}': {e}") from e

    def _write_text(self, text: str) -> None:
        """Replace the file contents in one step (write a sibling, then rename)."""
        tmp_path = self._file_path.with_name(self._file_path.name + ".tmp")
        try:
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, self._file_path)
        except OSError as e:
            raise StorageIOError(f"cannot write to file '{self._file_path}': {e}") from e

    def _load(self) -> list[Client]:
        self._ensure_open()
        if self._clients is None:
            text = self._read_text()
            self._clients = parse_clients(text) if text is not None else []
        return self._clients

    def _save(self) -> None:
        if self._clients is not None:
            self._write_text(serialize_clients(self._clients))

    def _after_mutation(self) -> None:
        """The cached flavour only remembers that commit() has something to write."""
        self._dirty = True

    def _find(self, name: str) -> Optional[Client]:
        for client in self._load():
            if client.name == name:
                return client
        return None

    def _get(self, name: str) -> Client:
        client = self._find(name)
        if client is None:
            raise NotFoundError(name)
        return client

    # -- session lifecycle ----------------------------------------------------

    def _finalize(self) -> None:
        if not self._dirty:
            return
        self._save()
        self._dirty = False
        logger.debug("json_snapshot_written", path=str(self._file_path))

    def _abandon(self) -> None:
        self._clients = None
        self._dirty = False

    # -- ledger operations ----------------------------------------------------

    def add_client(self, name: str, days: int, seller: str, money: int, info: str) -> None:
        if self._find(name) is not None:
            raise AlreadyExistsError(name)

        self._load().append(Client.new(name, days, seller, money, info, now=self._clock()))
        self._after_mutation()

    def renew_client(self, name: str, days: int, seller: str, money: int) -> None:
        client = self._get(name)
        now = self._clock()

        client.expire_time = renewed_expire_time(client.expire_time, now, days)
        client.payments.append(Payment(seller=seller, money=money, date=now))
        self._after_mutation()

    def renew_all_clients(self, days: int) -> None:
        now = self._clock()
        for client in self._load():
            if client.is_expired(now):
                continue
            client.expire_time = renewed_expire_time(client.expire_time, now, days)
        self._after_mutation()

    def remove_client(self, name: str) -> None:
        clients = self._load()
        for index, client in enumerate(clients):
            if client.name == name:
                del clients[index]
                break
        else:
            raise NotFoundError(name)
        self._after_mutation()

    def list_clients(self) -> list[Client]:
        # copies, so callers can't reach into the session cache
        return [client.model_copy(deep=True) for client in self._load()]

    def rename_client(self, old_name: str, new_name: str) -> None:
        client = self._get(old_name)
        if new_name != old_name and self._find(new_name) is not None:
            raise AlreadyExistsError(new_name)

        client.name = new_name
        self._after_mutation()

    def set_client_info(self, target: Target, info: str) -> None:
        if isinstance(target, OnePerson):
            self._get(target.name).info = info
        elif isinstance(target, (AllClients, MatchInfo)):
            for client in self._load():
                if target.matches(client):
                    client.info = info
        else:
            raise TypeError(f"unknown target: {target!r}")
        self._after_mutation()

    def get_client_info(self, name: str) -> str:
        return self._get(name).info_text


class WriteThroughJsonStorage(JsonLedgerStorage, BackupableStorage):
    """
    Snapshot backend that writes the file after every mutation.

    The verbatim file contents are captured when the session opens.
    Discarding the session writes that backup back, so the file ends up
    exactly as it was before the run.
    """

    backend_name = "json-write-through"

    def __init__(
        self,
        file_path: Union[str, Path],
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(file_path, clock=clock)
        self._backup = self.get_backup()

    def get_backup(self) -> Optional[str]:
        """File contents as text, or None if the file doesn't exist."""
        return self._read_text()

    def restore_backup(self, backup: Optional[str]) -> None:
        if backup is None:
            try:
                self._file_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise StorageIOError(
                    f"cannot remove database file at '{self._file_path}' for restoring: {e}"
                ) from e
        else:
            self._write_text(backup)
        self._clients = None

    def _after_mutation(self) -> None:
        self._save()

    def _finalize(self) -> None:
        # every mutation is already on disk
        pass

    def _abandon(self) -> None:
        self.restore_backup(self._backup)
        logger.debug("json_backup_restored", path=str(self._file_path))
