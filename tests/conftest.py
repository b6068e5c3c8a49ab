"""
Shared fixtures.

Every storage test runs against all three backends through `open_ledger`,
which opens a fresh session on the same data folder each time it is called.
"""

from datetime import datetime, timedelta, timezone

import pytest

from manjaliof.config import StorageSettings, get_settings
from manjaliof.services.storage import open_storage


BACKENDS = ["sqlite", "json", "json-write-through"]

START = datetime(2024, 11, 15, 8, 30, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock; calling it returns the current fake time."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's MANJALIOF_* variables out of the tests."""
    for name in (
        "MANJALIOF_DATA",
        "MANJALIOF_BACKEND",
        "MANJALIOF_SELLERS",
        "MANJALIOF_LOG_LEVEL",
        "MANJALIOF_LOG_JSON",
        "MANJALIOF_CLEANUP_GRACE_DAYS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=BACKENDS)
def backend(request):
    return request.param


@pytest.fixture
def storage_settings(tmp_path, backend):
    return StorageSettings(data=tmp_path, backend=backend)


@pytest.fixture
def ledger_path(storage_settings):
    if storage_settings.backend == "sqlite":
        return storage_settings.db_path
    return storage_settings.json_path


@pytest.fixture
def open_ledger(storage_settings, clock):
    """Factory for new sessions; sessions left open are discarded at teardown."""
    sessions = []

    def _open():
        storage = open_storage(storage_settings, clock=clock)
        sessions.append(storage)
        return storage

    yield _open

    for storage in sessions:
        storage.discard()


@pytest.fixture
def ledger(open_ledger):
    return open_ledger()


def seed(open_ledger, *clients):
    """Commit clients given as (name, days, seller, money, info) tuples."""
    storage = open_ledger()
    for client in clients:
        storage.add_client(*client)
    storage.commit()
