"""
Tests for the command flows: what each one changes, which post script it
asks for, and what cleanup removes.
"""

import pytest

from manjaliof.audit import AuditLogger
from manjaliof.models.audit import AuditEventType
from manjaliof.models.ledger import AllClients, MatchInfo, OnePerson
from manjaliof.orchestrator import LedgerCommands, describe_target
from manjaliof.services.post_scripts import PostScriptCall
from manjaliof.services.storage import JsonLedgerStorage, NotFoundError


@pytest.fixture
def storage(tmp_path, clock):
    storage = JsonLedgerStorage(tmp_path / "data.json", clock=clock)
    yield storage
    storage.discard()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def commands(storage, clock, audit_logger):
    return LedgerCommands(storage, clock=clock, audit_logger=audit_logger)


class TestFlows:
    """Tests for the single-command flows."""

    def test_add(self, commands, storage, audit_logger):
        call = commands.add("alice", 30, "pouya", 60, "idk")

        assert call == PostScriptCall(script="add", args=["alice"])
        assert storage.get_client_info("alice") == "idk"
        assert audit_logger.events[-1].event_type == AuditEventType.CLIENT_ADDED

    def test_renew_overwrites_info(self, commands, storage):
        commands.add("alice", 30, "pouya", 60, "idk")

        call = commands.renew("alice", 30, "arian", 30, "smth")

        assert call == PostScriptCall(script="renew", args=["alice"])
        [client] = storage.list_clients()
        assert client.info == "smth"
        assert client.last_payment.seller == "arian"

    def test_renew_missing_client(self, commands, audit_logger):
        with pytest.raises(NotFoundError):
            commands.renew("ghost", 30, "arian", 30, "")
        assert audit_logger.events == []

    def test_renew_all_has_no_post_script(self, commands):
        commands.add("alice", 30, "pouya", 60, "")
        assert commands.renew_all(10) is None

    def test_remove(self, commands, storage):
        commands.add("alice", 30, "pouya", 60, "")

        call = commands.remove("alice")

        assert call == PostScriptCall(script="delete", args=["alice"])
        assert storage.list_clients() == []

    def test_rename(self, commands, storage):
        commands.add("alice", 30, "pouya", 60, "")

        call = commands.rename("alice", "alicia")

        assert call == PostScriptCall(script="rename", args=["alice", "alicia"])
        assert [c.name for c in storage.list_clients()] == ["alicia"]

    def test_set_info(self, commands, storage, audit_logger):
        commands.add("alice", 30, "pouya", 60, "vip")
        commands.add("bob", 30, "pouya", 60, "")

        assert commands.set_info(MatchInfo(info="vip"), "gold") is None

        assert storage.get_client_info("alice") == "gold"
        assert storage.get_client_info("bob") == ""
        event = audit_logger.events[-1]
        assert event.event_type == AuditEventType.CLIENT_INFO_SET
        assert event.details["target"] == "clients with info 'vip'"

    def test_current_info(self, commands):
        commands.add("alice", 30, "pouya", 60, "vip")

        assert commands.current_info(OnePerson(name="alice")) == "vip"
        assert commands.current_info(MatchInfo(info="gold")) == "gold"
        assert commands.current_info(AllClients()) == ""
        with pytest.raises(NotFoundError):
            commands.current_info(OnePerson(name="ghost"))

    def test_list_clients_latest_expiry_first(self, commands):
        commands.add("alice", 10, "pouya", 60, "")
        commands.add("bob", 30, "pouya", 60, "")
        commands.add("carol", 20, "pouya", 60, "")

        assert [c.name for c in commands.list_clients()] == ["bob", "carol", "alice"]


class TestCleanup:
    """Tests for cleanup."""

    @pytest.fixture
    def aged(self, commands, clock):
        commands.add("long_gone", 1, "pouya", 60, "")
        commands.add("recent", 5, "pouya", 60, "")
        commands.add("active", 30, "pouya", 60, "")
        clock.advance(days=7)
        return commands

    def test_removes_clients_past_grace_period(self, aged, storage, audit_logger):
        calls = aged.cleanup()

        assert calls == [PostScriptCall(script="delete", args=["long_gone"])]
        assert [c.name for c in storage.list_clients()] == ["recent", "active"]
        event = audit_logger.events[-1]
        assert event.event_type == AuditEventType.CLEANUP_REMOVED
        assert event.details["days_expired"] == 6

    def test_zero_grace_never_removes_active_clients(self, storage, clock):
        commands = LedgerCommands(storage, clock=clock, grace_days=0)
        commands.add("gone", 1, "pouya", 60, "")
        commands.add("active", 30, "pouya", 60, "")
        clock.advance(days=3)

        calls = commands.cleanup()

        assert [call.args for call in calls] == [["gone"]]
        assert [c.name for c in storage.list_clients()] == ["active"]

    def test_exactly_grace_days_expired_is_removed(self, storage, clock):
        commands = LedgerCommands(storage, clock=clock, grace_days=5)
        commands.add("alice", 0, "pouya", 60, "")
        clock.advance(days=5)

        assert [call.args for call in commands.cleanup()] == [["alice"]]

    def test_nothing_to_clean(self, commands):
        commands.add("alice", 30, "pouya", 60, "")
        assert commands.cleanup() == []


class TestDescribeTarget:

    def test_descriptions(self):
        assert describe_target(AllClients()) == "all clients"
        assert describe_target(MatchInfo(info="vip")) == "clients with info 'vip'"
        assert describe_target(OnePerson(name="alice")) == "client 'alice'"

    def test_unknown_target(self):
        with pytest.raises(TypeError):
            describe_target("alice")
