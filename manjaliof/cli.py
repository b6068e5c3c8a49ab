"""
manjaliof command line

    manjaliof add --name alice --days 30 --seller pouya --money 60 --info idk
    manjaliof renew --name alice --days 10 --seller arian --money 30
    manjaliof list --trim-whitespace

Each invocation is one ledger session: every change it makes is committed
together at the end, or none is. Post scripts run only after the commit.
Values missing from the command line are asked for interactively.
"""

import argparse
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from manjaliof import __version__
from manjaliof.audit import AuditLogger, configure_logging
from manjaliof.config import ConfigurationError, Settings, get_settings
from manjaliof.models.ledger import AllClients, MatchInfo, OnePerson, Target
from manjaliof.models.timestamps import utc_now
from manjaliof.orchestrator import LedgerCommands
from manjaliof.prompts import prompt_choice, prompt_number, prompt_text
from manjaliof.reports import build_client_report
from manjaliof.reports.client_report import style
from manjaliof.services.post_scripts import PostScriptCall, PostScriptError, PostScriptRunner
from manjaliof.services.storage import (
    CommitError,
    InvariantViolationError,
    StorageError,
    open_storage,
)
from manjaliof.session import ledger_session
from manjaliof.validation import InputValidator, InvalidInputError


SET_INFO_CONFLICT = "--match-info and --all and --name conflicts with each other"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manjaliof",
        description="this program will always remain manjaliof",
    )
    parser.add_argument("--skip-post-script", action="store_true", default=False)
    commands = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (("add", "adds new client to db"), ("renew", "renew client")):
        sub = commands.add_parser(command, help=help_text)
        sub.add_argument("--name")
        sub.add_argument("--days", type=int)
        sub.add_argument("--seller")
        sub.add_argument("--money", type=int)
        sub.add_argument("--info")

    sub = commands.add_parser("renew-all", help="renew all clients that are not expired")
    sub.add_argument("--days", type=int)

    sub = commands.add_parser("remove", help="remove client")
    sub.add_argument("--name")

    sub = commands.add_parser("list", help="show all clients")
    sub.add_argument("--trim-whitespace", action="store_true", default=False)
    sub.add_argument("--verbose", action="store_true", default=False)

    sub = commands.add_parser("rename", help="rename client")
    sub.add_argument("--old-name")
    sub.add_argument("--new-name")

    sub = commands.add_parser("set-info", help="set client info")
    sub.add_argument("--all", action="store_true", default=False)
    sub.add_argument("--match-info")
    sub.add_argument("--name")
    sub.add_argument("--info")

    commands.add_parser("cleanup", help="remove clients that expired a long time ago")
    commands.add_parser("version", help="show the installed version")

    return parser


class CommandRunner:
    """Collects input for one parsed command and runs it in a ledger session."""

    def __init__(self, args: argparse.Namespace, settings: Settings):
        self.args = args
        self.settings = settings
        self.validator = InputValidator(settings.input)
        self.color = sys.stdout.isatty()

    # -- input ----------------------------------------------------------------

    def _name(self, value: Optional[str], label: str = "client name") -> str:
        return self.validator.validate_name(value if value is not None else prompt_text(label))

    def _days(self) -> int:
        days = self.args.days
        if days is None:
            days = prompt_number("how many days", self.settings.input.default_days)
        return self.validator.validate_amount(days, "days")

    def _money(self) -> int:
        money = self.args.money
        if money is None:
            money = prompt_number("money money", self.settings.input.default_money)
        return self.validator.validate_amount(money, "money")

    def _seller(self) -> str:
        seller = self.args.seller
        if seller is None:
            seller = prompt_choice("who gets money", self.validator.sellers)
        return self.validator.validate_seller(seller)

    def _info(self, last_info: Optional[str] = None) -> str:
        info = self.args.info
        if info is None:
            info = prompt_text("extra info", initial=last_info, allow_empty=True)
        return self.validator.validate_info(info)

    def _target(self) -> Target:
        args = self.args
        if args.all + (args.match_info is not None) + (args.name is not None) > 1:
            raise InvalidInputError(SET_INFO_CONFLICT)
        if args.all:
            return AllClients()
        if args.match_info is not None:
            return MatchInfo(info=args.match_info)
        return OnePerson(name=self._name(args.name))

    # -- commands -------------------------------------------------------------

    def run(self, commands: LedgerCommands) -> list[PostScriptCall]:
        command = self.args.command
        args = self.args

        if command == "add":
            name = self._name(args.name)
            call = commands.add(name, self._days(), self._seller(), self._money(), self._info())
        elif command == "renew":
            name = self._name(args.name)
            days, seller, money = self._days(), self._seller(), self._money()
            info = args.info
            if not info:
                info = self._info(last_info=commands.current_info(OnePerson(name=name)))
            call = commands.renew(name, days, seller, money, self.validator.validate_info(info))
        elif command == "renew-all":
            print(style("you are renewing all clients that are not expired!", "yellow", self.color))
            call = commands.renew_all(self._days())
        elif command == "remove":
            call = commands.remove(self._name(args.name))
        elif command == "rename":
            old_name = self._name(args.old_name)
            new_name = self._name(args.new_name, "client new name")
            call = commands.rename(old_name, new_name)
        elif command == "set-info":
            target = self._target()
            info = args.info
            if info is None:
                info = prompt_text("extra info", initial=commands.current_info(target), allow_empty=True)
            call = commands.set_info(target, self.validator.validate_info(info))
        elif command == "list":
            self._show(commands)
            call = None
        elif command == "cleanup":
            calls = commands.cleanup()
            for cleanup_call in calls:
                print(style(f"deleted {cleanup_call.args[0]}", "yellow", self.color))
            return calls
        else:
            raise InvalidInputError(f"unknown command '{command}'")

        return [call] if call else []

    def _show(self, commands: LedgerCommands) -> None:
        report = build_client_report(commands.list_clients(), utc_now(), verbose=self.args.verbose)
        for line in report.render(trim_whitespace=self.args.trim_whitespace, color=self.color):
            print(line)


def run_post_scripts(
    calls: Sequence[PostScriptCall],
    settings: Settings,
    audit_logger: AuditLogger,
) -> None:
    runner = PostScriptRunner(settings.post_scripts_dir)
    for call in calls:
        try:
            output = runner.run(call)
        except PostScriptError as e:
            audit_logger.log_post_script_failed(call.script, str(e))
            raise
        if output:
            print(output.rstrip("\n"))


def execute(args: argparse.Namespace, settings: Settings) -> None:
    """Run one command as one ledger session, then its post scripts."""
    if args.command == "version":
        print(__version__)
        return

    runner = CommandRunner(args, settings)
    audit_logger = AuditLogger()
    storage = open_storage(settings.storage, clock=utc_now)
    commands = LedgerCommands(
        storage,
        clock=utc_now,
        grace_days=settings.app.cleanup_grace_days,
        audit_logger=audit_logger,
    )

    try:
        with ledger_session(storage, audit_logger):
            calls = runner.run(commands)
    except InvariantViolationError as e:
        audit_logger.log_error("invariant_violation", str(e), {"backend": storage.backend_name})
        raise

    if args.skip_post_script:
        if calls:
            print(style("skipping post script!", "yellow", runner.color))
        return
    run_post_scripts(calls, settings, audit_logger)


def load_settings() -> Settings:
    """Read every settings group up front so a bad environment value fails here."""
    try:
        settings = get_settings()
        _ = (settings.storage, settings.input, settings.app)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e
    return settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
        configure_logging(settings.app.log_level, settings.app.log_json)
        execute(args, settings)
    except CommitError as e:
        _print_error(f"CRITICAL ERROR: cannot commit changes: {e}")
        return 1
    except InvariantViolationError as e:
        _print_error(f"ledger is corrupt: {e}")
        return 2
    except (ConfigurationError, InvalidInputError, StorageError, PostScriptError) as e:
        _print_error(str(e))
        return 1
    except KeyboardInterrupt:
        _print_error("interrupted")
        return 130

    return 0


def _print_error(message: str) -> None:
    print(style(f"Error: {message}", "red", sys.stderr.isatty()), file=sys.stderr)


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
