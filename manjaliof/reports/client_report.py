"""
Client Report

Renders the read-only client list as an aligned text table:

    alice   29d pouya(60) idk
    bob     expired arian(55) smth

Colors are ANSI escapes and only used when the output is a terminal;
column widths are measured on the plain text.
"""

from datetime import datetime
from typing import NamedTuple, Optional, Sequence, Union

from manjaliof.models.ledger import Client, Payment


COLORS = {
    "red": "31",
    "green": "32",
    "yellow": "33",
    "cyan": "36",
    "grey": "90",
}

LOW_DAYS_THRESHOLD = 15

HEADERS = ["name", "days left", "seller", "info"]


class Cell(NamedTuple):
    text: str
    color: Optional[str] = None


def style(text: str, color: Optional[str], enabled: bool) -> str:
    if not enabled or color is None:
        return text
    return f"\x1b[{COLORS[color]}m{text}\x1b[0m"


class Report:
    """Column-aligned table of text cells."""

    def __init__(self, headers: Sequence[str]):
        self.headers = list(headers)
        self.widths = [0] * len(self.headers)
        self.items: list[list[Cell]] = []

    def add_item(self, item: Sequence[Union[Cell, str]]) -> None:
        if len(item) != len(self.headers):
            raise ValueError(
                f"expected {len(self.headers)} columns, got {len(item)}"
            )

        cells = [cell if isinstance(cell, Cell) else Cell(cell) for cell in item]
        for index, cell in enumerate(cells):
            self.widths[index] = max(self.widths[index], len(cell.text))
        self.items.append(cells)

    def render(self, trim_whitespace: bool = False, color: bool = False) -> list[str]:
        lines = []
        for cells in self.items:
            columns = []
            for index, cell in enumerate(cells):
                text = cell.text if trim_whitespace else cell.text.ljust(self.widths[index])
                columns.append(style(text, cell.color, color))
            lines.append(" ".join(columns))
        return lines


def days_left_cell(expire_time: datetime, now: datetime, verbose: bool = False) -> Cell:
    if expire_time < now:
        return Cell("expired", "red")

    delta = expire_time - now
    num_days = delta.days
    text = f"{num_days}d"
    if verbose:
        text += f" {delta.seconds // 3600}h"

    if num_days < LOW_DAYS_THRESHOLD:
        return Cell(text, "yellow")
    return Cell(text, "green")


def sellers_cell(payments: Sequence[Payment]) -> Cell:
    """Seller and amount of the most recent payment."""
    if not payments:
        raise ValueError("a client always has at least one payment")
    last_payment = payments[-1]
    return Cell(f"{last_payment.seller}({last_payment.money})")


def build_client_report(
    clients: Sequence[Client],
    now: datetime,
    verbose: bool = False,
) -> Report:
    report = Report(HEADERS)
    for client in clients:
        report.add_item([
            Cell(client.name, "cyan"),
            days_left_cell(client.expire_time, now, verbose),
            sellers_cell(client.payments),
            Cell(client.info_text, "grey"),
        ])
    return report
