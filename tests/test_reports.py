"""
Tests for the client list report.
"""

from datetime import timedelta

import pytest

from manjaliof.models.ledger import Client, Payment
from manjaliof.reports import Cell, Report, build_client_report, days_left_cell, sellers_cell

from conftest import START


class TestReport:
    """Tests for the column-aligned table."""

    def test_columns_padded_to_widest_cell(self):
        report = Report(["name", "days"])
        report.add_item(["alice", "29d"])
        report.add_item(["bo", "5d"])

        assert report.render() == ["alice 29d", "bo    5d "]

    def test_trim_whitespace(self):
        report = Report(["name", "days"])
        report.add_item(["alice", "29d"])
        report.add_item(["bo", "5d"])

        assert report.render(trim_whitespace=True) == ["alice 29d", "bo 5d"]

    def test_wrong_column_count(self):
        report = Report(["name", "days"])
        with pytest.raises(ValueError):
            report.add_item(["alice"])

    def test_color_wraps_padded_text(self):
        report = Report(["name"])
        report.add_item([Cell("alice", "red")])
        report.add_item([Cell("bo")])

        assert report.render(color=True) == ["\x1b[31malice\x1b[0m", "bo   "]

    def test_no_color_by_default(self):
        report = Report(["name"])
        report.add_item([Cell("alice", "red")])
        assert report.render() == ["alice"]

    def test_empty_report(self):
        assert Report(["name"]).render() == []


class TestCells:
    """Tests for the individual cells."""

    def test_expired(self):
        assert days_left_cell(START, START + timedelta(seconds=1)) == Cell("expired", "red")

    def test_few_days_left(self):
        assert days_left_cell(START + timedelta(days=3, hours=5), START) == Cell("3d", "yellow")

    def test_many_days_left(self):
        assert days_left_cell(START + timedelta(days=29), START) == Cell("29d", "green")

    def test_verbose_adds_hours(self):
        cell = days_left_cell(START + timedelta(days=3, hours=5, minutes=59), START, verbose=True)
        assert cell.text == "3d 5h"

    def test_sellers_cell_uses_last_payment(self):
        payments = [
            Payment(seller="pouya", money=60, date=START),
            Payment(seller="arian", money=30, date=START + timedelta(days=1)),
        ]
        assert sellers_cell(payments).text == "arian(30)"

    def test_sellers_cell_needs_a_payment(self):
        with pytest.raises(ValueError):
            sellers_cell([])


class TestClientReport:
    """End-to-end rendering of clients."""

    def test_client_rows(self):
        alice = Client.new("alice", 30, "pouya", 60, "idk", now=START)
        bob = Client.new("bob", 5, "arian", 55, "smth", now=START - timedelta(days=10))
        carol = Client.new("carol", 30, "pouya", 60, "", now=START)
        carol.info = None

        report = build_client_report([alice, bob, carol], START + timedelta(days=1))

        assert report.render(trim_whitespace=True) == [
            "alice 29d pouya(60) idk",
            "bob expired arian(55) smth",
            "carol 29d pouya(60) ",
        ]
