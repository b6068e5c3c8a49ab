"""Report rendering package."""

from manjaliof.reports.client_report import (
    Cell,
    Report,
    build_client_report,
    days_left_cell,
    sellers_cell,
)

__all__ = ["Cell", "Report", "build_client_report", "days_left_cell", "sellers_cell"]
