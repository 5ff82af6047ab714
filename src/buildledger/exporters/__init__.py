"""Exporters package — convert computed reports to file formats."""
from buildledger.exporters.csv import (
    render_aging_csv,
    render_payments_csv,
    render_timesheet_entries_csv,
    render_timesheet_summary_csv,
)

__all__ = [
    "render_aging_csv",
    "render_payments_csv",
    "render_timesheet_entries_csv",
    "render_timesheet_summary_csv",
]
