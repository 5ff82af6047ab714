"""
Weekly timesheet rollup — crew hours and labor cost per employee.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from buildledger.analyzers.money import round_currency
from buildledger.models.timesheet import TimesheetEntry

logger = logging.getLogger("buildledger.analyzers.timesheets")


@dataclass
class EmployeeWeekSummary:
    employee_id: str
    employee_name: str
    total_regular: float = 0.0
    total_overtime: float = 0.0
    total_hours: float = 0.0
    total_cost: float = 0.0


def entry_cost(entry: TimesheetEntry) -> float:
    """``regular * rate + overtime * overtime_rate``, rounded to cents."""
    return round_currency(entry.regular_hours * entry.hourly_rate + entry.overtime_hours * entry.overtime_rate)


def week_start(day: date) -> date:
    """The Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def week_dates(start: date) -> list[date]:
    """Monday through Sunday of the week containing ``start``."""
    monday = week_start(start)
    return [monday + timedelta(days=offset) for offset in range(7)]


def entries_for_week(entries: Iterable[TimesheetEntry], start: date) -> list[TimesheetEntry]:
    days = week_dates(start)
    return [e for e in entries if days[0] <= e.work_date <= days[-1]]


def summarize_week(entries: Iterable[TimesheetEntry]) -> list[EmployeeWeekSummary]:
    """Per-employee totals, in the order employees first appear."""
    grouped: dict[str, EmployeeWeekSummary] = {}
    for entry in entries:
        summary = grouped.get(entry.employee_id)
        if summary is None:
            summary = grouped[entry.employee_id] = EmployeeWeekSummary(
                employee_id=entry.employee_id,
                employee_name=entry.employee_name,
            )
        summary.total_regular += entry.regular_hours
        summary.total_overtime += entry.overtime_hours
        summary.total_hours += entry.total_hours
        summary.total_cost = round_currency(summary.total_cost + entry_cost(entry))

    logger.debug("Summarized timesheets for %d employees", len(grouped))
    return list(grouped.values())
