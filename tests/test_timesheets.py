"""Tests for weekly timesheet rollups."""

from datetime import date

import pytest
from pydantic import ValidationError

from buildledger.analyzers.timesheets import (
    entries_for_week,
    entry_cost,
    summarize_week,
    week_dates,
    week_start,
)
from buildledger.models.timesheet import TimesheetEntry


@pytest.fixture
def entries() -> list[TimesheetEntry]:
    return [
        TimesheetEntry(
            employee_id="e-1", employee_name="Maria Lopez", project_name="Oak St",
            work_date=date(2026, 3, 2), regular_hours=8, hourly_rate=40.0, overtime_rate=60.0,
        ),
        TimesheetEntry(
            employee_id="e-2", employee_name="Jake Olsen", project_name="Oak St",
            work_date=date(2026, 3, 2), regular_hours=7.5, hourly_rate=30.0,
        ),
        TimesheetEntry(
            employee_id="e-1", employee_name="Maria Lopez", project_name="Pine Ave",
            work_date=date(2026, 3, 3), regular_hours=8, overtime_hours=2, hourly_rate=40.0, overtime_rate=60.0,
        ),
        TimesheetEntry(
            employee_id="e-1", employee_name="Maria Lopez",
            work_date=date(2026, 3, 9), regular_hours=8, hourly_rate=40.0,
        ),
    ]


class TestWeek:
    def test_week_start_is_monday(self) -> None:
        assert week_start(date(2026, 3, 5)) == date(2026, 3, 2)
        assert week_start(date(2026, 3, 2)) == date(2026, 3, 2)
        assert week_start(date(2026, 3, 8)) == date(2026, 3, 2)

    def test_week_dates(self) -> None:
        days = week_dates(date(2026, 3, 4))
        assert len(days) == 7
        assert days[0] == date(2026, 3, 2)
        assert days[-1] == date(2026, 3, 8)

    def test_entries_for_week(self, entries: list[TimesheetEntry]) -> None:
        assert len(entries_for_week(entries, date(2026, 3, 2))) == 3
        assert len(entries_for_week(entries, date(2026, 3, 10))) == 1


class TestSummary:
    def test_entry_cost(self, entries: list[TimesheetEntry]) -> None:
        assert entry_cost(entries[0]) == 320.0
        assert entry_cost(entries[2]) == 440.0
        assert entries[2].total_hours == 10

    def test_summarize_week(self, entries: list[TimesheetEntry]) -> None:
        summaries = summarize_week(entries_for_week(entries, date(2026, 3, 2)))
        assert [s.employee_name for s in summaries] == ["Maria Lopez", "Jake Olsen"]
        maria = summaries[0]
        assert maria.total_regular == 16
        assert maria.total_overtime == 2
        assert maria.total_hours == 18
        assert maria.total_cost == 760.0
        assert summaries[1].total_cost == 225.0

    def test_negative_hours_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TimesheetEntry(employee_id="e-1", work_date=date(2026, 3, 2), regular_hours=-1)
