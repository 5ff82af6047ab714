"""
Timesheet data model — crew hours per day.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class TimesheetEntry(BaseModel):
    """One employee's hours on one work date."""

    id: str | None = None
    employee_id: str
    employee_name: str = "Unknown"
    project_id: str | None = None
    project_name: str | None = None
    work_date: date
    regular_hours: float = Field(default=0.0, ge=0)
    overtime_hours: float = Field(default=0.0, ge=0)
    hourly_rate: float = Field(default=0.0, ge=0)
    overtime_rate: float = Field(default=0.0, ge=0)

    @property
    def total_hours(self) -> float:
        return self.regular_hours + self.overtime_hours
