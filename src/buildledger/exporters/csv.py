"""
CSV exporter — aging, payment history and timesheet reports.

These files are opened by accountants' spreadsheets and diffed between
runs, so the layout is fixed:

- header row, fields joined with ``,`` and not quoted
- one row per entity, every cell wrapped in ``"`` with inner quotes doubled
- money with exactly two decimals
- rows joined with ``\\n``, no trailing newline
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from buildledger.analyzers.aging import AgingBucketKey, AgingReport
from buildledger.analyzers.money import format_amount
from buildledger.analyzers.timesheets import EmployeeWeekSummary, entry_cost
from buildledger.models.financial import Invoice, Payment
from buildledger.models.timesheet import TimesheetEntry

AGING_HEADERS = [
    "Client",
    "Total Outstanding",
    "Invoice Count",
    "Oldest Invoice (days)",
    "Current (0-30)",
    "31-60 days",
    "61-90 days",
    "90+ days",
    "Risk Level",
    "Recommendation",
]

PAYMENT_HEADERS = [
    "Date",
    "Invoice Number",
    "Client",
    "Amount",
    "Payment Method",
    "Reference Number",
    "Notes",
]

TIMESHEET_SUMMARY_HEADERS = [
    "Employee",
    "Regular Hours",
    "Overtime Hours",
    "Total Hours",
    "Total Cost",
]

TIMESHEET_ENTRY_HEADERS = [
    "Employee",
    "Project",
    "Date",
    "Regular Hours",
    "Overtime Hours",
    "Total Hours",
    "Rate",
    "OT Rate",
    "Cost",
]


def quote_cell(value: Any) -> str:
    """Wrap a cell in double quotes, doubling any quotes inside it."""
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def render_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    lines = [",".join(headers)]
    lines.extend(",".join(quote_cell(cell) for cell in row) for row in rows)
    return "\n".join(lines)


def format_hours(hours: float) -> str:
    """``8.0 -> "8"``, ``1.5 -> "1.5"``, ``7.25 -> "7.25"``."""
    return f"{hours:.2f}".rstrip("0").rstrip(".")


def render_aging_csv(report: AgingReport) -> str:
    """Client aging summary, in the report's risk ranking order."""
    rows = [
        [
            client.client_name,
            format_amount(client.total_outstanding),
            client.invoice_count,
            client.oldest_invoice_days,
            *(format_amount(client.bucket_amount(key)) for key in AgingBucketKey),
            client.risk_tier.value.upper(),
            client.recommended_action.value,
        ]
        for client in report.clients
    ]
    return render_csv(AGING_HEADERS, rows)


def render_payments_csv(
    payments: Iterable[Payment],
    invoices: Mapping[str, Invoice] | None = None,
) -> str:
    """Payment history; ``invoices`` maps invoice id to invoice for number/client columns."""
    invoices = invoices or {}
    rows = []
    for payment in payments:
        invoice = invoices.get(payment.invoice_id)
        rows.append([
            payment.payment_date.isoformat(),
            invoice.invoice_number if invoice else "",
            (invoice.client_name or invoice.contact_id) if invoice else "",
            format_amount(payment.amount),
            payment.payment_method.value,
            payment.reference_number or "",
            payment.notes or "",
        ])
    return render_csv(PAYMENT_HEADERS, rows)


def render_timesheet_summary_csv(summaries: Iterable[EmployeeWeekSummary]) -> str:
    rows = [
        [
            s.employee_name,
            format_hours(s.total_regular),
            format_hours(s.total_overtime),
            format_hours(s.total_hours),
            format_amount(s.total_cost),
        ]
        for s in summaries
    ]
    return render_csv(TIMESHEET_SUMMARY_HEADERS, rows)


def render_timesheet_entries_csv(entries: Iterable[TimesheetEntry]) -> str:
    rows = [
        [
            e.employee_name,
            e.project_name or "None",
            e.work_date.isoformat(),
            format_hours(e.regular_hours),
            format_hours(e.overtime_hours),
            format_hours(e.total_hours),
            format_amount(e.hourly_rate),
            format_amount(e.overtime_rate),
            format_amount(entry_cost(e)),
        ]
        for e in entries
    ]
    return render_csv(TIMESHEET_ENTRY_HEADERS, rows)
