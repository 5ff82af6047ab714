"""Tests for the CSV exporter."""

from datetime import date, timedelta

from buildledger.analyzers.aging import classify_aging
from buildledger.analyzers.invoices import InvoiceLedger
from buildledger.analyzers.timesheets import summarize_week
from buildledger.exporters.csv import (
    format_hours,
    quote_cell,
    render_aging_csv,
    render_csv,
    render_payments_csv,
    render_timesheet_entries_csv,
    render_timesheet_summary_csv,
)
from buildledger.models.financial import Invoice, InvoiceStatus, Payment, PaymentMethod
from buildledger.models.timesheet import TimesheetEntry

TODAY = date(2026, 10, 19)


class TestPrimitives:
    def test_quote_cell(self) -> None:
        assert quote_cell("plain") == '"plain"'
        assert quote_cell('6" pipe') == '"6"" pipe"'
        assert quote_cell(None) == '""'
        assert quote_cell(3) == '"3"'

    def test_render_csv_has_no_trailing_newline(self) -> None:
        content = render_csv(["A", "B"], [["1", "x,y"]])
        assert content == 'A,B\n"1","x,y"'

    def test_header_only(self) -> None:
        assert render_csv(["A", "B"], []) == "A,B"

    def test_format_hours(self) -> None:
        assert format_hours(8.0) == "8"
        assert format_hours(1.5) == "1.5"
        assert format_hours(7.25) == "7.25"
        assert format_hours(0) == "0"
        assert format_hours(10) == "10"


class TestAgingCsv:
    def test_exact_output(self) -> None:
        invoice = Invoice(
            id="inv-1",
            company_id="acme",
            contact_id="c-1",
            client_name="Smith & Sons, LLC",
            invoice_date=TODAY - timedelta(days=75),
            due_date=TODAY - timedelta(days=45),
            total_amount=500.0,
            status=InvoiceStatus.SENT,
        )
        report = classify_aging([InvoiceLedger().compute(invoice, [], TODAY)], TODAY)
        assert render_aging_csv(report) == (
            "Client,Total Outstanding,Invoice Count,Oldest Invoice (days),"
            "Current (0-30),31-60 days,61-90 days,90+ days,Risk Level,Recommendation\n"
            '"Smith & Sons, LLC","500.00","1","45","0.00","500.00","0.00","0.00",'
            '"MEDIUM","Send friendly reminder email"'
        )


class TestPaymentsCsv:
    def test_exact_output(self) -> None:
        invoice = Invoice(
            id="inv-1",
            company_id="acme",
            contact_id="c-1",
            client_name="Harbor View HOA",
            invoice_number="INV-2026-001",
            invoice_date=date(2026, 2, 1),
            due_date=date(2026, 3, 3),
            total_amount=5000.0,
        )
        payments = [
            Payment(
                invoice_id="inv-1",
                amount=1250.5,
                payment_date=date(2026, 3, 2),
                payment_method=PaymentMethod.CHECK,
                reference_number="1042",
                notes='Deposit "A"',
            ),
            Payment(invoice_id="inv-x", amount=75, payment_date=date(2026, 3, 4)),
        ]
        assert render_payments_csv(payments, {"inv-1": invoice}) == (
            "Date,Invoice Number,Client,Amount,Payment Method,Reference Number,Notes\n"
            '"2026-03-02","INV-2026-001","Harbor View HOA","1250.50","check","1042","Deposit ""A"""\n'
            '"2026-03-04","","","75.00","other","",""'
        )


class TestTimesheetCsv:
    def setup_method(self) -> None:
        self.entries = [
            TimesheetEntry(
                employee_id="e-1", employee_name='Jake "JJ" Olsen', project_name="Oak St",
                work_date=date(2026, 3, 2), regular_hours=7.5, hourly_rate=30.0, overtime_rate=45.0,
            ),
            TimesheetEntry(
                employee_id="e-1", employee_name='Jake "JJ" Olsen',
                work_date=date(2026, 3, 3), regular_hours=8, overtime_hours=1.5,
                hourly_rate=30.0, overtime_rate=45.0,
            ),
        ]

    def test_summary(self) -> None:
        content = render_timesheet_summary_csv(summarize_week(self.entries))
        assert content == (
            "Employee,Regular Hours,Overtime Hours,Total Hours,Total Cost\n"
            '"Jake ""JJ"" Olsen","15.5","1.5","17","532.50"'
        )

    def test_entries(self) -> None:
        content = render_timesheet_entries_csv(self.entries)
        lines = content.split("\n")
        assert lines[0] == "Employee,Project,Date,Regular Hours,Overtime Hours,Total Hours,Rate,OT Rate,Cost"
        assert lines[1] == '"Jake ""JJ"" Olsen","Oak St","2026-03-02","7.5","0","7.5","30.00","45.00","225.00"'
        assert lines[2] == '"Jake ""JJ"" Olsen","None","2026-03-03","8","1.5","9.5","30.00","45.00","307.50"'
        assert not content.endswith("\n")
