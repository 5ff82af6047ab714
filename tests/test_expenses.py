"""Tests for expense billing."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from buildledger.analyzers.expenses import (
    billable_amount,
    cancel_expense,
    filter_expenses,
    mark_invoiced,
    mark_paid,
    markup_amount,
    schedule_expense,
    summarize_expenses,
    to_invoice_line_items,
    unbilled_expenses,
    validate_expense,
)
from buildledger.exceptions import (
    InvalidPercentageError,
    InvalidStatusTransitionError,
    UnallocatedBillableExpenseError,
)
from buildledger.models.financial import Expense, ExpenseCategory, PaymentStatus


def make_expense(**kwargs) -> Expense:
    defaults = dict(
        id="exp-1",
        company_id="acme",
        project_id="p-100",
        date=date(2026, 3, 1),
        vendor="Home Depot",
        description="Drywall screws",
        amount=100.0,
        category=ExpenseCategory.MATERIALS,
    )
    defaults.update(kwargs)
    return Expense(**defaults)


class TestBillableAmount:
    def test_non_billable_ignores_markup(self) -> None:
        expense = make_expense(billable_to_client=False, markup_percentage=15)
        assert billable_amount(expense) == 100.0

    def test_markup(self) -> None:
        expense = make_expense(billable_to_client=True, markup_percentage=15)
        assert billable_amount(expense) == 115.0
        assert markup_amount(expense) == 15.0

    def test_missing_markup_defaults_to_zero(self) -> None:
        expense = make_expense(billable_to_client=True, markup_percentage=None)
        assert billable_amount(expense) == 100.0

    def test_rounding(self) -> None:
        expense = make_expense(amount=19.99, billable_to_client=True, markup_percentage=33.33)
        assert billable_amount(expense) == 26.65

    def test_markup_out_of_range(self) -> None:
        expense = make_expense(billable_to_client=True, markup_percentage=150)
        with pytest.raises(InvalidPercentageError):
            billable_amount(expense)

    def test_amount_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            make_expense(amount=0)


class TestValidation:
    def test_billable_needs_project(self) -> None:
        with pytest.raises(UnallocatedBillableExpenseError):
            validate_expense(make_expense(billable_to_client=True, project_id=None))

    def test_overhead_without_project_is_fine(self) -> None:
        expense = make_expense(project_id=None)
        assert validate_expense(expense) is expense

    def test_bad_markup_rejected_even_if_not_billable(self) -> None:
        with pytest.raises(InvalidPercentageError):
            validate_expense(make_expense(markup_percentage=-5))


class TestPaymentStatus:
    def test_mark_paid_stamps_time(self) -> None:
        paid_at = datetime(2026, 3, 5, 14, 30)
        expense = mark_paid(make_expense(), paid_at)
        assert expense.payment_status == PaymentStatus.PAID
        assert expense.paid_at == paid_at

    def test_mark_paid_twice_keeps_first_stamp(self) -> None:
        first = mark_paid(make_expense(), datetime(2026, 3, 5))
        assert mark_paid(first, datetime(2026, 4, 1)).paid_at == datetime(2026, 3, 5)

    def test_cancelled_cannot_be_paid(self) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            mark_paid(cancel_expense(make_expense()), datetime(2026, 3, 5))

    def test_schedule(self) -> None:
        assert schedule_expense(make_expense()).payment_status == PaymentStatus.SCHEDULED
        with pytest.raises(InvalidStatusTransitionError):
            schedule_expense(make_expense(payment_status=PaymentStatus.PAID))

    def test_scheduled_can_be_paid(self) -> None:
        scheduled = schedule_expense(make_expense())
        assert mark_paid(scheduled, datetime(2026, 3, 9)).payment_status == PaymentStatus.PAID


@pytest.fixture
def expenses() -> list[Expense]:
    return [
        make_expense(id="e1", amount=200.0, billable_to_client=True, markup_percentage=10),
        make_expense(
            id="e2",
            vendor="Sunbelt Rentals",
            description="Scissor lift",
            amount=350.0,
            category=ExpenseCategory.EQUIPMENT_RENTAL,
            payment_status=PaymentStatus.PAID,
        ),
        make_expense(
            id="e3",
            vendor="City of Austin",
            description="Building permit",
            amount=150.0,
            category=ExpenseCategory.PERMITS,
            billable_to_client=True,
            invoiced=True,
        ),
        make_expense(
            id="e4",
            vendor="ABC Electric",
            description="Panel upgrade",
            amount=1200.0,
            category=ExpenseCategory.SUBCONTRACTORS,
            billable_to_client=True,
            markup_percentage=20,
            payment_status=PaymentStatus.CANCELLED,
        ),
    ]


class TestFilterAndSummary:
    def test_filter_by_status(self, expenses: list[Expense]) -> None:
        paid = filter_expenses(expenses, status=PaymentStatus.PAID)
        assert [e.id for e in paid] == ["e2"]

    def test_filter_by_category_and_billable(self, expenses: list[Expense]) -> None:
        assert [e.id for e in filter_expenses(expenses, category=ExpenseCategory.PERMITS)] == ["e3"]
        assert [e.id for e in filter_expenses(expenses, billable=False)] == ["e2"]

    def test_search_vendor_and_description(self, expenses: list[Expense]) -> None:
        assert [e.id for e in filter_expenses(expenses, search="sunbelt")] == ["e2"]
        assert [e.id for e in filter_expenses(expenses, search="PERMIT")] == ["e3"]

    def test_summary(self, expenses: list[Expense]) -> None:
        summary = summarize_expenses(expenses)
        assert summary.count == 4
        assert summary.total == 1900.0
        assert summary.pending == 350.0
        assert summary.paid == 350.0
        assert summary.by_status["cancelled"] == 1200.0
        assert summary.by_category["equipment_rental"] == 350.0
        assert summary.billable == 1550.0
        assert summary.non_billable == 350.0
        assert summary.billable_with_markup == 1810.0
        assert summary.markup_earned == 260.0
        assert summary.unbilled == 220.0

    def test_empty_summary(self) -> None:
        summary = summarize_expenses([])
        assert summary.total == 0.0
        assert summary.pending == 0.0


class TestInvoicing:
    def test_unbilled(self, expenses: list[Expense]) -> None:
        assert [e.id for e in unbilled_expenses(expenses)] == ["e1"]
        assert unbilled_expenses(expenses, project_id="p-999") == []

    def test_to_invoice_lines(self, expenses: list[Expense]) -> None:
        lines = to_invoice_line_items(unbilled_expenses(expenses))
        assert len(lines) == 1
        assert lines[0].description == "Home Depot: Drywall screws"
        assert lines[0].quantity == 1.0
        assert lines[0].rate == 220.0
        assert lines[0].category == "materials"

    def test_mark_invoiced(self, expenses: list[Expense]) -> None:
        stamped = mark_invoiced(unbilled_expenses(expenses), "inv-9")
        assert stamped[0].invoiced is True
        assert stamped[0].invoice_id == "inv-9"
        assert expenses[0].invoiced is False
