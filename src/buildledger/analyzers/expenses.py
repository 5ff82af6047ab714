"""
Expense Billing — billable amounts with markup, payment status, rollups.

Markup only matters for expenses flagged ``billable_to_client``; a
non-billable expense always bills at its raw amount, whatever markup
happens to be stored on it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from buildledger.analyzers.money import round_currency, validate_percentage
from buildledger.exceptions import InvalidStatusTransitionError, UnallocatedBillableExpenseError
from buildledger.models.financial import (
    Expense,
    ExpenseCategory,
    InvoiceLineItem,
    PaymentStatus,
)

logger = logging.getLogger("buildledger.analyzers.expenses")


@dataclass
class ExpenseSummary:
    """Plain sums over a set of expenses."""

    total: float = 0.0
    count: int = 0
    by_status: dict[str, float] = field(default_factory=dict)
    by_category: dict[str, float] = field(default_factory=dict)
    billable: float = 0.0
    non_billable: float = 0.0
    billable_with_markup: float = 0.0
    unbilled: float = 0.0

    @property
    def pending(self) -> float:
        return self.by_status.get(PaymentStatus.PENDING.value, 0.0)

    @property
    def paid(self) -> float:
        return self.by_status.get(PaymentStatus.PAID.value, 0.0)

    @property
    def markup_earned(self) -> float:
        return round_currency(self.billable_with_markup - self.billable)


def billable_amount(expense: Expense) -> float:
    """Amount to re-bill the client: ``amount * (1 + markup / 100)`` when billable."""
    if not expense.billable_to_client:
        return expense.amount
    markup = expense.markup_percentage or 0.0
    validate_percentage(markup, "markup percentage")
    return round_currency(expense.amount * (1 + markup / 100))


def markup_amount(expense: Expense) -> float:
    """The surcharge portion of the billable amount."""
    return round_currency(billable_amount(expense) - expense.amount)


def validate_expense(expense: Expense) -> Expense:
    """Business checks pydantic can't express on its own."""
    if expense.markup_percentage is not None:
        validate_percentage(expense.markup_percentage, "markup percentage")
    if expense.billable_to_client and not expense.project_id:
        raise UnallocatedBillableExpenseError(
            "Billable expenses must be allocated to a project"
        )
    return expense


def mark_paid(expense: Expense, paid_at: datetime) -> Expense:
    """``pending|scheduled -> paid``, stamping ``paid_at``."""
    if expense.payment_status == PaymentStatus.CANCELLED:
        raise InvalidStatusTransitionError("expense", expense.payment_status.value, PaymentStatus.PAID.value)
    if expense.payment_status == PaymentStatus.PAID:
        return expense
    return expense.model_copy(update={"payment_status": PaymentStatus.PAID, "paid_at": paid_at})


def cancel_expense(expense: Expense) -> Expense:
    """Any status ``-> cancelled``."""
    return expense.model_copy(update={"payment_status": PaymentStatus.CANCELLED})


def schedule_expense(expense: Expense) -> Expense:
    """``pending -> scheduled``."""
    if expense.payment_status != PaymentStatus.PENDING:
        raise InvalidStatusTransitionError(
            "expense", expense.payment_status.value, PaymentStatus.SCHEDULED.value
        )
    return expense.model_copy(update={"payment_status": PaymentStatus.SCHEDULED})


def filter_expenses(
    expenses: Iterable[Expense],
    status: PaymentStatus | None = None,
    category: ExpenseCategory | None = None,
    billable: bool | None = None,
    project_id: str | None = None,
    search: str | None = None,
) -> list[Expense]:
    """Filter predicates used by the expense list."""
    query = (search or "").strip().lower()
    result = []
    for exp in expenses:
        if status is not None and exp.payment_status != status:
            continue
        if category is not None and exp.category != category:
            continue
        if billable is not None and exp.billable_to_client != billable:
            continue
        if project_id is not None and exp.project_id != project_id:
            continue
        if query and query not in exp.vendor.lower() and query not in exp.description.lower():
            continue
        result.append(exp)
    return result


def summarize_expenses(expenses: Iterable[Expense]) -> ExpenseSummary:
    """Totals by status, category and billability."""
    summary = ExpenseSummary()
    by_status: dict[str, float] = defaultdict(float)
    by_category: dict[str, float] = defaultdict(float)

    for exp in expenses:
        summary.count += 1
        summary.total = round_currency(summary.total + exp.amount)
        by_status[exp.payment_status.value] = round_currency(by_status[exp.payment_status.value] + exp.amount)
        by_category[exp.category.value] = round_currency(by_category[exp.category.value] + exp.amount)

        if exp.billable_to_client:
            summary.billable = round_currency(summary.billable + exp.amount)
            billed = billable_amount(exp)
            summary.billable_with_markup = round_currency(summary.billable_with_markup + billed)
            if not exp.invoiced and exp.payment_status != PaymentStatus.CANCELLED:
                summary.unbilled = round_currency(summary.unbilled + billed)
        else:
            summary.non_billable = round_currency(summary.non_billable + exp.amount)

    summary.by_status = dict(by_status)
    summary.by_category = dict(by_category)
    return summary


def unbilled_expenses(expenses: Iterable[Expense], project_id: str | None = None) -> list[Expense]:
    """Billable expenses not yet on an invoice."""
    return [
        exp for exp in expenses
        if exp.billable_to_client
        and not exp.invoiced
        and exp.payment_status != PaymentStatus.CANCELLED
        and (project_id is None or exp.project_id == project_id)
    ]


def to_invoice_line_items(expenses: Iterable[Expense]) -> list[InvoiceLineItem]:
    """One invoice line per billable expense, priced at its marked-up amount."""
    items = []
    for exp in expenses:
        if not exp.billable_to_client:
            continue
        label = f"{exp.vendor}: {exp.description}" if exp.description else exp.vendor
        amount = billable_amount(exp)
        items.append(InvoiceLineItem(
            description=label,
            quantity=1.0,
            rate=amount,
            amount=amount,
            category=exp.category.value,
        ))
    logger.debug("Built %d invoice lines from billable expenses", len(items))
    return items


def mark_invoiced(expenses: Iterable[Expense], invoice_id: str) -> list[Expense]:
    """Stamp expenses as billed on ``invoice_id``."""
    return [exp.model_copy(update={"invoiced": True, "invoice_id": invoice_id}) for exp in expenses]
