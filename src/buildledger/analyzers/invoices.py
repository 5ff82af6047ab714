"""
Invoice Ledger — lifecycle, balance due, numbering.

Only ``draft``, ``sent``, ``cancelled`` and ``void`` are stored states.
``viewed``, ``partial``, ``paid`` and ``overdue`` are re-derived on every
read from the full payment set, the view timestamp and the due date, so a
stale snapshot or two sessions recording payments at once can never leave
an invoice stuck in the wrong state.

Lifecycle::

    draft ──send──▶ sent ──view──▶ viewed
                     │               │
                     ├── payments ───┴──▶ partial ──▶ paid
                     └── due date passed, balance > 0 ──▶ overdue

    any state except paid/void ──▶ cancelled | void   (terminal)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from buildledger.analyzers.line_items import LineInput, compute_totals, summarize_lines
from buildledger.analyzers.money import days_between, round_currency, sum_currency
from buildledger.config import InvoiceConfig
from buildledger.exceptions import (
    EmptyInvoiceError,
    InvalidStatusTransitionError,
    MissingRecipientError,
    UnknownPaymentTermsError,
)
from buildledger.models.financial import Invoice, InvoiceStatus, Payment, PaymentMethod

logger = logging.getLogger("buildledger.analyzers.invoices")

TERMINAL_STATUSES = frozenset({InvoiceStatus.CANCELLED, InvoiceStatus.VOID})

_TRAILING_DIGITS = re.compile(r"(\d+)$")
_NET_TERMS = re.compile(r"^net\s*(\d+)$")


@dataclass
class ComputedInvoice:
    """An invoice together with everything derived from its payments."""

    invoice: Invoice
    status: InvoiceStatus
    amount_paid: float
    balance_due: float
    days_overdue: int

    @property
    def id(self) -> str | None:
        return self.invoice.id

    @property
    def invoice_number(self) -> str:
        return self.invoice.invoice_number

    @property
    def client_id(self) -> str:
        return self.invoice.contact_id

    @property
    def client_name(self) -> str:
        return self.invoice.client_name or self.invoice.contact_id

    @property
    def due_date(self) -> date:
        return self.invoice.due_date

    @property
    def total_amount(self) -> float:
        return self.invoice.total_amount

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_outstanding(self) -> bool:
        """Counts toward receivables and aging."""
        return self.balance_due > 0 and not self.is_terminal

    def as_record(self) -> Invoice:
        """The stored invoice with its ``amount_paid`` snapshot refreshed."""
        return self.invoice.model_copy(update={"amount_paid": self.amount_paid})


@dataclass
class PaymentSummary:
    """Payment history rollup relative to a reference date."""

    total_received: float = 0.0
    payment_count: int = 0
    this_month: float = 0.0
    last_month: float = 0.0

    @property
    def average_payment(self) -> float:
        if self.payment_count == 0:
            return 0.0
        return round_currency(self.total_received / self.payment_count)


def payments_for(invoice: Invoice, payments: Iterable[Payment]) -> list[Payment]:
    """Payments that belong to ``invoice``."""
    if invoice.id is None:
        return []
    return [p for p in payments if p.invoice_id == invoice.id]


def compute_balance_due(total_amount: float, paid: float) -> float:
    """``total - paid``, never below zero."""
    return max(round_currency(total_amount - paid), 0.0)


def outstanding(invoices: Iterable[ComputedInvoice]) -> list[ComputedInvoice]:
    """Invoices with money still owed that are not cancelled or void."""
    return [inv for inv in invoices if inv.is_outstanding]


class InvoiceLedger:
    """
    Pure invoice calculations and lifecycle transitions.

    Nothing here reads the clock or a database: "today" and timestamps are
    always passed in, and transitions return a new ``Invoice`` rather than
    mutating the one given.

    Example usage:
        ledger = InvoiceLedger()
        invoice = ledger.recalculate(draft)
        invoice = ledger.send(invoice, sent_at=now)
        view = ledger.compute(invoice, payments, today=date.today())
        print(view.status, view.balance_due)
    """

    def __init__(self, config: InvoiceConfig | None = None):
        self.config = config or InvoiceConfig()

    # ------------------------------------------------------------------
    # Amounts
    # ------------------------------------------------------------------

    def recalculate(self, invoice: Invoice) -> Invoice:
        """Re-price every line and refresh subtotal, tax and total."""
        lines = [LineInput(item.quantity, item.rate) for item in invoice.line_items]
        summary = summarize_lines(lines)
        totals = compute_totals(summary.subtotal, invoice.tax_rate, invoice.discount_amount)

        items = [
            item.model_copy(update={"amount": amount})
            for item, amount in zip(invoice.line_items, summary.amounts)
        ]
        return invoice.model_copy(update={
            "line_items": items,
            "subtotal": totals.subtotal,
            "discount_amount": totals.discount_amount,
            "tax_amount": totals.tax_amount,
            "total_amount": totals.total,
        })

    def compute(self, invoice: Invoice, payments: Iterable[Payment], today: date) -> ComputedInvoice:
        """Derive paid amount, balance and status from the full payment set."""
        paid = sum_currency(p.amount for p in payments_for(invoice, payments))
        balance = compute_balance_due(invoice.total_amount, paid)
        status = self.derive_status(invoice, paid, today)
        return ComputedInvoice(
            invoice=invoice,
            status=status,
            amount_paid=paid,
            balance_due=balance,
            days_overdue=days_between(invoice.due_date, today),
        )

    def derive_status(self, invoice: Invoice, amount_paid: float, today: date) -> InvoiceStatus:
        """Read-time status. Precedence: terminal, draft, paid, overdue, partial, viewed, sent."""
        stored = invoice.status
        if stored in TERMINAL_STATUSES:
            return stored
        # A payment against a draft implies it went out by some other channel.
        if stored == InvoiceStatus.DRAFT and amount_paid <= 0:
            return InvoiceStatus.DRAFT

        balance = compute_balance_due(invoice.total_amount, amount_paid)
        if balance <= 0:
            return InvoiceStatus.PAID
        if invoice.due_date < today:
            return InvoiceStatus.OVERDUE
        if amount_paid > 0:
            return InvoiceStatus.PARTIAL
        if invoice.viewed_at is not None or stored == InvoiceStatus.VIEWED:
            return InvoiceStatus.VIEWED
        return InvoiceStatus.SENT

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def send(self, invoice: Invoice, sent_at: datetime, recipient: str | None = None) -> Invoice:
        """``draft -> sent``. Needs a client email and a positive total."""
        if invoice.status != InvoiceStatus.DRAFT:
            raise InvalidStatusTransitionError("invoice", invoice.status.value, InvoiceStatus.SENT.value)

        email = (recipient or invoice.client_email or "").strip()
        if not email:
            raise MissingRecipientError(
                f"Invoice {invoice.invoice_number or invoice.id} has no client email address"
            )
        if invoice.total_amount <= 0:
            raise EmptyInvoiceError("Invoice total must be greater than 0")

        logger.debug("Sending invoice %s to %s", invoice.invoice_number, email)
        return invoice.model_copy(update={
            "status": InvoiceStatus.SENT,
            "client_email": email,
            "sent_at": sent_at,
        })

    def mark_viewed(self, invoice: Invoice, viewed_at: datetime) -> Invoice:
        """Record the client's first view. Later views keep the first timestamp."""
        if invoice.status not in (InvoiceStatus.SENT, InvoiceStatus.VIEWED):
            raise InvalidStatusTransitionError("invoice", invoice.status.value, InvoiceStatus.VIEWED.value)
        if invoice.viewed_at is not None:
            return invoice
        return invoice.model_copy(update={"viewed_at": viewed_at})

    def cancel(
        self,
        invoice: Invoice,
        payments: Iterable[Payment],
        today: date,
        at: datetime | None = None,
    ) -> Invoice:
        """Terminal ``-> cancelled``."""
        return self._terminate(invoice, payments, today, InvoiceStatus.CANCELLED, at)

    def void(
        self,
        invoice: Invoice,
        payments: Iterable[Payment],
        today: date,
        at: datetime | None = None,
    ) -> Invoice:
        """Terminal ``-> void``."""
        return self._terminate(invoice, payments, today, InvoiceStatus.VOID, at)

    def _terminate(
        self,
        invoice: Invoice,
        payments: Iterable[Payment],
        today: date,
        target: InvoiceStatus,
        at: datetime | None,
    ) -> Invoice:
        current = self.compute(invoice, payments, today).status
        if current == InvoiceStatus.PAID or current in TERMINAL_STATUSES:
            raise InvalidStatusTransitionError("invoice", current.value, target.value)
        return invoice.model_copy(update={"status": target, "cancelled_at": at})

    def record_payment(
        self,
        invoice: Invoice,
        payments: Iterable[Payment],
        payment: Payment,
        today: date,
    ) -> tuple[Invoice, ComputedInvoice]:
        """Apply a new payment and return the stored record plus the recomputed view.

        Overpayment is not rejected here; the balance simply clamps at zero.
        """
        if payment.amount <= 0:
            raise ValueError(f"Payment amount must be positive, got {payment.amount}")
        if invoice.status in TERMINAL_STATUSES:
            raise InvalidStatusTransitionError("invoice", invoice.status.value, "paid")

        updated = invoice
        if invoice.status == InvoiceStatus.DRAFT:
            updated = invoice.model_copy(update={"status": InvoiceStatus.SENT})

        view = self.compute(updated, [*payments, payment], today)
        return view.as_record(), view

    # ------------------------------------------------------------------
    # Numbering and terms
    # ------------------------------------------------------------------

    def next_invoice_number(self, existing_numbers: Iterable[str], year: int) -> str:
        """Advisory next number: highest trailing digit run + 1.

        Two concurrent callers can get the same answer; the persistence layer
        must enforce uniqueness and the caller must retry on conflict.
        """
        highest = 0
        for number in existing_numbers:
            match = _TRAILING_DIGITS.search(number or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return self.format_invoice_number(highest + 1, year)

    def format_invoice_number(self, sequence: int, year: int) -> str:
        width = self.config.number_width
        return f"{self.config.number_prefix}-{year}-{sequence:0{width}d}"

    def due_date_for_terms(self, invoice_date: date, terms: str | None = None) -> date:
        """Resolve "Net 30", "Net 15", "Due on receipt" etc. into a due date."""
        label = (terms or self.config.default_payment_terms).strip().lower()
        if label in ("due on receipt", "on receipt", "immediate"):
            return invoice_date
        match = _NET_TERMS.match(label)
        if match:
            return invoice_date + timedelta(days=int(match.group(1)))
        raise UnknownPaymentTermsError(f"Unrecognized payment terms: {terms!r}")


def summarize_payments(payments: Iterable[Payment], today: date) -> PaymentSummary:
    """Totals for the payment history page: all time, this month, last month."""
    this_month_start = today.replace(day=1)
    last_month_end = this_month_start - timedelta(days=1)
    last_month_start = last_month_end.replace(day=1)

    summary = PaymentSummary()
    for payment in payments:
        summary.payment_count += 1
        summary.total_received = round_currency(summary.total_received + payment.amount)
        if payment.payment_date >= this_month_start:
            summary.this_month = round_currency(summary.this_month + payment.amount)
        elif last_month_start <= payment.payment_date <= last_month_end:
            summary.last_month = round_currency(summary.last_month + payment.amount)
    return summary


def filter_payments(
    payments: Iterable[Payment],
    method: PaymentMethod | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Payment]:
    """Filter payment history by method and inclusive date range."""
    result = []
    for payment in payments:
        if method is not None and payment.payment_method != method:
            continue
        if start is not None and payment.payment_date < start:
            continue
        if end is not None and payment.payment_date > end:
            continue
        result.append(payment)
    return result
