"""
In-memory port — a dict-backed ``LedgerPort``.

Used by the CLI (records loaded from CSV files) and by tests. It enforces
the same per-company invoice-number uniqueness a real database would.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable

from buildledger.connectors.base import LedgerPort
from buildledger.exceptions import InvoiceNumberConflictError, RecordNotFoundError
from buildledger.models.financial import Expense, Invoice, Payment
from buildledger.models.quotes import Quote, QuoteTemplate

logger = logging.getLogger("buildledger.connectors.memory")


class InMemoryPort(LedgerPort):
    """Keep every record in process memory.

    Usage::

        port = InMemoryPort(invoices=loaded_invoices, payments=loaded_payments)
        service = LedgerService(port)
    """

    name = "memory"

    def __init__(
        self,
        invoices: Iterable[Invoice] = (),
        payments: Iterable[Payment] = (),
        expenses: Iterable[Expense] = (),
        templates: Iterable[QuoteTemplate] = (),
        quotes: Iterable[Quote] = (),
    ) -> None:
        self.invoices: dict[str, Invoice] = {}
        self.payments: dict[str, Payment] = {}
        self.expenses: dict[str, Expense] = {}
        self.templates: dict[str, QuoteTemplate] = {}
        self.quotes: dict[str, Quote] = {}

        for invoice in invoices:
            self.save_invoice(invoice)
        for payment in payments:
            self.save_payment(payment)
        for expense in expenses:
            self.save_expense(expense)
        for template in templates:
            self.save_template(template)
        for quote in quotes:
            self.save_quote(quote)

    @staticmethod
    def _ensure_id(record):
        if record.id is None:
            return record.model_copy(update={"id": uuid.uuid4().hex})
        return record

    def list_invoices(self, company_id: str) -> list[Invoice]:
        return [inv for inv in self.invoices.values() if inv.company_id == company_id]

    def get_invoice(self, invoice_id: str) -> Invoice:
        try:
            return self.invoices[invoice_id]
        except KeyError:
            raise RecordNotFoundError("invoice", invoice_id) from None

    def save_invoice(self, invoice: Invoice) -> Invoice:
        invoice = self._ensure_id(invoice)
        if invoice.invoice_number:
            for other in self.invoices.values():
                if (
                    other.id != invoice.id
                    and other.company_id == invoice.company_id
                    and other.invoice_number == invoice.invoice_number
                ):
                    raise InvoiceNumberConflictError(invoice.invoice_number)
        self.invoices[invoice.id] = invoice
        return invoice

    def list_payments(self, company_id: str, invoice_id: str | None = None) -> list[Payment]:
        result = []
        for payment in self.payments.values():
            if invoice_id is not None and payment.invoice_id != invoice_id:
                continue
            # Payments loaded without a company inherit it from their invoice
            owner = payment.company_id
            if owner is None and payment.invoice_id in self.invoices:
                owner = self.invoices[payment.invoice_id].company_id
            if owner == company_id:
                result.append(payment)
        return result

    def save_payment(self, payment: Payment) -> Payment:
        payment = self._ensure_id(payment)
        self.payments[payment.id] = payment
        return payment

    def list_expenses(self, company_id: str) -> list[Expense]:
        return [exp for exp in self.expenses.values() if exp.company_id == company_id]

    def save_expense(self, expense: Expense) -> Expense:
        expense = self._ensure_id(expense)
        self.expenses[expense.id] = expense
        return expense

    def get_template(self, template_id: str) -> QuoteTemplate:
        try:
            return self.templates[template_id]
        except KeyError:
            raise RecordNotFoundError("quote template", template_id) from None

    def save_template(self, template: QuoteTemplate) -> QuoteTemplate:
        self.templates[template.id] = template
        return template

    def save_quote(self, quote: Quote) -> Quote:
        quote = self._ensure_id(quote)
        self.quotes[quote.id] = quote
        return quote
