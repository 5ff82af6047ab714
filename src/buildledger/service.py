"""
BuildLedger — service layer.

``LedgerService`` is the top-level entry point that composes the pure
calculators with a persistence port. It owns every read and write, the
retry loop for invoice numbering, and the order in which related records
are saved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable

from buildledger.analyzers.aging import AgingClassifier, AgingReport
from buildledger.analyzers.expenses import (
    ExpenseSummary,
    mark_invoiced,
    summarize_expenses,
    to_invoice_line_items,
    unbilled_expenses,
    validate_expense,
)
from buildledger.analyzers.invoices import ComputedInvoice, InvoiceLedger, PaymentSummary, summarize_payments
from buildledger.analyzers.quotes import QuotePricingEngine
from buildledger.config import BuildLedgerConfig
from buildledger.connectors.base import LedgerPort
from buildledger.connectors.memory import InMemoryPort
from buildledger.exceptions import (
    EmptyInvoiceError,
    InvoiceNumberConflictError,
    InvoiceNumberExhaustedError,
)
from buildledger.models.financial import Expense, Invoice, InvoiceLineItem, Payment
from buildledger.models.quotes import Quote

logger = logging.getLogger("buildledger")


@dataclass
class LedgerService:
    """Coordinate calculators and persistence for one ledger.

    Usage::

        from buildledger import LedgerService

        service = LedgerService.from_config("buildledger.yaml")
        report = service.aging_report("acme", today=date.today())
        for client in report.clients:
            print(client.client_name, client.risk_tier)

    Every operation that depends on the current date takes ``today``
    explicitly; the service never reads the clock.
    """

    port: LedgerPort
    config: BuildLedgerConfig = field(default_factory=BuildLedgerConfig)
    ledger: InvoiceLedger = field(init=False, repr=False)
    classifier: AgingClassifier = field(init=False, repr=False)
    pricing: QuotePricingEngine = field(default_factory=QuotePricingEngine, repr=False)

    def __post_init__(self) -> None:
        self.ledger = InvoiceLedger(self.config.invoice)
        self.classifier = AgingClassifier(self.config.aging)

    @classmethod
    def from_config(
        cls,
        config_path: str | None = None,
        port: LedgerPort | None = None,
        **overrides: Any,
    ) -> LedgerService:
        """Create a service from a config file or keyword arguments."""
        config = BuildLedgerConfig.load(config_path, **overrides)
        instance = cls(port=port or InMemoryPort(), config=config)
        logger.info("LedgerService initialized with %r", instance.port)
        return instance

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def computed_invoices(self, company_id: str, today: date) -> list[ComputedInvoice]:
        """Every invoice for the company with status and balance derived fresh."""
        payments = self.port.list_payments(company_id)
        return [self.ledger.compute(inv, payments, today) for inv in self.port.list_invoices(company_id)]

    def get_invoice(self, invoice_id: str, today: date) -> ComputedInvoice:
        invoice = self.port.get_invoice(invoice_id)
        payments = self.port.list_payments(invoice.company_id, invoice_id=invoice_id)
        return self.ledger.compute(invoice, payments, today)

    def aging_report(self, company_id: str, today: date) -> AgingReport:
        """Receivables aging for one company as of ``today``."""
        report = self.classifier.classify(self.computed_invoices(company_id, today), today)
        logger.info(
            "Aging for %s: %d outstanding invoices, %s total",
            company_id, report.invoice_count, report.total_outstanding,
        )
        return report

    def payment_summary(self, company_id: str, today: date) -> PaymentSummary:
        return summarize_payments(self.port.list_payments(company_id), today)

    def expense_summary(self, company_id: str) -> ExpenseSummary:
        return summarize_expenses(self.port.list_expenses(company_id))

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def create_invoice(
        self,
        company_id: str,
        contact_id: str,
        line_items: Iterable[InvoiceLineItem],
        invoice_date: date,
        *,
        client_name: str = "",
        client_email: str | None = None,
        project_id: str | None = None,
        tax_rate: float = 0.0,
        discount_amount: float = 0.0,
        payment_terms: str | None = None,
        due_date: date | None = None,
        notes: str | None = None,
        created_at: datetime | None = None,
    ) -> Invoice:
        """Price, number and save a new draft invoice.

        The next number is computed from the company's existing invoices.
        If the port reports a conflict (another session took the number
        first) the number is recomputed and the save retried.
        """
        terms = payment_terms or self.config.invoice.default_payment_terms
        draft = Invoice(
            company_id=company_id,
            contact_id=contact_id,
            client_name=client_name,
            client_email=client_email,
            project_id=project_id,
            invoice_date=invoice_date,
            due_date=due_date or self.ledger.due_date_for_terms(invoice_date, terms),
            line_items=list(line_items),
            tax_rate=tax_rate,
            discount_amount=discount_amount,
            payment_terms=terms,
            notes=notes,
            created_at=created_at,
        )
        draft = self.ledger.recalculate(draft)

        attempts = self.config.invoice.max_number_retries
        for attempt in range(1, attempts + 1):
            existing = [inv.invoice_number for inv in self.port.list_invoices(company_id)]
            number = self.ledger.next_invoice_number(existing, invoice_date.year)
            try:
                saved = self.port.save_invoice(draft.model_copy(update={"invoice_number": number}))
            except InvoiceNumberConflictError:
                logger.warning(
                    "Invoice number %s taken (attempt %d/%d), retrying", number, attempt, attempts,
                )
                continue
            logger.info("Created invoice %s for %s", saved.invoice_number, contact_id)
            return saved

        raise InvoiceNumberExhaustedError(
            f"Could not allocate an invoice number for {company_id} after {attempts} attempts"
        )

    def send_invoice(self, invoice_id: str, sent_at: datetime, recipient: str | None = None) -> Invoice:
        invoice = self.ledger.send(self.port.get_invoice(invoice_id), sent_at, recipient)
        return self.port.save_invoice(invoice)

    def mark_invoice_viewed(self, invoice_id: str, viewed_at: datetime) -> Invoice:
        invoice = self.ledger.mark_viewed(self.port.get_invoice(invoice_id), viewed_at)
        return self.port.save_invoice(invoice)

    def cancel_invoice(self, invoice_id: str, today: date, at: datetime | None = None) -> Invoice:
        invoice = self.port.get_invoice(invoice_id)
        payments = self.port.list_payments(invoice.company_id, invoice_id=invoice_id)
        return self.port.save_invoice(self.ledger.cancel(invoice, payments, today, at))

    def void_invoice(self, invoice_id: str, today: date, at: datetime | None = None) -> Invoice:
        invoice = self.port.get_invoice(invoice_id)
        payments = self.port.list_payments(invoice.company_id, invoice_id=invoice_id)
        return self.port.save_invoice(self.ledger.void(invoice, payments, today, at))

    def record_payment(self, payment: Payment, today: date) -> ComputedInvoice:
        """Save a payment and refresh the invoice's paid snapshot.

        The returned view is derived from every stored payment, so a
        concurrent payment recorded by another session is never lost.
        """
        invoice = self.port.get_invoice(payment.invoice_id)
        if payment.company_id is None:
            payment = payment.model_copy(update={"company_id": invoice.company_id})

        existing = self.port.list_payments(invoice.company_id, invoice_id=invoice.id)
        record, _ = self.ledger.record_payment(invoice, existing, payment, today)
        self.port.save_payment(payment)
        self.port.save_invoice(record)

        view = self.get_invoice(invoice.id, today)
        logger.info(
            "Recorded %.2f against %s, balance %.2f (%s)",
            payment.amount, invoice.invoice_number, view.balance_due, view.status.value,
        )
        return view

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def save_expense(self, expense: Expense) -> Expense:
        return self.port.save_expense(validate_expense(expense))

    def bill_expenses(
        self,
        company_id: str,
        contact_id: str,
        invoice_date: date,
        *,
        project_id: str | None = None,
        **invoice_fields: Any,
    ) -> Invoice:
        """Turn unbilled billable expenses into a draft invoice.

        The invoice is saved before the expenses are stamped so an expense
        never points at an invoice that does not exist.
        """
        pending = unbilled_expenses(self.port.list_expenses(company_id), project_id)
        if not pending:
            raise EmptyInvoiceError(f"No unbilled billable expenses for {project_id or company_id}")

        invoice = self.create_invoice(
            company_id,
            contact_id,
            to_invoice_line_items(pending),
            invoice_date,
            project_id=project_id,
            **invoice_fields,
        )
        for expense in mark_invoiced(pending, invoice.id):
            self.port.save_expense(expense)
        logger.info("Billed %d expenses on %s", len(pending), invoice.invoice_number)
        return invoice

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def instantiate_template(
        self,
        template_id: str,
        *,
        title: str | None = None,
        company_id: str | None = None,
        client_id: str | None = None,
        project_id: str | None = None,
        created_at: datetime | None = None,
    ) -> Quote:
        """Create and save a quote from a template, then bump its use count."""
        template = self.port.get_template(template_id)
        quote, used = self.pricing.instantiate_template(
            template,
            title=title,
            company_id=company_id,
            client_id=client_id,
            project_id=project_id,
            created_at=created_at,
        )
        quote = self.port.save_quote(quote)
        self.port.save_template(used)
        return quote

    def duplicate_quote(self, quote: Quote, created_at: datetime | None = None) -> Quote:
        return self.port.save_quote(self.pricing.duplicate(quote, created_at))
