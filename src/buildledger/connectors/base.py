"""
Base port — abstract interface to whatever stores BuildLedger's records.

The calculators never talk to storage. ``LedgerService`` is handed a port
and does all reads and writes through it, so tests use an in-memory port
and production wires in a database-backed one.

Implementations must enforce unique invoice numbers per company: two
sessions can compute the same "next" number, and ``save_invoice`` is
where that race gets resolved by raising ``InvoiceNumberConflictError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildledger.models.financial import Expense, Invoice, Payment
    from buildledger.models.quotes import Quote, QuoteTemplate


class LedgerPort(ABC):
    """Abstract persistence port.

    To plug in a new backend, subclass this and implement every method.

    Example::

        class PostgresPort(LedgerPort):
            name = "postgres"

            def list_invoices(self, company_id: str) -> list[Invoice]:
                ...

            def save_invoice(self, invoice: Invoice) -> Invoice:
                # INSERT ... ON CONFLICT (company_id, invoice_number) -> raise
                ...
    """

    name: str = "base"

    # Invoices ----------------------------------------------------------

    @abstractmethod
    def list_invoices(self, company_id: str) -> list[Invoice]:
        """All invoices for a company."""

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Invoice:
        """Fetch one invoice or raise ``RecordNotFoundError``."""

    @abstractmethod
    def save_invoice(self, invoice: Invoice) -> Invoice:
        """Insert or update; raise ``InvoiceNumberConflictError`` on a duplicate number."""

    # Payments ----------------------------------------------------------

    @abstractmethod
    def list_payments(self, company_id: str, invoice_id: str | None = None) -> list[Payment]:
        """Payments for a company, optionally for one invoice."""

    @abstractmethod
    def save_payment(self, payment: Payment) -> Payment:
        """Insert a payment."""

    # Expenses ----------------------------------------------------------

    @abstractmethod
    def list_expenses(self, company_id: str) -> list[Expense]:
        """All expenses for a company."""

    @abstractmethod
    def save_expense(self, expense: Expense) -> Expense:
        """Insert or update an expense."""

    # Quotes ------------------------------------------------------------

    @abstractmethod
    def get_template(self, template_id: str) -> QuoteTemplate:
        """Fetch one template or raise ``RecordNotFoundError``."""

    @abstractmethod
    def save_template(self, template: QuoteTemplate) -> QuoteTemplate:
        """Update a template."""

    @abstractmethod
    def save_quote(self, quote: Quote) -> Quote:
        """Insert or update a quote."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
