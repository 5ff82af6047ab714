"""
Financial data models — invoices, line items, payments, expenses.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states.

    Only DRAFT, SENT, CANCELLED and VOID are ever stored by BuildLedger.
    The rest are derived at read time from payments and the due date.
    """

    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    VOID = "void"


class PaymentMethod(str, Enum):
    """How money changed hands."""

    CHECK = "check"
    ACH = "ach"
    WIRE = "wire"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    CASH = "cash"
    OTHER = "other"


class PaymentStatus(str, Enum):
    """Expense payment status."""

    PENDING = "pending"
    PAID = "paid"
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"


class ExpenseCategory(str, Enum):
    """Construction expense categories."""

    MATERIALS = "materials"
    LABOR = "labor"
    SUBCONTRACTORS = "subcontractors"
    EQUIPMENT = "equipment"
    EQUIPMENT_RENTAL = "equipment_rental"
    PERMITS = "permits"
    UTILITIES = "utilities"
    INSURANCE = "insurance"
    PROFESSIONAL_FEES = "professional_fees"
    TRAVEL = "travel"
    OFFICE = "office"
    MARKETING = "marketing"
    OTHER = "other"


class InvoiceLineItem(BaseModel):
    """A single billable line on an invoice. ``amount`` is always recomputed."""

    id: str | None = None
    description: str
    quantity: float = 1.0
    rate: float = 0.0
    amount: float = 0.0
    category: str | None = None


class Payment(BaseModel):
    """A payment received against an invoice."""

    id: str | None = None
    invoice_id: str
    company_id: str | None = None
    amount: float
    payment_date: date
    payment_method: PaymentMethod = PaymentMethod.OTHER
    reference_number: str | None = None
    notes: str | None = None


class Invoice(BaseModel):
    """A receivable invoice as stored.

    ``amount_paid`` and ``balance_due`` are snapshots; the ledger always
    recomputes them from the payment set.
    """

    id: str | None = None
    company_id: str
    contact_id: str
    client_name: str = ""
    client_email: str | None = None
    project_id: str | None = None

    invoice_number: str = ""
    invoice_date: date
    due_date: date

    line_items: list[InvoiceLineItem] = Field(default_factory=list)
    subtotal: float = 0.0
    discount_amount: float = 0.0
    tax_rate: float = 0.0
    tax_amount: float = 0.0
    total_amount: float = 0.0
    amount_paid: float = 0.0

    status: InvoiceStatus = InvoiceStatus.DRAFT
    payment_terms: str = "Net 30"
    notes: str | None = None

    created_at: datetime | None = None
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def balance_due(self) -> float:
        from buildledger.analyzers.money import round_currency

        return max(round_currency(self.total_amount - self.amount_paid), 0.0)


class Expense(BaseModel):
    """A cost incurred by the company, optionally re-billed to a client."""

    id: str | None = None
    company_id: str | None = None
    project_id: str | None = None
    date: date
    vendor: str
    description: str = ""
    amount: float = Field(gt=0)
    category: ExpenseCategory = ExpenseCategory.OTHER

    payment_method: PaymentMethod = PaymentMethod.OTHER
    payment_status: PaymentStatus = PaymentStatus.PENDING
    paid_at: datetime | None = None

    billable_to_client: bool = False
    markup_percentage: float | None = None
    invoiced: bool = False
    invoice_id: str | None = None
