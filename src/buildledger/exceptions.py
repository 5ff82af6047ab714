"""
Error taxonomy.

Validation errors also derive from ``ValueError`` so callers that only
care about "bad input" can catch that.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all BuildLedger errors."""


class InvalidLineItemError(LedgerError, ValueError):
    """A line item has a negative quantity or rate."""


class MissingRecipientError(LedgerError, ValueError):
    """An invoice was sent without a client email address."""


class InvalidPercentageError(LedgerError, ValueError):
    """A markup or tax percentage is outside [0, 100]."""


class InvalidDiscountError(LedgerError, ValueError):
    """A discount is negative or larger than the subtotal it applies to."""


class EmptyInvoiceError(LedgerError, ValueError):
    """An invoice with a zero total cannot be sent."""


class UnknownPaymentTermsError(LedgerError, ValueError):
    """A payment terms label could not be turned into a due date."""


class UnallocatedBillableExpenseError(LedgerError, ValueError):
    """A billable expense must be allocated to a project."""


class InvalidStatusTransitionError(LedgerError):
    """The requested lifecycle transition is not allowed from the current state."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"Cannot move {entity} from '{current}' to '{target}'")


class InvoiceNumberConflictError(LedgerError):
    """Raised by a persistence port when an invoice number is already taken."""

    def __init__(self, invoice_number: str) -> None:
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number already in use: {invoice_number}")


class InvoiceNumberExhaustedError(LedgerError):
    """No free invoice number could be allocated within the retry budget."""


class RecordNotFoundError(LedgerError, KeyError):
    """A persistence lookup found nothing."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")

    def __str__(self) -> str:
        return f"{self.kind} not found: {self.record_id}"
