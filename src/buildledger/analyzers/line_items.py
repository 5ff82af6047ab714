"""
Line Item Calculator — per-line amounts and document totals.

Shared by invoices and quotes. A line's amount is always
``quantity * rate`` rounded to cents; it is never entered by hand.
Zero-quantity lines are kept (a $0 placeholder is legitimate).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from buildledger.analyzers.money import apply_percentage, round_currency, sum_currency, validate_percentage
from buildledger.exceptions import InvalidDiscountError, InvalidLineItemError

logger = logging.getLogger("buildledger.analyzers.line_items")


@dataclass
class LineInput:
    """The calculation-relevant part of any line item."""

    quantity: float
    rate: float
    is_optional: bool = False


@dataclass
class LineItemSummary:
    """Result of pricing a sequence of lines."""

    amounts: list[float] = field(default_factory=list)
    subtotal: float = 0.0
    optional_total: float = 0.0

    @property
    def item_count(self) -> int:
        return len(self.amounts)


@dataclass
class DocumentTotals:
    """Subtotal through grand total for an invoice or quote."""

    subtotal: float
    discount_amount: float
    taxable_amount: float
    tax_rate: float
    tax_amount: float
    total: float

    @property
    def discount_percentage(self) -> float:
        if self.subtotal <= 0:
            return 0.0
        return round_currency(self.discount_amount / self.subtotal * 100)


def line_amount(quantity: float, rate: float) -> float:
    """Price one line. Negative inputs are rejected, never clamped."""
    if quantity < 0:
        raise InvalidLineItemError(f"Quantity cannot be negative: {quantity}")
    if rate < 0:
        raise InvalidLineItemError(f"Rate cannot be negative: {rate}")
    return round_currency(quantity * rate)


def summarize_lines(lines: Iterable[LineInput]) -> LineItemSummary:
    """Price every line and split the total into firm and optional parts."""
    summary = LineItemSummary()
    firm: list[float] = []
    optional: list[float] = []

    for line in lines:
        amount = line_amount(line.quantity, line.rate)
        summary.amounts.append(amount)
        (optional if line.is_optional else firm).append(amount)

    summary.subtotal = sum_currency(firm)
    summary.optional_total = sum_currency(optional)
    logger.debug(
        "Priced %d lines: subtotal=%.2f optional=%.2f",
        summary.item_count, summary.subtotal, summary.optional_total,
    )
    return summary


def compute_totals(subtotal: float, tax_rate: float = 0.0, discount_amount: float = 0.0) -> DocumentTotals:
    """Apply discount then tax to a subtotal.

    ``tax = apply_percentage(subtotal - discount, tax_rate)``;
    ``total = subtotal - discount + tax``.
    """
    validate_percentage(tax_rate, "tax rate")
    if discount_amount < 0:
        raise InvalidDiscountError(f"Discount cannot be negative: {discount_amount}")
    if discount_amount > subtotal:
        raise InvalidDiscountError(
            f"Discount {discount_amount:.2f} exceeds subtotal {subtotal:.2f}"
        )

    discount = round_currency(discount_amount)
    taxable = round_currency(subtotal - discount)
    tax = apply_percentage(taxable, tax_rate)
    return DocumentTotals(
        subtotal=round_currency(subtotal),
        discount_amount=discount,
        taxable_amount=taxable,
        tax_rate=tax_rate,
        tax_amount=tax,
        total=round_currency(taxable + tax),
    )
