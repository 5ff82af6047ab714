"""
Quote data models — quotes, line items, reusable templates.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class LineItemType(str, Enum):
    """What kind of cost a quote line represents."""

    LABOR = "labor"
    MATERIAL = "material"
    EQUIPMENT = "equipment"
    SUBCONTRACTOR = "subcontractor"
    OVERHEAD = "overhead"
    PROFIT = "profit"


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class QuoteLineItem(BaseModel):
    """A priced line on a quote. ``total_price`` is always recomputed."""

    id: str | None = None
    item_type: LineItemType = LineItemType.MATERIAL
    description: str
    category: str | None = None
    quantity: float = 1.0
    unit: str = "each"
    unit_price: float = 0.0
    total_price: float = 0.0
    is_taxable: bool = True
    is_optional: bool = False
    notes: str | None = None
    sort_order: int = 0


class Quote(BaseModel):
    """A priced proposal sent to a client."""

    id: str | None = None
    company_id: str | None = None
    client_id: str | None = None
    project_id: str | None = None
    template_id: str | None = None

    quote_number: str = ""
    title: str
    description: str | None = None
    status: QuoteStatus = QuoteStatus.DRAFT

    line_items: list[QuoteLineItem] = Field(default_factory=list)
    subtotal: float = 0.0
    discount_amount: float = 0.0
    tax_rate: float = 0.0
    tax_amount: float = 0.0
    total_amount: float = 0.0
    optional_total: float = 0.0

    payment_terms: str | None = None
    terms_and_conditions: str | None = None
    valid_until: date | None = None
    created_at: datetime | None = None


class TemplateSection(BaseModel):
    """A named group of line items inside a template."""

    name: str
    line_items: list[QuoteLineItem] = Field(default_factory=list)


class QuoteTemplate(BaseModel):
    """A reusable quote skeleton."""

    id: str
    company_id: str | None = None
    name: str
    description: str | None = None
    category: str = "custom"
    sections: list[TemplateSection] = Field(default_factory=list)
    default_tax_rate: float = 0.0
    default_payment_terms: str | None = None
    default_terms_and_conditions: str | None = None
    use_count: int = 0
