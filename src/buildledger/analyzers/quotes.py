"""
Quote Pricing Engine — category grouping, optional items, templates.

Optional items are upsell candidates that need separate client approval:
they are priced and reported as ``optional_total`` but never enter the
subtotal, tax, or total.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Iterable

from buildledger.analyzers.line_items import LineInput, compute_totals, line_amount, summarize_lines
from buildledger.analyzers.money import days_between, round_currency, sum_currency
from buildledger.models.quotes import LineItemType, Quote, QuoteLineItem, QuoteStatus, QuoteTemplate

logger = logging.getLogger("buildledger.analyzers.quotes")

UNCATEGORIZED = "Uncategorized"

COST_ITEM_TYPES = frozenset({
    LineItemType.LABOR,
    LineItemType.MATERIAL,
    LineItemType.EQUIPMENT,
    LineItemType.SUBCONTRACTOR,
})


@dataclass
class CategoryGroup:
    """Line items sharing a category, in first-seen order."""

    name: str
    items: list[QuoteLineItem] = field(default_factory=list)
    subtotal: float = 0.0
    optional_total: float = 0.0


@dataclass
class QuotePricing:
    """Computed totals for a quote."""

    subtotal: float
    discount_amount: float
    discount_percentage: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    optional_total: float
    taxable_total: float = 0.0
    non_taxable_total: float = 0.0
    by_item_type: dict[str, float] = field(default_factory=dict)
    cost_total: float = 0.0
    overhead_total: float = 0.0
    profit_total: float = 0.0

    @property
    def margin_percentage(self) -> float:
        """Profit as a percentage of cost plus overhead."""
        base = self.cost_total + self.overhead_total
        if base <= 0:
            return 0.0
        return round(self.profit_total / base * 100, 2)

    @property
    def markup_percentage(self) -> float:
        """Profit as a percentage of the full price (cost, overhead and profit)."""
        base = self.cost_total + self.overhead_total
        if base <= 0:
            return 0.0
        return round(self.profit_total / (base + self.profit_total) * 100, 2)


@dataclass
class QuoteStatistics:
    """Pipeline rollup across many quotes."""

    total_quotes: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    sent: int = 0
    accepted: int = 0
    rejected: int = 0
    total_value: float = 0.0
    accepted_value: float = 0.0

    @property
    def draft(self) -> int:
        return self.by_status.get(QuoteStatus.DRAFT.value, 0)

    @property
    def conversion_rate(self) -> float:
        """Accepted as a percentage of quotes that left draft."""
        if self.sent == 0:
            return 0.0
        return round(self.accepted / self.sent * 100, 2)


def _new_id() -> str:
    return uuid.uuid4().hex


def price_item(item: QuoteLineItem) -> QuoteLineItem:
    """Recompute ``total_price`` from quantity and unit price."""
    return item.model_copy(update={"total_price": line_amount(item.quantity, item.unit_price)})


def group_by_category(items: Iterable[QuoteLineItem]) -> list[CategoryGroup]:
    """Partition items by category; uncategorized items share one bucket."""
    groups: dict[str, CategoryGroup] = {}
    for item in items:
        name = item.category or UNCATEGORIZED
        group = groups.get(name)
        if group is None:
            group = groups[name] = CategoryGroup(name=name)
        group.items.append(item)
        if item.is_optional:
            group.optional_total = round_currency(group.optional_total + item.total_price)
        else:
            group.subtotal = round_currency(group.subtotal + item.total_price)
    return list(groups.values())


class QuotePricingEngine:
    """
    Price quotes and manage their line items.

    Example usage:
        engine = QuotePricingEngine()
        quote = engine.price(quote)
        print(quote.subtotal, quote.tax_amount, quote.total_amount, quote.optional_total)

        new_quote, template = engine.instantiate_template(template, client_id="c-1")
    """

    def __init__(self, id_factory: Callable[[], str] | None = None):
        self.id_factory = id_factory or _new_id

    def calculate(
        self,
        items: Iterable[QuoteLineItem],
        tax_rate: float = 0.0,
        discount_amount: float = 0.0,
    ) -> QuotePricing:
        """Totals for a set of line items.

        Tax applies to the whole discounted subtotal; the taxable split is
        informational. The item-type breakdown covers optional items too.
        """
        items = list(items)
        summary = summarize_lines(
            LineInput(item.quantity, item.unit_price, item.is_optional) for item in items
        )
        totals = compute_totals(summary.subtotal, tax_rate, discount_amount)

        taxable: list[float] = []
        non_taxable: list[float] = []
        by_type: dict[LineItemType, list[float]] = {}
        for item, amount in zip(items, summary.amounts):
            if not item.is_optional:
                (taxable if item.is_taxable else non_taxable).append(amount)
            by_type.setdefault(item.item_type, []).append(amount)
        type_totals = {kind: sum_currency(amounts) for kind, amounts in by_type.items()}

        return QuotePricing(
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            discount_percentage=totals.discount_percentage,
            tax_rate=tax_rate,
            tax_amount=totals.tax_amount,
            total_amount=totals.total,
            optional_total=summary.optional_total,
            taxable_total=sum_currency(taxable),
            non_taxable_total=sum_currency(non_taxable),
            by_item_type={kind.value: total for kind, total in type_totals.items()},
            cost_total=sum_currency(type_totals[kind] for kind in COST_ITEM_TYPES if kind in type_totals),
            overhead_total=type_totals.get(LineItemType.OVERHEAD, 0.0),
            profit_total=type_totals.get(LineItemType.PROFIT, 0.0),
        )

    def price(self, quote: Quote) -> Quote:
        """Re-price every line and refresh the quote's totals."""
        items = [price_item(item) for item in quote.line_items]
        pricing = self.calculate(items, quote.tax_rate, quote.discount_amount)
        return quote.model_copy(update={
            "line_items": items,
            "subtotal": pricing.subtotal,
            "discount_amount": pricing.discount_amount,
            "tax_amount": pricing.tax_amount,
            "total_amount": pricing.total_amount,
            "optional_total": pricing.optional_total,
        })

    def set_optional(self, quote: Quote, item_id: str, is_optional: bool) -> Quote:
        """Toggle an item in or out of the firm total; its own price is untouched."""
        items = [
            item.model_copy(update={"is_optional": is_optional}) if item.id == item_id else item
            for item in quote.line_items
        ]
        return self.price(quote.model_copy(update={"line_items": items}))

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    @staticmethod
    def renumber(items: Iterable[QuoteLineItem]) -> list[QuoteLineItem]:
        """Assign ``sort_order`` 0..n-1 following the given sequence."""
        return [item.model_copy(update={"sort_order": index}) for index, item in enumerate(items)]

    def move_item(self, items: list[QuoteLineItem], from_index: int, to_index: int) -> list[QuoteLineItem]:
        """Drag-and-drop: move one item and renumber everything."""
        if not 0 <= from_index < len(items) or not 0 <= to_index < len(items):
            raise IndexError(f"Cannot move item {from_index} to {to_index} in a list of {len(items)}")
        reordered = list(items)
        reordered.insert(to_index, reordered.pop(from_index))
        return self.renumber(reordered)

    @staticmethod
    def sorted_items(items: Iterable[QuoteLineItem]) -> list[QuoteLineItem]:
        return sorted(items, key=lambda item: item.sort_order)

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------

    def _copy_item(self, item: QuoteLineItem, **updates) -> QuoteLineItem:
        return item.model_copy(update={"id": self.id_factory(), **updates}, deep=True)

    def instantiate_template(
        self,
        template: QuoteTemplate,
        *,
        title: str | None = None,
        company_id: str | None = None,
        client_id: str | None = None,
        project_id: str | None = None,
        created_at: datetime | None = None,
    ) -> tuple[Quote, QuoteTemplate]:
        """Build a new quote from a template.

        Every line item is deep-copied with a fresh id; a section's name
        becomes the category of items that don't carry their own. The
        template passed in is left untouched; the returned template copy has
        ``use_count`` incremented once and should be persisted only after the
        new quote has been saved.
        """
        items: list[QuoteLineItem] = []
        for section in template.sections:
            for item in section.line_items:
                items.append(self._copy_item(item, category=item.category or section.name))

        quote = Quote(
            id=self.id_factory(),
            company_id=company_id or template.company_id,
            client_id=client_id,
            project_id=project_id,
            template_id=template.id,
            title=title or template.name,
            description=template.description,
            tax_rate=template.default_tax_rate,
            payment_terms=template.default_payment_terms,
            terms_and_conditions=template.default_terms_and_conditions,
            line_items=self.renumber(items),
            created_at=created_at,
        )
        used = template.model_copy(update={"use_count": template.use_count + 1})
        logger.debug("Instantiated template %s with %d items", template.id, len(items))
        return self.price(quote), used

    def duplicate(self, quote: Quote, created_at: datetime | None = None) -> Quote:
        """Copy a quote as a fresh draft with new identities."""
        copy = quote.model_copy(
            update={
                "id": self.id_factory(),
                "quote_number": "",
                "title": f"{quote.title} (Copy)",
                "status": QuoteStatus.DRAFT,
                "line_items": [self._copy_item(item) for item in quote.line_items],
                "created_at": created_at,
            },
            deep=True,
        )
        return self.price(copy)


def quote_statistics(quotes: Iterable[Quote]) -> QuoteStatistics:
    """Counts, values and conversion rate across quotes."""
    stats = QuoteStatistics()
    counts: Counter[str] = Counter()
    for quote in quotes:
        stats.total_quotes += 1
        counts[quote.status.value] += 1
        stats.total_value = round_currency(stats.total_value + quote.total_amount)
        if quote.status != QuoteStatus.DRAFT:
            stats.sent += 1
        if quote.status == QuoteStatus.ACCEPTED:
            stats.accepted += 1
            stats.accepted_value = round_currency(stats.accepted_value + quote.total_amount)
        elif quote.status == QuoteStatus.REJECTED:
            stats.rejected += 1
    stats.by_status = dict(counts)
    return stats


def is_expired(quote: Quote, today: date) -> bool:
    """Past ``valid_until`` and not already won."""
    if quote.valid_until is None:
        return False
    if quote.status in (QuoteStatus.ACCEPTED, QuoteStatus.CONVERTED):
        return False
    return quote.valid_until < today


def days_until_expiry(quote: Quote, today: date) -> int | None:
    if quote.valid_until is None:
        return None
    return days_between(today, quote.valid_until)
