"""
Accounts-Receivable Aging — buckets, client rollups, collections risk.

Buckets use an inclusive lower and upper bound on days overdue:

    days <= 30        Current (0-30 days)   (not-yet-due invoices land here too)
    31 <= days <= 60  31-60 days
    61 <= days <= 90  61-90 days
    days > 90         90+ days

So exactly 30 days is Current and exactly 90 days is 61-90.

Risk tiers are evaluated in order, first match wins:

    high    90+ share > 50%  or oldest invoice > 120 days  -> urgent collections
    medium  90+ share > 20%  or oldest invoice > 60 days   -> final notice + call
    medium  oldest invoice > 30 days                       -> friendly reminder
    low     otherwise                                      -> monitor
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable

from buildledger.analyzers.invoices import ComputedInvoice
from buildledger.analyzers.money import days_between, round_currency
from buildledger.config import AgingConfig

logger = logging.getLogger("buildledger.analyzers.aging")


class AgingBucketKey(str, Enum):
    """The four aging buckets, in display order."""

    CURRENT = "current"
    DAYS_31_60 = "31_60"
    DAYS_61_90 = "61_90"
    DAYS_90_PLUS = "90_plus"

    @property
    def label(self) -> str:
        return BUCKET_LABELS[self]


BUCKET_LABELS: dict[AgingBucketKey, str] = {
    AgingBucketKey.CURRENT: "Current (0-30 days)",
    AgingBucketKey.DAYS_31_60: "31-60 days",
    AgingBucketKey.DAYS_61_90: "61-90 days",
    AgingBucketKey.DAYS_90_PLUS: "90+ days",
}


class RiskTier(str, Enum):
    """Client-level collections priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendedAction(str, Enum):
    """Fixed next step for each matched risk branch."""

    URGENT_COLLECTIONS = "Urgent: Consider collections agency or payment plan"
    FINAL_NOTICE = "Send final notice and schedule call to discuss payment"
    FRIENDLY_REMINDER = "Send friendly reminder email"
    MONITOR = "Monitor - no action needed yet"


_RISK_ORDER = {RiskTier.HIGH: 0, RiskTier.MEDIUM: 1, RiskTier.LOW: 2}


@dataclass
class AgingBucket:
    """Count and balance of outstanding invoices within one day range."""

    key: AgingBucketKey
    count: int = 0
    amount: float = 0.0
    invoice_ids: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.key.label


@dataclass
class ClientAgingSummary:
    """Per-client exposure, derived entirely from that client's open invoices."""

    client_id: str
    client_name: str
    total_outstanding: float = 0.0
    invoice_count: int = 0
    oldest_invoice_days: int = 0
    current: float = 0.0
    days_31_60: float = 0.0
    days_61_90: float = 0.0
    days_90_plus: float = 0.0
    risk_tier: RiskTier = RiskTier.LOW
    recommended_action: RecommendedAction = RecommendedAction.MONITOR

    @property
    def share_90_plus(self) -> float:
        """Fraction of the balance that is 90+ days old; 0 when nothing is owed."""
        if self.total_outstanding <= 0:
            return 0.0
        return self.days_90_plus / self.total_outstanding

    def bucket_amount(self, key: AgingBucketKey) -> float:
        return {
            AgingBucketKey.CURRENT: self.current,
            AgingBucketKey.DAYS_31_60: self.days_31_60,
            AgingBucketKey.DAYS_61_90: self.days_61_90,
            AgingBucketKey.DAYS_90_PLUS: self.days_90_plus,
        }[key]

    def _add(self, key: AgingBucketKey, amount: float) -> None:
        attr = {
            AgingBucketKey.CURRENT: "current",
            AgingBucketKey.DAYS_31_60: "days_31_60",
            AgingBucketKey.DAYS_61_90: "days_61_90",
            AgingBucketKey.DAYS_90_PLUS: "days_90_plus",
        }[key]
        setattr(self, attr, round_currency(getattr(self, attr) + amount))


@dataclass
class AgingReport:
    """Full aging view as of a given date."""

    as_of: date
    buckets: list[AgingBucket]
    clients: list[ClientAgingSummary]
    total_outstanding: float = 0.0
    invoice_count: int = 0

    def bucket(self, key: AgingBucketKey) -> AgingBucket:
        return next(b for b in self.buckets if b.key == key)

    @property
    def high_risk_clients(self) -> list[ClientAgingSummary]:
        return [c for c in self.clients if c.risk_tier == RiskTier.HIGH]

    @property
    def total_overdue(self) -> float:
        """Balance in every bucket past Current."""
        return round_currency(self.total_outstanding - self.bucket(AgingBucketKey.CURRENT).amount)


def bucket_for(days_overdue: int) -> AgingBucketKey:
    """Map days overdue to its bucket."""
    if days_overdue <= 30:
        return AgingBucketKey.CURRENT
    if days_overdue <= 60:
        return AgingBucketKey.DAYS_31_60
    if days_overdue <= 90:
        return AgingBucketKey.DAYS_61_90
    return AgingBucketKey.DAYS_90_PLUS


class AgingClassifier:
    """
    Classify outstanding invoices into aging buckets and rank clients by risk.

    ``today`` is always an explicit argument.

    Example usage:
        classifier = AgingClassifier()
        report = classifier.classify(open_invoices, today=date(2026, 10, 19))
        for client in report.clients:
            print(client.client_name, client.risk_tier.value, client.recommended_action.value)
    """

    def __init__(self, config: AgingConfig | None = None):
        self.config = config or AgingConfig()

    def classify(self, invoices: Iterable[ComputedInvoice], today: date) -> AgingReport:
        """Bucket every outstanding invoice and build sorted client summaries."""
        buckets = {key: AgingBucket(key=key) for key in AgingBucketKey}
        clients: dict[str, ClientAgingSummary] = {}
        total = 0.0
        count = 0
        skipped = 0

        for invoice in invoices:
            if not invoice.is_outstanding:
                skipped += 1
                continue

            days = days_between(invoice.due_date, today)
            key = bucket_for(days)
            balance = invoice.balance_due

            bucket = buckets[key]
            bucket.count += 1
            bucket.amount = round_currency(bucket.amount + balance)
            if invoice.id is not None:
                bucket.invoice_ids.append(invoice.id)

            summary = clients.get(invoice.client_id)
            if summary is None:
                summary = ClientAgingSummary(client_id=invoice.client_id, client_name=invoice.client_name)
                clients[invoice.client_id] = summary
            summary.total_outstanding = round_currency(summary.total_outstanding + balance)
            summary.invoice_count += 1
            summary.oldest_invoice_days = max(summary.oldest_invoice_days, days)
            summary._add(key, balance)

            total = round_currency(total + balance)
            count += 1

        if skipped:
            logger.debug("Skipped %d invoices with nothing outstanding", skipped)

        for summary in clients.values():
            summary.risk_tier, summary.recommended_action = self.assess_risk(summary)

        ranked = sorted(
            clients.values(),
            key=lambda c: (_RISK_ORDER[c.risk_tier], -c.total_outstanding, c.client_name, c.client_id),
        )
        logger.debug(
            "Aged %d invoices across %d clients as of %s (%d high risk)",
            count, len(ranked), today, sum(1 for c in ranked if c.risk_tier == RiskTier.HIGH),
        )
        return AgingReport(
            as_of=today,
            buckets=[buckets[key] for key in AgingBucketKey],
            clients=ranked,
            total_outstanding=total,
            invoice_count=count,
        )

    def assess_risk(self, summary: ClientAgingSummary) -> tuple[RiskTier, RecommendedAction]:
        """Risk tier and action for one client; first matching rule wins."""
        cfg = self.config
        share = summary.share_90_plus
        oldest = summary.oldest_invoice_days

        if share > cfg.high_share or oldest > cfg.high_days:
            return RiskTier.HIGH, RecommendedAction.URGENT_COLLECTIONS
        if share > cfg.medium_share or oldest > cfg.medium_days:
            return RiskTier.MEDIUM, RecommendedAction.FINAL_NOTICE
        if oldest > cfg.reminder_days:
            return RiskTier.MEDIUM, RecommendedAction.FRIENDLY_REMINDER
        return RiskTier.LOW, RecommendedAction.MONITOR


def classify_aging(
    invoices: Iterable[ComputedInvoice],
    today: date,
    config: AgingConfig | None = None,
) -> AgingReport:
    """Quick aging classification."""
    return AgingClassifier(config).classify(invoices, today)
