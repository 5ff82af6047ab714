"""Tests for the aging classifier."""

from datetime import date, timedelta

import pytest

from buildledger.analyzers.aging import (
    AgingBucketKey,
    AgingClassifier,
    ClientAgingSummary,
    RecommendedAction,
    RiskTier,
    bucket_for,
    classify_aging,
)
from buildledger.analyzers.invoices import ComputedInvoice, InvoiceLedger
from buildledger.config import AgingConfig
from buildledger.models.financial import Invoice, InvoiceStatus, Payment

TODAY = date(2026, 10, 19)

_ledger = InvoiceLedger()
_counter = iter(range(1, 10_000))


def aged(
    client: str,
    amount: float,
    days_overdue: int,
    status: InvoiceStatus = InvoiceStatus.SENT,
    paid: float = 0.0,
) -> ComputedInvoice:
    """An invoice for ``client`` that is ``days_overdue`` days past due as of TODAY."""
    invoice_id = f"inv-{next(_counter)}"
    invoice = Invoice(
        id=invoice_id,
        company_id="acme",
        contact_id=client,
        client_name=client.title(),
        invoice_date=TODAY - timedelta(days=days_overdue + 30),
        due_date=TODAY - timedelta(days=days_overdue),
        total_amount=amount,
        status=status,
    )
    payments = []
    if paid:
        payments.append(Payment(invoice_id=invoice_id, amount=paid, payment_date=TODAY))
    return _ledger.compute(invoice, payments, TODAY)


class TestBucketBoundaries:
    @pytest.mark.parametrize(
        "days, expected",
        [
            (-15, AgingBucketKey.CURRENT),
            (0, AgingBucketKey.CURRENT),
            (30, AgingBucketKey.CURRENT),
            (31, AgingBucketKey.DAYS_31_60),
            (60, AgingBucketKey.DAYS_31_60),
            (61, AgingBucketKey.DAYS_61_90),
            (90, AgingBucketKey.DAYS_61_90),
            (91, AgingBucketKey.DAYS_90_PLUS),
            (400, AgingBucketKey.DAYS_90_PLUS),
        ],
    )
    def test_bucket_for(self, days: int, expected: AgingBucketKey) -> None:
        assert bucket_for(days) == expected

    def test_labels(self) -> None:
        assert AgingBucketKey.CURRENT.label == "Current (0-30 days)"
        assert AgingBucketKey.DAYS_90_PLUS.label == "90+ days"

    def test_boundary_invoices_land_in_report_buckets(self) -> None:
        report = classify_aging([aged("a", 100, 30), aged("a", 200, 90), aged("a", 400, 91)], TODAY)
        assert report.bucket(AgingBucketKey.CURRENT).amount == 100.0
        assert report.bucket(AgingBucketKey.DAYS_61_90).amount == 200.0
        assert report.bucket(AgingBucketKey.DAYS_90_PLUS).amount == 400.0


class TestClientRisk:
    def test_three_invoice_scenario(self) -> None:
        report = classify_aging(
            [aged("acme", 1000, 10), aged("acme", 2000, 70), aged("acme", 500, 130)],
            TODAY,
        )
        client = report.clients[0]
        assert client.total_outstanding == 3500.0
        assert client.invoice_count == 3
        assert client.oldest_invoice_days == 130
        assert client.current == 1000.0
        assert client.days_31_60 == 0.0
        assert client.days_61_90 == 2000.0
        assert client.days_90_plus == 500.0
        assert [client.bucket_amount(key) for key in AgingBucketKey] == [1000.0, 0.0, 2000.0, 500.0]
        assert client.share_90_plus == pytest.approx(0.142857, rel=1e-4)
        assert client.risk_tier == RiskTier.HIGH
        assert client.recommended_action == RecommendedAction.URGENT_COLLECTIONS
        assert client.recommended_action.value == "Urgent: Consider collections agency or payment plan"

    def test_high_by_share(self) -> None:
        report = classify_aging([aged("b", 600, 95), aged("b", 400, 5)], TODAY)
        assert report.clients[0].risk_tier == RiskTier.HIGH

    def test_final_notice(self) -> None:
        report = classify_aging([aged("c", 500, 65)], TODAY)
        assert report.clients[0].risk_tier == RiskTier.MEDIUM
        assert report.clients[0].recommended_action == RecommendedAction.FINAL_NOTICE

    def test_friendly_reminder(self) -> None:
        report = classify_aging([aged("d", 500, 45)], TODAY)
        assert report.clients[0].risk_tier == RiskTier.MEDIUM
        assert report.clients[0].recommended_action == RecommendedAction.FRIENDLY_REMINDER

    def test_low_risk(self) -> None:
        report = classify_aging([aged("e", 500, 30)], TODAY)
        assert report.clients[0].risk_tier == RiskTier.LOW
        assert report.clients[0].recommended_action == RecommendedAction.MONITOR

    def test_not_yet_due_counts_as_zero_days(self) -> None:
        report = classify_aging([aged("f", 500, -20)], TODAY)
        client = report.clients[0]
        assert client.oldest_invoice_days == 0
        assert client.current == 500.0

    def test_zero_outstanding_guard(self) -> None:
        summary = ClientAgingSummary(client_id="x", client_name="X")
        assert summary.share_90_plus == 0.0
        tier, action = AgingClassifier().assess_risk(summary)
        assert tier == RiskTier.LOW
        assert action == RecommendedAction.MONITOR

    def test_order_independent(self) -> None:
        invoices = [aged("g", 300, 100), aged("g", 700, 5), aged("g", 50, 40)]
        forward = classify_aging(invoices, TODAY).clients[0]
        backward = classify_aging(list(reversed(invoices)), TODAY).clients[0]
        assert forward.risk_tier == backward.risk_tier
        assert forward.total_outstanding == backward.total_outstanding
        assert forward.oldest_invoice_days == backward.oldest_invoice_days

    def test_configured_thresholds(self) -> None:
        strict = AgingClassifier(AgingConfig(high_days=60))
        report = strict.classify([aged("h", 500, 65)], TODAY)
        assert report.clients[0].risk_tier == RiskTier.HIGH


class TestReport:
    def test_only_outstanding_invoices(self) -> None:
        invoices = [
            aged("a", 100, 10),
            aged("a", 200, 10, paid=200),
            aged("a", 300, 10, status=InvoiceStatus.VOID),
            aged("a", 400, 10, status=InvoiceStatus.CANCELLED),
            aged("a", 500, 10, paid=125),
        ]
        report = classify_aging(invoices, TODAY)
        assert report.invoice_count == 2
        assert report.total_outstanding == 475.0
        assert report.clients[0].invoice_count == 2

    def test_drafts_are_aged(self) -> None:
        report = classify_aging([aged("a", 250, 40, status=InvoiceStatus.DRAFT)], TODAY)
        assert report.invoice_count == 1
        assert report.bucket(AgingBucketKey.DAYS_31_60).amount == 250.0

    def test_bucket_counts_and_ids(self) -> None:
        invoices = [aged("a", 100, 5), aged("b", 100, 15), aged("c", 100, 45)]
        report = classify_aging(invoices, TODAY)
        current = report.bucket(AgingBucketKey.CURRENT)
        assert current.count == 2
        assert current.amount == 200.0
        assert current.invoice_ids == [invoices[0].id, invoices[1].id]
        assert report.total_overdue == 100.0

    def test_client_sort_order(self) -> None:
        invoices = [
            aged("low-big", 5000, 5),
            aged("high-small", 100, 150),
            aged("medium-small", 300, 45),
            aged("medium-big", 900, 70),
        ]
        report = classify_aging(invoices, TODAY)
        assert [c.client_id for c in report.clients] == [
            "high-small",
            "medium-big",
            "medium-small",
            "low-big",
        ]
        assert [c.client_id for c in report.high_risk_clients] == ["high-small"]

    def test_empty(self) -> None:
        report = classify_aging([], TODAY)
        assert report.clients == []
        assert report.total_outstanding == 0.0
        assert len(report.buckets) == 4
