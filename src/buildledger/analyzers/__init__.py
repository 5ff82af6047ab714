"""
BuildLedger calculators — pure computation modules.

No I/O, no clock, no shared state: records and an explicit ``today`` go in,
computed view-models come out.
"""

from buildledger.analyzers.money import (
    apply_percentage,
    days_between,
    format_currency,
    round_currency,
)
from buildledger.analyzers.line_items import (
    DocumentTotals,
    LineInput,
    LineItemSummary,
    compute_totals,
    line_amount,
    summarize_lines,
)
from buildledger.analyzers.invoices import (
    ComputedInvoice,
    InvoiceLedger,
    PaymentSummary,
    outstanding,
    summarize_payments,
)
from buildledger.analyzers.aging import (
    AgingBucket,
    AgingBucketKey,
    AgingClassifier,
    AgingReport,
    ClientAgingSummary,
    RecommendedAction,
    RiskTier,
    bucket_for,
    classify_aging,
)
from buildledger.analyzers.expenses import (
    ExpenseSummary,
    billable_amount,
    summarize_expenses,
)
from buildledger.analyzers.quotes import (
    CategoryGroup,
    QuotePricing,
    QuotePricingEngine,
    QuoteStatistics,
    group_by_category,
    quote_statistics,
)
from buildledger.analyzers.timesheets import EmployeeWeekSummary, summarize_week

__all__ = [
    "apply_percentage",
    "days_between",
    "format_currency",
    "round_currency",
    "DocumentTotals",
    "LineInput",
    "LineItemSummary",
    "compute_totals",
    "line_amount",
    "summarize_lines",
    "ComputedInvoice",
    "InvoiceLedger",
    "PaymentSummary",
    "outstanding",
    "summarize_payments",
    "AgingBucket",
    "AgingBucketKey",
    "AgingClassifier",
    "AgingReport",
    "ClientAgingSummary",
    "RecommendedAction",
    "RiskTier",
    "bucket_for",
    "classify_aging",
    "ExpenseSummary",
    "billable_amount",
    "summarize_expenses",
    "CategoryGroup",
    "QuotePricing",
    "QuotePricingEngine",
    "QuoteStatistics",
    "group_by_category",
    "quote_statistics",
    "EmployeeWeekSummary",
    "summarize_week",
]
