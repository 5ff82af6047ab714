"""
BuildLedger — financial ledger and quote pricing for construction businesses.

Invoices, aging, billable expenses, quotes. Pure calculators plus a thin
service that composes them with whatever persistence you bring.
"""

__version__ = "0.3.0"
__all__ = ["LedgerService"]

from buildledger.service import LedgerService  # noqa: E402
