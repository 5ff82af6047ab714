"""
Money & Date Utilities — rounding, percentages, whole-day differences.

Every amount that leaves a BuildLedger calculator has passed through
``round_currency``. Rounding is half-up on the decimal representation
of the value, so ``2.675`` rounds to ``2.68`` rather than inheriting the
binary float's ``2.67499...``.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from buildledger.exceptions import InvalidPercentageError

logger = logging.getLogger("buildledger.analyzers.money")


# Symbols and minor units for the currencies we format
CURRENCY_INFO = {
    "USD": {"symbol": "$", "name": "US Dollar", "decimals": 2},
    "CAD": {"symbol": "CA$", "name": "Canadian Dollar", "decimals": 2},
    "EUR": {"symbol": "€", "name": "Euro", "decimals": 2},
    "GBP": {"symbol": "£", "name": "British Pound", "decimals": 2},
    "AUD": {"symbol": "A$", "name": "Australian Dollar", "decimals": 2},
    "MXN": {"symbol": "MX$", "name": "Mexican Peso", "decimals": 2},
    "JPY": {"symbol": "¥", "name": "Japanese Yen", "decimals": 0},
}


def currency_decimals(currency: str = "USD") -> int:
    """Number of minor-unit digits for a currency (2 when unknown)."""
    return CURRENCY_INFO.get(currency.upper(), {}).get("decimals", 2)


def round_currency(amount: float, currency: str = "USD") -> float:
    """Round to the currency's minor unit using half-up rounding."""
    if isinstance(amount, float) and not math.isfinite(amount):
        raise ValueError(f"Cannot round non-finite amount: {amount!r}")

    decimals = currency_decimals(currency)
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(str(amount)).quantize(quantum, rounding=ROUND_HALF_UP)
    # Avoid "-0.0" leaking into reports
    return float(rounded) + 0.0


def sum_currency(amounts, currency: str = "USD") -> float:
    """Add amounts, rounding after every step so drift can't accumulate."""
    total = 0.0
    for amount in amounts:
        total = round_currency(total + amount, currency)
    return total


def apply_percentage(base: float, percent: float, currency: str = "USD") -> float:
    """``base * percent / 100``, rounded to the currency's minor unit."""
    return round_currency(base * percent / 100, currency)


def validate_percentage(value: float, label: str = "percentage") -> float:
    """Reject percentages outside [0, 100]."""
    if value is None or not math.isfinite(value) or value < 0 or value > 100:
        raise InvalidPercentageError(f"{label} must be between 0 and 100, got {value!r}")
    return value


def to_local_date(moment: date | datetime) -> date:
    """Truncate a timestamp to its calendar date in local time."""
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone()
        return moment.date()
    return moment


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole days from ``start`` to ``end`` (negative when ``end`` is earlier).

    Both sides are truncated to local dates before subtracting, so 23:59 and
    00:01 the next morning are one day apart, not zero.
    """
    return (to_local_date(end) - to_local_date(start)).days


def format_currency(amount: float, currency: str = "USD") -> str:
    """Format an amount for display, e.g. ``$1,250.00``."""
    info = CURRENCY_INFO.get(currency.upper(), {})
    symbol = info.get("symbol", currency)
    decimals = info.get("decimals", 2)
    return f"{symbol}{amount:,.{decimals}f}"


def format_amount(amount: float, currency: str = "USD") -> str:
    """Plain fixed-point rendering with the currency's minor unit, e.g. ``1250.00``."""
    decimals = currency_decimals(currency)
    return f"{round_currency(amount, currency):.{decimals}f}"
