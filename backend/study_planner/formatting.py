"""Number formatting and financing helpers shared by the variable builder."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Optional

ESTIMATED_RATES: Dict[str, float] = {"A": 5.5, "B": 8.5, "C": 14.0, "D": 22.0}
TIER_LABELS: Dict[str, str] = {"A": "Excellent", "B": "Good", "C": "Fair", "D": "Building"}
NEXT_TIERS: Dict[str, Optional[str]] = {"D": "C", "C": "B", "B": "A", "A": None}
NEXT_TIER_THRESHOLDS: Dict[str, int] = {"D": 40, "C": 60, "B": 80, "A": 100}


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves toward positive infinity.

    Values that are not finite, including products that overflowed, round to 0.
    """
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def format_currency(amount: float) -> str:
    """Format a dollar amount as ``$1,234`` (whole dollars, halves away from zero)."""
    try:
        whole = int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        whole = 0
    if whole < 0:
        return f"-${abs(whole):,}"
    return f"${whole:,}"


def calculate_monthly_payment(principal: float, annual_rate: float, term_years: float) -> int:
    """Amortised monthly payment rounded to whole dollars; 0 for a zero rate or term."""
    if term_years == 0 or annual_rate == 0:
        return 0
    monthly_rate = annual_rate / 100 / 12
    payments = term_years * 12
    try:
        growth = math.pow(1 + monthly_rate, payments)
    except OverflowError:
        return 0
    if growth == 1:
        return 0
    return round_half_up(principal * monthly_rate * growth / (growth - 1))


def estimated_rate(tier: str) -> float:
    return ESTIMATED_RATES.get(tier, ESTIMATED_RATES["D"])


def tier_label(tier: str) -> str:
    return TIER_LABELS.get(tier, "")


def next_tier(tier: str) -> Optional[str]:
    return NEXT_TIERS.get(tier)


def next_tier_threshold(tier: str) -> int:
    return NEXT_TIER_THRESHOLDS.get(tier, 100)


def pluralize(count: int, suffix: str = "s") -> str:
    return "" if count == 1 else suffix


def capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


__all__ = [
    "ESTIMATED_RATES",
    "NEXT_TIERS",
    "NEXT_TIER_THRESHOLDS",
    "TIER_LABELS",
    "calculate_monthly_payment",
    "capitalize",
    "estimated_rate",
    "format_currency",
    "next_tier",
    "next_tier_threshold",
    "pluralize",
    "round_half_up",
    "tier_label",
]
