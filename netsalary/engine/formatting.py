"""
Monetary rounding and locale number formatting shared by both engines.

round2() rounds half AWAY from zero (2.345 → 2.35, -2.345 → -2.35). Python's
built-in round() uses banker's rounding and must not be used for amounts that
appear in a breakdown.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round to 2 decimals, half away from zero."""
    # repr() gives the shortest decimal that round-trips, so 1.005 stays 1.005
    return float(Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """
    Group thousands with ',' and print at most 2 decimals, trimming zeros.

    26750 → "26,750"   102.5 → "102.5"   12234.34 → "12,234.34"
    """
    text = f"{round2(value):,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_currency(value: float, symbol: str = "S/") -> str:
    """S/ 3,000 for Peru (PEN); pass symbol='$' for Ecuador (USD)."""
    if symbol == "$":
        return f"${format_number(value)}"
    return f"{symbol} {format_number(value)}"


def format_rate(rate: float) -> str:
    """Whole-percent label used for bracket steps: 0.14 → '14%'."""
    whole = Decimal(repr(float(rate) * 100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{whole}%"


def format_rate_precise(rate: float) -> str:
    """Percent label keeping up to 2 decimals: 0.0675 → '6.75%', 0.09 → '9%'."""
    return f"{format_number(rate * 100)}%"
