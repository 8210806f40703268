"""
Bracket tax calculators — pure functions, no side effects, no I/O.

Two shapes:
  compute_bracket_tax()         progressive walk (Peru 5th category, UIT brackets)
  compute_fixed_marginal_tax()  single bracket, fixed + rate on excess (Ecuador IR)

Both return BracketTax(total_tax, itemization, raw_total). total_tax and every
itemised amount are rounded half away from zero; raw_total is the unrounded
sum so callers can mensualise it before rounding once.
"""
from __future__ import annotations

import math
from typing import List, NamedTuple, Sequence

from netsalary.engine.formatting import format_currency, format_rate, round2
from netsalary.engine.schemas import BracketItem
from netsalary.parameters.schemas import BracketUnits, FixedMarginalBracket


class BracketTax(NamedTuple):
    total_tax: float
    itemization: List[BracketItem]
    raw_total: float


def _range_label(lower: float, upper: float, symbol: str) -> str:
    upper_label = "∞" if math.isinf(upper) else format_currency(upper, symbol)
    return f"{format_currency(lower, symbol)} - {upper_label}"


def compute_bracket_tax(
    taxable_base: float,
    brackets: Sequence[BracketUnits],
    unit_value: float,
    symbol: str = "S/",
) -> BracketTax:
    """
    Progressive tax on taxable_base.

    Bracket bounds are multiples of unit_value; the last bracket is open.
    Each bracket taxes min(remaining, width) at its rate; the walk stops as
    soon as nothing remains. One BracketItem per bracket with non-zero width.
    """
    remaining = max(0.0, taxable_base)
    total = 0.0
    details: List[BracketItem] = []

    for bracket in brackets:
        if remaining <= 0:
            break
        lower = bracket.from_unit * unit_value
        upper = math.inf if bracket.to_unit is None else bracket.to_unit * unit_value

        width = remaining if math.isinf(upper) else max(0.0, min(remaining, upper - lower))
        if width <= 0:
            continue
        tax_here = width * bracket.rate
        total += tax_here
        remaining -= width

        details.append(BracketItem(
            step=f"Tramo {format_rate(bracket.rate)}",
            description=_range_label(lower, upper, symbol),
            amount=round2(tax_here),
            rate=format_rate(bracket.rate),
        ))

    return BracketTax(round2(total), details, total)


def compute_fixed_marginal_tax(
    base: float,
    brackets: Sequence[FixedMarginalBracket],
    symbol: str = "$",
) -> BracketTax:
    """
    Tax = fixed + (base − from) × rate for the one bracket with from <= base < to.

    A base outside every bracket (only possible with a malformed table) yields
    zero tax and no itemisation.
    """
    for bracket in brackets:
        upper = math.inf if bracket.upper is None else bracket.upper
        if bracket.lower <= base < upper:
            tax = bracket.fixed + (base - bracket.lower) * bracket.rate
            item = BracketItem(
                step=f"Tramo {format_rate(bracket.rate)}",
                description=_range_label(bracket.lower, upper, symbol),
                amount=round2(tax),
                rate=format_rate(bracket.rate),
            )
            return BracketTax(round2(tax), [item], tax)

    return BracketTax(0.0, [], 0.0)
