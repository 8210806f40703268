"""
schemas.py — Parameter table Pydantic v2 data contracts.

Defines:
  - BracketUnits          (Peru income-tax bracket, bounds in UIT multiples)
  - FixedMarginalBracket  (Ecuador income-tax bracket, bounds in USD + fixed amount)
  - TaxParameters         (Peru constants for one (regime, year))
  - EcuadorParameters     (Ecuador constants for one (regime, year))

JSON keys are the on-disk names (UIT, AFP_BASE_RATE, fromUIT, ...). Python
attributes are snake_case; populate_by_name=True lets tests build either way.

All models are frozen: tables are loaded once at startup and never mutated.
Bracket lists are validated here (ascending, contiguous, open last bound) so a
malformed table fails at load time, not mid-calculation.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_FROZEN = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


def _check_bracket_bounds(bounds: Sequence[Tuple[float, Optional[float]]]) -> None:
    """
    Raise ValueError unless bounds are contiguous, ascending, start at 0 and
    end with an open (None) upper bound.
    """
    if not bounds:
        raise ValueError("bracket list is empty")
    if bounds[0][0] != 0:
        raise ValueError(f"first bracket must start at 0, got {bounds[0][0]}")
    for i, (lower, upper) in enumerate(bounds):
        is_last = i == len(bounds) - 1
        if upper is None:
            if not is_last:
                raise ValueError(f"bracket {i} is open but is not the last bracket")
            continue
        if is_last:
            raise ValueError("last bracket must have an open upper bound (null)")
        if upper <= lower:
            raise ValueError(f"bracket {i} upper bound {upper} is not above lower bound {lower}")
        next_lower = bounds[i + 1][0]
        if next_lower != upper:
            raise ValueError(
                f"brackets {i} and {i + 1} are not contiguous ({upper} != {next_lower})"
            )


# ---------------------------------------------------------------------------
# Bracket rows
# ---------------------------------------------------------------------------

class BracketUnits(BaseModel):
    """One progressive bracket, bounds expressed as multiples of the unit value."""
    model_config = _FROZEN

    from_unit: float = Field(..., ge=0, alias="fromUIT")
    to_unit: Optional[float] = Field(..., alias="toUIT")   # None → unbounded
    rate: float = Field(..., ge=0, le=1)


class FixedMarginalBracket(BaseModel):
    """One 'fixed amount + marginal rate on excess' bracket, bounds in currency."""
    model_config = _FROZEN

    lower: float = Field(..., ge=0, alias="from")
    upper: Optional[float] = Field(..., alias="to")        # None → unbounded
    fixed: float = Field(0.0, ge=0)
    rate: float = Field(..., ge=0, le=1)


# ---------------------------------------------------------------------------
# Peru
# ---------------------------------------------------------------------------

class TaxParameters(BaseModel):
    """
    Peru constants for one (regime, year).

    HEALTH_BONUS maps scheme name → rate; HEALTH_BONUS_RATE is the flat
    fallback when the scheme is missing from the map. Alternate-regime flags
    are optional and ignored by the standard regime.
    """
    model_config = _FROZEN

    uit: float = Field(..., gt=0, alias="UIT")
    family_allowance: float = Field(..., ge=0, alias="FAMILY_ALLOWANCE")

    health_bonus: Optional[Dict[str, float]] = Field(default=None, alias="HEALTH_BONUS")
    health_bonus_rate: Optional[float] = Field(default=None, ge=0, le=1, alias="HEALTH_BONUS_RATE")

    afp_base_rate: float = Field(..., ge=0, le=1, alias="AFP_BASE_RATE")
    afp_extra_rate: float = Field(..., ge=0, le=1, alias="AFP_EXTRA_RATE")
    afp_extra_cap: float = Field(..., ge=0, alias="AFP_EXTRA_CAP")

    fifth_category_brackets: List[BracketUnits] = Field(
        ..., min_length=1, alias="FIFTH_CATEGORY_BRACKETS_UIT",
    )
    deduction_units: float = Field(..., ge=0, alias="DEDUCTION_UIT")

    # --- Alternate (RIA) regime options ---
    build_from_components: Optional[bool] = Field(default=None, alias="BUILD_FROM_COMPONENTS")
    grati_annual_months: Optional[float] = Field(default=None, ge=0, alias="GRATI_ANNUAL_MONTHS")
    vacation_annual_months: Optional[float] = Field(default=None, ge=0, alias="VACATION_ANNUAL_MONTHS")
    cts_annual_months: Optional[float] = Field(default=None, ge=0, alias="CTS_ANNUAL_MONTHS")
    include_health_bonus_equiv: Optional[bool] = Field(default=None, alias="INCLUDE_HEALTH_BONUS_EQUIV")

    @field_validator("health_bonus")
    @classmethod
    def _normalise_health_bonus(cls, value: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        """Upper-case scheme keys and keep every rate inside [0, 1]."""
        if value is None:
            return None
        normalised: Dict[str, float] = {}
        for scheme, rate in value.items():
            if not 0 <= rate <= 1:
                raise ValueError(f"health bonus rate for {scheme!r} must be within [0, 1], got {rate}")
            normalised[scheme.strip().upper()] = rate
        return normalised

    @model_validator(mode="after")
    def _brackets_are_contiguous(self) -> "TaxParameters":
        _check_bracket_bounds([(b.from_unit, b.to_unit) for b in self.fifth_category_brackets])
        return self

    @property
    def deduction_amount(self) -> float:
        """Fixed annual deduction in currency (DEDUCTION_UIT × UIT)."""
        return self.deduction_units * self.uit


# ---------------------------------------------------------------------------
# Ecuador
# ---------------------------------------------------------------------------

class EcuadorParameters(BaseModel):
    """Ecuador constants for one (regime, year). Amounts in USD."""
    model_config = _FROZEN

    sbu: float = Field(..., ge=0, alias="SBU")
    iess_employee_rate: float = Field(..., ge=0, le=1, alias="IESS_EMPLOYEE_RATE")
    reserve_fund_rate: float = Field(..., ge=0, le=1, alias="RESERVE_FUND_RATE")
    personal_expenses_deduction: float = Field(0.0, ge=0, alias="PERSONAL_EXPENSES_DEDUCTION")
    income_tax_brackets: List[FixedMarginalBracket] = Field(
        ..., min_length=1, alias="INCOME_TAX_BRACKETS",
    )

    @model_validator(mode="after")
    def _brackets_are_contiguous(self) -> "EcuadorParameters":
        _check_bracket_bounds([(b.lower, b.upper) for b in self.income_tax_brackets])
        return self


__all__ = [
    "BracketUnits",
    "FixedMarginalBracket",
    "TaxParameters",
    "EcuadorParameters",
]
