"""
schemas.py — Salary engine Pydantic v2 data contracts.

Defines:
  - Regime, HealthScheme enums (Peru)
  - SalaryInputs / SalaryInputsECU   (one user submission, immutable)
  - BreakdownItem, BracketItem, SalaryBreakdown  (the audit trail)
  - AlternateAliquots                (RIA aliquots for audit display)
  - SalaryResults                    (engine output, both jurisdictions)
  - BonusRequest, BonusNetResult     (bonus helper contracts)

Monetary fields are in the jurisdiction's currency (PEN for Peru, USD for
Ecuador). "Gross" and "net" headline figures EXCLUDE the food allowance even
though the food allowance is part of the Peru income-tax base.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Regime(str, Enum):
    """Peru pay regime. Values are the parameter-table keys."""
    STANDARD = "NORMAL"
    ALTERNATE = "RIA"      # Remuneración Integral Anual: benefits paid as monthly aliquots


class HealthScheme(str, Enum):
    ESSALUD = "ESSALUD"
    EPS = "EPS"


ECUADOR_REGIME = "GENERAL"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class SalaryInputs(BaseModel):
    """
    Peru calculation request. Callers clamp invalid numeric text to 0 before
    building this; negative or non-finite amounts are rejected.
    """
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    basic_salary: float = Field(..., ge=0, description="Monthly basic salary (PEN).")
    food_allowance: float = Field(
        default=0, ge=0,
        description="Monthly food allowance (vales). Non-pensionable, taxable, outside gross/net.",
    )
    has_family_allowance: bool = False
    year: int
    health_scheme: HealthScheme = HealthScheme.ESSALUD
    regime: Regime = Regime.STANDARD

    @field_validator("health_scheme", mode="before")
    @classmethod
    def _normalise_scheme(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


class SalaryInputsECU(BaseModel):
    """Ecuador calculation request."""
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    basic_salary: float = Field(..., ge=0, description="Monthly gross salary, SB (USD).")
    year: int


# ---------------------------------------------------------------------------
# Breakdown
# ---------------------------------------------------------------------------

class BreakdownItem(BaseModel):
    """One step of the monthly or annual calculation. Negative amount = deduction."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    step: str
    description: str
    amount: float
    formula: Optional[str] = None


class BracketItem(BaseModel):
    """One taxed bracket of the income-tax itemisation."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    step: str                 # "Tramo 8%"
    description: str          # "S/ 0 - S/ 26,750"
    amount: float
    rate: Optional[str] = None


class SalaryBreakdown(BaseModel):
    """
    Ordered audit trail. Ordering reflects the calculation sequence and is part
    of the output contract — do not sort.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    monthly_calculation: List[BreakdownItem] = []
    annual_calculation: List[BreakdownItem] = []
    fifth_category_details: List[BracketItem] = []


class AlternateAliquots(BaseModel):
    """RIA aliquots, rounded, for audit display."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_sf: float            # pensionable base (basic + family allowance)
    grati_aliquot: float      # base / 6
    bono_aliquot: float       # (base × health rate) / 6, or 0
    cts_aliquot: float        # (base + base/6) / 12
    health_rate_label: str    # "9%" | "6.75%"


# ---------------------------------------------------------------------------
# SalaryResults — engine output
# ---------------------------------------------------------------------------

class SalaryResults(BaseModel):
    """
    Output of calculate_salary() / calculate_salary_ecu().

    Produced fresh per call and never mutated. effective_year is the year whose
    parameters were actually used; parameters_fallback/notice disclose a
    substitution so the caller can show "using parameters from year Y".

    Ecuador reuses the Peru field names: afp_deduction carries the IESS
    withholding, fifth_category_tax the monthly income tax, christmas_bonus /
    july_bonus the annual décimo tercero / cuarto.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    jurisdiction: Literal["PE", "EC"]
    regime: str
    health_scheme: Optional[HealthScheme] = None
    alternate_aliquots: Optional[AlternateAliquots] = None

    effective_year: int
    parameters_fallback: bool = False
    notice: Optional[str] = None

    # --- Inputs echoed back ---
    basic_salary: float
    food_allowance: float = 0
    family_allowance: float = 0

    # --- Monthly (excluding food allowance) ---
    gross_monthly_salary: float
    afp_deduction: float
    fifth_category_tax: float
    net_monthly_salary: float
    net_monthly_salary_year2: Optional[float] = None     # Ecuador: includes reserve fund

    # --- Annual (presentation) ---
    annual_gross_income: float
    christmas_bonus: float = 0
    july_bonus: float = 0
    health_bonus: float = 0
    total_annual_income: float
    annual_food_allowance: float = 0

    annual_afp_deduction: float
    annual_fifth_category_tax: float
    net_annual_salary: float

    # --- Ecuador employer-cost figures ---
    gross_annual_12: Optional[float] = None
    iess_annual_12: Optional[float] = None
    gross_annual_13: Optional[float] = None
    total_annual_cost: Optional[float] = None

    breakdown: SalaryBreakdown


# ---------------------------------------------------------------------------
# Bonus helper contracts
# ---------------------------------------------------------------------------

class BonusNetResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    bonus_gross: float
    bonus_net: float                  # bonus_gross − monthly tax with bonus, never < 0
    monthly_tax_with_bonus: float
    annual_tax_with_bonus: float


class BonusRequest(BaseModel):
    """
    Body of POST /api/peru/bonus. Give either the gross bonus directly or a
    multiple of (basic salary + food allowance).
    """
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    inputs: SalaryInputs
    bonus_gross: Optional[float] = Field(default=None, ge=0)
    multiple: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _exactly_one_amount(self) -> "BonusRequest":
        if (self.bonus_gross is None) == (self.multiple is None):
            raise ValueError("Provide exactly one of bonus_gross or multiple")
        return self


__all__ = [
    "Regime",
    "HealthScheme",
    "ECUADOR_REGIME",
    "SalaryInputs",
    "SalaryInputsECU",
    "BreakdownItem",
    "BracketItem",
    "SalaryBreakdown",
    "AlternateAliquots",
    "SalaryResults",
    "BonusNetResult",
    "BonusRequest",
]
