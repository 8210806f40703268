"""
Peru salary engine — 5th-category income tax, AFP, gratificaciones.
Pure Python, deterministic. Same input → same output.

Two regimes, one calculator each, dispatched on the Regime enum:

  STANDARD (NORMAL)  two semiannual gratificaciones (July, December) paid as
                     discrete events, plus the health-scheme bonus on them.
  ALTERNATE (RIA)    benefits folded into a monthly payment as aliquots
                     (gratificación / extraordinary bonus / CTS).

Food allowance (vales) is part of the annual 5th-category base in BOTH regimes
but never part of the reported gross or net figures.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

from netsalary.engine.brackets import compute_bracket_tax
from netsalary.engine.formatting import format_number, format_rate_precise, round2
from netsalary.engine.schemas import (
    AlternateAliquots,
    BreakdownItem,
    HealthScheme,
    Regime,
    SalaryBreakdown,
    SalaryInputs,
    SalaryResults,
)
from netsalary.parameters.resolver import ParameterTable, Resolution, get_peru_table
from netsalary.parameters.schemas import TaxParameters

logger = logging.getLogger(__name__)

DEFAULT_HEALTH_RATE = 0.09
SEMIANNUAL_BONUSES_PER_YEAR = 2


# ===========================================================================
# INTERNAL HELPERS
# ===========================================================================

def get_health_rate(params: TaxParameters, scheme: HealthScheme | str) -> float:
    """
    Health-scheme bonus rate: per-scheme table → flat HEALTH_BONUS_RATE → 9%.
    Scheme names are stripped and upper-cased before lookup.
    """
    key = str(getattr(scheme, "value", scheme) or HealthScheme.ESSALUD.value).strip().upper()
    if params.health_bonus and params.health_bonus.get(key) is not None:
        return params.health_bonus[key]
    if params.health_bonus_rate is not None:
        return params.health_bonus_rate
    return DEFAULT_HEALTH_RATE


def pensionable_base(params: TaxParameters, basic_salary: float, has_family_allowance: bool) -> Tuple[float, float]:
    """Return (family_allowance, base_sf). base_sf = basic + family allowance."""
    family_allowance = params.family_allowance if has_family_allowance else 0.0
    return family_allowance, basic_salary + family_allowance


def afp_deduction(params: TaxParameters, base: float) -> float:
    """AFP = base × base rate + min(base, cap) × extra rate. Only the extra charge is capped."""
    extra_base = min(base, params.afp_extra_cap)
    return round2(base * params.afp_base_rate + extra_base * params.afp_extra_rate)


def alternate_bonus_equivalents(params: TaxParameters, base: float, health_rate: float) -> Tuple[float, float]:
    """
    RIA tax-base equivalents: (two gratificaciones, health bonus on them).
    The health equivalent applies unless INCLUDE_HEALTH_BONUS_EQUIV is explicitly false.
    """
    bonuses_eq = base * SEMIANNUAL_BONUSES_PER_YEAR
    health_eq = bonuses_eq * health_rate if params.include_health_bonus_equiv is not False else 0.0
    return bonuses_eq, health_eq


def taxable_after_deduction(params: TaxParameters, annual_base: float) -> float:
    """Annual 5th-category base minus the UIT deduction, clamped at zero."""
    return max(0.0, annual_base - params.deduction_amount)


def _afp_formula(params: TaxParameters) -> str:
    return (
        f"{params.afp_base_rate * 100:.2f}% + SISCO {params.afp_extra_rate * 100:.2f}% "
        f"(tope S/ {format_number(params.afp_extra_cap)}) sobre baseSF"
    )


def _deduction_item(step: str, params: TaxParameters) -> BreakdownItem:
    return BreakdownItem(
        step=step,
        description=f"Deducción {format_number(params.deduction_units)} UIT",
        amount=-round2(params.deduction_amount),
        formula=f"{format_number(params.deduction_units)} × S/ {format_number(params.uit)}",
    )


# ===========================================================================
# STANDARD REGIME
# ===========================================================================

def _calculate_standard(inputs: SalaryInputs, resolution: Resolution) -> SalaryResults:
    """
    Standard regime.

    Computation sequence:
      1. base_sf = basic + family allowance;   gross monthly = base_sf
      2. AFP on base_sf (extra charge capped)
      3. July + December gratificaciones = base_sf each
      4. health bonus = both gratificaciones × health rate
      5. annual base = (base_sf + vales) × 12 + gratificaciones + health bonus
      6. taxable = max(0, annual base − DEDUCTION_UIT × UIT)
      7. annual tax via brackets; monthly tax = round2(annual / 12)
      8. net monthly = gross − AFP − monthly tax
    """
    params: TaxParameters = resolution.params
    family_allowance, base_sf = pensionable_base(params, inputs.basic_salary, inputs.has_family_allowance)
    food = inputs.food_allowance

    gross_monthly = base_sf
    annual_food_allowance = food * 12
    afp = afp_deduction(params, base_sf)

    july_bonus = base_sf
    christmas_bonus = base_sf
    total_bonuses = july_bonus + christmas_bonus

    scheme = inputs.health_scheme
    health_rate = get_health_rate(params, scheme)
    health_bonus = total_bonuses * health_rate

    # Vales stay in the 5th-category base
    annual_base = (base_sf + food) * 12 + total_bonuses + health_bonus
    taxable = taxable_after_deduction(params, annual_base)
    tax = compute_bracket_tax(taxable, params.fifth_category_brackets, params.uit)

    # One annual figure feeds both the monthly and the annual presentation
    annual_tax = tax.raw_total
    monthly_tax = round2(annual_tax / 12)
    net_monthly = round2(gross_monthly - afp - monthly_tax)

    annual_gross = gross_monthly * 12
    annual_afp = afp * 12
    total_annual_income = annual_gross + total_bonuses + health_bonus
    # Gratificaciones and health bonus are reported, not netted into the annual figure
    net_annual = round2(annual_gross - annual_afp - annual_tax)

    monthly_steps = [BreakdownItem(step="1", description="Sueldo básico", amount=round2(inputs.basic_salary))]
    if inputs.has_family_allowance:
        monthly_steps.append(
            BreakdownItem(step="2", description="Asignación familiar", amount=round2(family_allowance))
        )
    monthly_steps += [
        BreakdownItem(step="3", description="Sueldo bruto mensual (sin vale)",
                      amount=round2(gross_monthly), formula="Básico + Familiar"),
        BreakdownItem(step="4", description="Vale de alimentos (no remunerativo, fuera de neto)",
                      amount=round2(food)),
        BreakdownItem(step="5", description="Descuento AFP", amount=-afp, formula=_afp_formula(params)),
        BreakdownItem(step="6", description="Impuesto 5ta categoría (mensual)",
                      amount=-monthly_tax, formula="Impuesto anual ÷ 12"),
        BreakdownItem(step="7", description="Sueldo neto mensual (sin vale)", amount=net_monthly),
    ]

    annual_steps = [
        BreakdownItem(step="1", description="(Bruto mensual sin vale × 12)", amount=round2(annual_gross)),
        BreakdownItem(step="2", description="Gratificación julio", amount=round2(july_bonus)),
        BreakdownItem(step="3", description="Gratificación diciembre", amount=round2(christmas_bonus)),
        BreakdownItem(
            step="4",
            description=f"Bono salud ({scheme.value})",
            amount=round2(health_bonus),
            formula=f"({format_number(total_bonuses)}) × {format_rate_precise(health_rate)}",
        ),
        BreakdownItem(step="5", description="Vale de alimentos (anual)", amount=round2(annual_food_allowance)),
        BreakdownItem(step="6", description="Total base anual para 5ta", amount=round2(annual_base)),
        _deduction_item("7", params),
        BreakdownItem(step="8", description="Base imponible (neta de 7 UIT)", amount=round2(taxable)),
        BreakdownItem(step="9", description="Impuesto 5ta categoría anual",
                      amount=tax.total_tax, formula="Tramos progresivos en UIT"),
    ]

    return SalaryResults(
        jurisdiction="PE",
        regime=Regime.STANDARD.value,
        health_scheme=scheme,
        alternate_aliquots=None,
        effective_year=resolution.effective_year,
        parameters_fallback=resolution.fallback,
        notice=resolution.notice(inputs.year),
        basic_salary=inputs.basic_salary,
        food_allowance=food,
        family_allowance=family_allowance,
        gross_monthly_salary=round2(gross_monthly),
        afp_deduction=afp,
        fifth_category_tax=monthly_tax,
        net_monthly_salary=net_monthly,
        annual_gross_income=round2(annual_gross),
        christmas_bonus=round2(christmas_bonus),
        july_bonus=round2(july_bonus),
        health_bonus=round2(health_bonus),
        total_annual_income=round2(total_annual_income),
        annual_food_allowance=round2(annual_food_allowance),
        annual_afp_deduction=round2(annual_afp),
        annual_fifth_category_tax=tax.total_tax,
        net_annual_salary=net_annual,
        breakdown=SalaryBreakdown(
            monthly_calculation=monthly_steps,
            annual_calculation=annual_steps,
            fifth_category_details=tax.itemization,
        ),
    )


# ===========================================================================
# ALTERNATE (RIA) REGIME
# ===========================================================================

def _calculate_alternate(inputs: SalaryInputs, resolution: Resolution) -> SalaryResults:
    """
    RIA regime.

    Monthly gross is either base + the three aliquots (BUILD_FROM_COMPONENTS)
    or base × (12 + GRATI_ANNUAL_MONTHS + CTS_ANNUAL_MONTHS) / 12.
    AFP is still charged on base_sf, not on the grossed-up figure.
    The tax base uses full-year equivalents of the gratificaciones and health
    bonus; no discrete bonus lines appear in the result.
    """
    params: TaxParameters = resolution.params
    family_allowance, base_sf = pensionable_base(params, inputs.basic_salary, inputs.has_family_allowance)
    food = inputs.food_allowance
    health_rate = get_health_rate(params, inputs.health_scheme)

    aliquot_grati = base_sf / 6
    aliquot_bono = (base_sf * health_rate) / 6 if params.include_health_bonus_equiv else 0.0
    aliquot_cts = (base_sf + base_sf / 6) / 12

    if params.build_from_components:
        gross_monthly = base_sf + aliquot_grati + aliquot_bono + aliquot_cts
    else:
        annual_months = 12 + (params.grati_annual_months or 0) + (params.cts_annual_months or 0)
        gross_monthly = base_sf * annual_months / 12

    annual_food_allowance = food * 12
    afp = afp_deduction(params, base_sf)

    bonuses_eq, health_eq = alternate_bonus_equivalents(params, base_sf, health_rate)
    annual_base = (base_sf + food) * 12 + bonuses_eq + health_eq
    taxable = taxable_after_deduction(params, annual_base)
    tax = compute_bracket_tax(taxable, params.fifth_category_brackets, params.uit)

    annual_tax = tax.raw_total
    monthly_tax = round2(annual_tax / 12)
    net_monthly = round2(gross_monthly - afp - monthly_tax)

    annual_gross = gross_monthly * 12
    annual_afp = afp * 12
    total_annual_income = annual_gross      # only the RIA payment is presented
    net_annual = round2(total_annual_income - annual_afp - annual_tax)

    monthly_steps = [
        BreakdownItem(step="1", description="Base pensionable (baseSF)", amount=round2(base_sf)),
        BreakdownItem(step="2", description="Alícuota Gratificación (baseSF/6)",
                      amount=round2(aliquot_grati), formula="baseSF / 6"),
        BreakdownItem(step="3", description=f"Alícuota Bono Extraord. ({format_rate_precise(health_rate)})",
                      amount=round2(aliquot_bono), formula="(baseSF × tasa) / 6"),
        BreakdownItem(step="4", description="Alícuota CTS ((baseSF + baseSF/6)/12)",
                      amount=round2(aliquot_cts), formula="(baseSF + baseSF/6) / 12"),
        BreakdownItem(step="5", description="Cuota RIA pensionable (bruto sin vale)", amount=round2(gross_monthly)),
        BreakdownItem(step="6", description="Vale de alimentos (no remunerativo, fuera de neto)",
                      amount=round2(food)),
        BreakdownItem(step="7", description="Descuento AFP", amount=-afp, formula=_afp_formula(params)),
        BreakdownItem(step="8", description="Impuesto 5ta (mensual)",
                      amount=-monthly_tax, formula="Impuesto anual ÷ 12"),
        BreakdownItem(step="9", description="Sueldo neto mensual (sin vale)", amount=net_monthly),
    ]

    annual_steps = [
        BreakdownItem(step="1", description="(Bruto mensual sin vale × 12)", amount=round2(annual_gross)),
        BreakdownItem(step="2", description="Vale de alimentos (anual)", amount=round2(annual_food_allowance)),
        BreakdownItem(step="3", description="Base anual para 5ta", amount=round2(annual_base)),
        _deduction_item("4", params),
        BreakdownItem(step="5", description="Base imponible (neta de 7 UIT)", amount=round2(taxable)),
        BreakdownItem(step="6", description="Impuesto 5ta anual", amount=tax.total_tax),
    ]

    aliquots = AlternateAliquots(
        base_sf=round2(base_sf),
        grati_aliquot=round2(aliquot_grati),
        bono_aliquot=round2(aliquot_bono),
        cts_aliquot=round2(aliquot_cts),
        health_rate_label=format_rate_precise(health_rate),
    )

    return SalaryResults(
        jurisdiction="PE",
        regime=Regime.ALTERNATE.value,
        health_scheme=inputs.health_scheme,
        alternate_aliquots=aliquots,
        effective_year=resolution.effective_year,
        parameters_fallback=resolution.fallback,
        notice=resolution.notice(inputs.year),
        basic_salary=inputs.basic_salary,
        food_allowance=food,
        family_allowance=family_allowance,
        gross_monthly_salary=round2(gross_monthly),
        afp_deduction=afp,
        fifth_category_tax=monthly_tax,
        net_monthly_salary=net_monthly,
        annual_gross_income=round2(annual_gross),
        christmas_bonus=0,
        july_bonus=0,
        health_bonus=0,
        total_annual_income=round2(total_annual_income),
        annual_food_allowance=round2(annual_food_allowance),
        annual_afp_deduction=round2(annual_afp),
        annual_fifth_category_tax=tax.total_tax,
        net_annual_salary=net_annual,
        breakdown=SalaryBreakdown(
            monthly_calculation=monthly_steps,
            annual_calculation=annual_steps,
            fifth_category_details=tax.itemization,
        ),
    )


# ===========================================================================
# PUBLIC API
# ===========================================================================

_REGIME_CALCULATORS: Dict[Regime, Callable[[SalaryInputs, Resolution], SalaryResults]] = {
    Regime.STANDARD: _calculate_standard,
    Regime.ALTERNATE: _calculate_alternate,
}


def calculate_salary(
    inputs: SalaryInputs,
    table: Optional[ParameterTable[TaxParameters]] = None,
) -> SalaryResults:
    """
    Peru net-salary calculation for inputs.year / inputs.regime.

    table defaults to the process-wide Peru table. Falls back to the latest
    populated year when inputs.year has no data (flagged on the result).

    Raises:
        ConfigurationError: the regime has no parameters at all.
    """
    table = table or get_peru_table()
    resolution = table.resolve(inputs.year, inputs.regime)
    logger.debug(
        "Peru %s calculation for year %s using %s parameters",
        inputs.regime.value, inputs.year, resolution.effective_year,
    )
    return _REGIME_CALCULATORS[inputs.regime](inputs, resolution)
