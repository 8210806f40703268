"""
Bonus helpers for the Peru engine.

compute_bonus_gross()  (basic + vales) × N months — UI "N sueldos" scenarios
compute_bonus_net()    bonus net of the 5th-category tax increment only

AFP is never charged on a bonus. The prior SalaryResults is treated as a
read-only snapshot: nothing is recomputed or mutated on it.
"""
from __future__ import annotations

from typing import Optional

from netsalary.engine.brackets import compute_bracket_tax
from netsalary.engine.formatting import round2
from netsalary.engine.peru import (
    alternate_bonus_equivalents,
    get_health_rate,
    taxable_after_deduction,
)
from netsalary.engine.schemas import BonusNetResult, Regime, SalaryInputs, SalaryResults
from netsalary.parameters.resolver import ParameterTable, get_peru_table
from netsalary.parameters.schemas import TaxParameters


def compute_bonus_gross(basic_salary: float, food_allowance: float, multiple: float) -> float:
    """Bono bruto = (sueldo básico + vales) × múltiplo."""
    return round2(((basic_salary or 0.0) + (food_allowance or 0.0)) * (multiple or 0.0))


def _annual_base_without_bonus(inputs: SalaryInputs, results: SalaryResults, params: TaxParameters) -> float:
    """Rebuild the annual 5th-category base exactly as the originating regime did."""
    base_sf = results.basic_salary + results.family_allowance
    if inputs.regime is Regime.STANDARD:
        return (
            (base_sf + results.food_allowance) * 12
            + results.july_bonus
            + results.christmas_bonus
            + results.health_bonus
        )
    health_rate = get_health_rate(params, inputs.health_scheme)
    bonuses_eq, health_eq = alternate_bonus_equivalents(params, base_sf, health_rate)
    return (base_sf + results.food_allowance) * 12 + bonuses_eq + health_eq


def compute_bonus_net(
    inputs: SalaryInputs,
    results: SalaryResults,
    bonus_gross: float,
    table: Optional[ParameterTable[TaxParameters]] = None,
) -> BonusNetResult:
    """
    Net a gross bonus against the 5th-category tax only.

    The bonus is added to the annual base, the UIT deduction and brackets are
    reapplied, and the new annual tax is mensualised. bonus_net is
    bonus_gross − monthly tax with bonus, clamped at 0.

    Parameters are resolved for results.effective_year so the bonus uses the
    same table entry as the original calculation.
    """
    table = table or get_peru_table()
    params: TaxParameters = table.resolve(results.effective_year, inputs.regime).params
    bonus_gross = bonus_gross or 0.0

    base_with_bonus = _annual_base_without_bonus(inputs, results, params) + bonus_gross
    taxable = taxable_after_deduction(params, base_with_bonus)
    tax = compute_bracket_tax(taxable, params.fifth_category_brackets, params.uit)

    monthly_tax_with_bonus = round2(tax.raw_total / 12)
    bonus_net = round2(max(0.0, bonus_gross - monthly_tax_with_bonus))

    return BonusNetResult(
        bonus_gross=round2(bonus_gross),
        bonus_net=bonus_net,
        monthly_tax_with_bonus=monthly_tax_with_bonus,
        annual_tax_with_bonus=tax.total_tax,
    )
