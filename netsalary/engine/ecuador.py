"""
Ecuador salary engine — IESS, décimos, fondo de reserva, impuesto a la renta.
Pure Python, deterministic. Single regime, no branching.

Reserve fund (fondo de reserva) may be withheld by the employer during the
first year of employment, so it is excluded from year-1 net pay and added
from year 2 on.
"""
from __future__ import annotations

import logging
from typing import Optional

from netsalary.engine.brackets import compute_fixed_marginal_tax
from netsalary.engine.formatting import format_rate_precise, round2
from netsalary.engine.schemas import (
    ECUADOR_REGIME,
    BreakdownItem,
    SalaryBreakdown,
    SalaryInputsECU,
    SalaryResults,
)
from netsalary.parameters.resolver import ParameterTable, get_ecuador_table
from netsalary.parameters.schemas import EcuadorParameters

logger = logging.getLogger(__name__)


def calculate_salary_ecu(
    inputs: SalaryInputsECU,
    table: Optional[ParameterTable[EcuadorParameters]] = None,
) -> SalaryResults:
    """
    Ecuador net-salary calculation.

    Computation sequence:
      1. décimo tercero = SB / 12;  décimo cuarto = SBU / 12
      2. reserve fund   = SB × rate (year 2 onwards)
      3. IESS personal  = SB × employee rate
      4. annual base    = SB × 12 − IESS × 12   (décimos do not enter the base)
      5. tax = fixed + marginal on the containing bracket, minus the personal
         expenses rebate, clamped at 0; monthly tax = annual / 12
      6. net year 1 = SB + décimos − IESS − monthly tax; net year 2 adds the fund

    Raises:
        ConfigurationError: no Ecuador parameters are loaded.
    """
    table = table or get_ecuador_table()
    resolution = table.resolve(inputs.year, ECUADOR_REGIME)
    params: EcuadorParameters = resolution.params
    logger.debug(
        "Ecuador calculation for year %s using %s parameters",
        inputs.year, resolution.effective_year,
    )

    sb = inputs.basic_salary

    # --- Income ---
    decimo_third_m = sb / 12
    decimo_fourth_m = params.sbu / 12
    reserve_fund_m = sb * params.reserve_fund_rate
    reserve_fund_annual = reserve_fund_m * 12

    # --- Withholding ---
    iess_employee_m = sb * params.iess_employee_rate

    # --- Income tax ---
    annual_tax_base = sb * 12 - iess_employee_m * 12
    tax = compute_fixed_marginal_tax(annual_tax_base, params.income_tax_brackets)
    annual_tax = max(0.0, tax.total_tax - params.personal_expenses_deduction)
    monthly_tax = annual_tax / 12

    # --- Worker net ---
    net_monthly = sb + decimo_third_m + decimo_fourth_m - iess_employee_m - monthly_tax
    net_monthly_year2 = net_monthly + reserve_fund_m
    net_annual = net_monthly * 12 + reserve_fund_annual

    # --- Employer cost ---
    gross_annual_13 = sb * 13
    total_annual_cost = gross_annual_13 + decimo_fourth_m * 12 + reserve_fund_annual

    breakdown = SalaryBreakdown(
        monthly_calculation=[
            BreakdownItem(step="1", description="Salario base", amount=round2(sb)),
            BreakdownItem(step="2", description="Décimo tercero (mensualizado)",
                          amount=round2(decimo_third_m), formula="SB / 12"),
            BreakdownItem(step="3", description="Décimo cuarto (mensualizado)",
                          amount=round2(decimo_fourth_m), formula="SBU / 12"),
            BreakdownItem(step="4", description=f"IESS personal ({format_rate_precise(params.iess_employee_rate)})",
                          amount=-round2(iess_employee_m)),
            BreakdownItem(step="5", description="Impuesto a la Renta (mensual)", amount=-round2(monthly_tax)),
            BreakdownItem(step="6", description="Neto mensual (Año 1)", amount=round2(net_monthly)),
            BreakdownItem(step="7", description="Fondo de reserva (desde Año 2)", amount=round2(reserve_fund_m)),
        ],
        annual_calculation=[
            BreakdownItem(step="1", description="Sueldo bruto × 13", amount=round2(gross_annual_13)),
            BreakdownItem(step="2", description="Décimo cuarto anual", amount=round2(decimo_fourth_m * 12)),
            BreakdownItem(step="3", description="Fondo de reserva anual", amount=round2(reserve_fund_annual)),
            BreakdownItem(step="4", description="Costo anual total empresa", amount=round2(total_annual_cost)),
            BreakdownItem(step="5", description="Neto anual equivalente", amount=round2(net_annual)),
        ],
        fifth_category_details=tax.itemization,
    )

    return SalaryResults(
        jurisdiction="EC",
        regime=ECUADOR_REGIME,
        effective_year=resolution.effective_year,
        parameters_fallback=resolution.fallback,
        notice=resolution.notice(inputs.year),
        basic_salary=sb,
        gross_monthly_salary=round2(sb),
        afp_deduction=round2(iess_employee_m),
        fifth_category_tax=round2(monthly_tax),
        net_monthly_salary=round2(net_monthly),
        net_monthly_salary_year2=round2(net_monthly_year2),
        annual_gross_income=round2(sb * 12),
        christmas_bonus=round2(decimo_third_m * 12),
        july_bonus=round2(decimo_fourth_m * 12),
        health_bonus=0,
        total_annual_income=round2(sb * 12 + decimo_third_m * 12 + decimo_fourth_m * 12 + reserve_fund_annual),
        annual_afp_deduction=round2(iess_employee_m * 12),
        annual_fifth_category_tax=round2(annual_tax),
        net_annual_salary=round2(net_annual),
        gross_annual_12=round2(sb * 12),
        iess_annual_12=round2(iess_employee_m * 12),
        gross_annual_13=round2(gross_annual_13),
        total_annual_cost=round2(total_annual_cost),
        breakdown=breakdown,
    )
