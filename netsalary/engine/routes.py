"""
Salary engine HTTP routes — POST /api/peru/calculate,
                             POST /api/peru/bonus,
                             POST /api/ecuador/calculate,
                             GET  /api/parameters/{country}/{regime}

Thin JSON surface over the pure engines. Bodies are validated by the Pydantic
contracts in schemas.py; the engines do no further sanitisation.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from netsalary.engine.bonus import compute_bonus_gross, compute_bonus_net
from netsalary.engine.ecuador import calculate_salary_ecu
from netsalary.engine.peru import calculate_salary
from netsalary.engine.schemas import (
    BonusNetResult,
    BonusRequest,
    SalaryInputs,
    SalaryInputsECU,
    SalaryResults,
)
from netsalary.parameters.resolver import get_ecuador_table, get_peru_table

router = APIRouter(prefix="/api", tags=["salary_engine"])
logger = logging.getLogger(__name__)

_TABLES = {
    "peru": get_peru_table,
    "ecuador": get_ecuador_table,
}


@router.post("/peru/calculate", response_model=SalaryResults)
async def calculate_peru(inputs: SalaryInputs) -> SalaryResults:
    """Peru net salary for one submission (STANDARD or RIA regime)."""
    results = calculate_salary(inputs)
    if results.parameters_fallback:
        logger.info("Peru request for %s served with %s parameters", inputs.year, results.effective_year)
    return results


@router.post("/peru/bonus", response_model=BonusNetResult)
async def calculate_peru_bonus(payload: BonusRequest) -> BonusNetResult:
    """
    Bonus net of 5th-category tax.

    Recomputes the base salary result for payload.inputs, then nets either the
    given bonus_gross or (basic + vales) × multiple.
    """
    inputs = payload.inputs
    results = calculate_salary(inputs)
    if payload.bonus_gross is not None:
        bonus_gross = payload.bonus_gross
    else:
        bonus_gross = compute_bonus_gross(inputs.basic_salary, inputs.food_allowance, payload.multiple)
    return compute_bonus_net(inputs, results, bonus_gross)


@router.post("/ecuador/calculate", response_model=SalaryResults)
async def calculate_ecuador(inputs: SalaryInputsECU) -> SalaryResults:
    """Ecuador net salary for one submission."""
    return calculate_salary_ecu(inputs)


@router.get("/parameters/{country}/{regime}")
async def list_parameter_years(country: str, regime: str) -> dict:
    """Populated parameter years for a country/regime (drives the year selector)."""
    loader = _TABLES.get(country.lower())
    if loader is None:
        raise HTTPException(status_code=404, detail=f"Unknown country: {country}")
    table = loader()
    regime_key = regime.strip().upper()
    if regime_key not in table.regimes():
        raise HTTPException(status_code=404, detail=f"Unknown regime for {country}: {regime}")
    return {
        "country": country.lower(),
        "regime": regime_key,
        "years": table.available_years(regime_key),
    }
