"""
Bonus helper tests — 5th-category increment only, AFP never charged.
Baseline is Scenario A (basic 3,000, ESSALUD, 2025 fixture table).
"""
from __future__ import annotations

import pytest

from netsalary.engine.bonus import compute_bonus_gross, compute_bonus_net
from netsalary.engine.peru import calculate_salary
from netsalary.engine.schemas import SalaryInputs


@pytest.fixture
def scenario_a_inputs() -> SalaryInputs:
    return SalaryInputs(basic_salary=3000, year=2025)


@pytest.mark.parametrize("basic, food, multiple, expected", [
    (3000, 200, 1.5, 4800.0),
    (3000, 0, 2, 6000.0),
    (3000, 200, 0, 0.0),
    (1234.56, 0, 1 / 3, 411.52),
])
def test_compute_bonus_gross(basic, food, multiple, expected) -> None:
    assert compute_bonus_gross(basic, food, multiple) == pytest.approx(expected, abs=0.001)


def test_scenario_e_standard_regime(peru_table, scenario_a_inputs) -> None:
    """
    Base without bonus 42,540 + 6,000 = 48,540 − 37,450 = 11,090 × 8% = 887.20
    monthly 73.93 → bonus net 6,000 − 73.93 = 5,926.07
    """
    results = calculate_salary(scenario_a_inputs, peru_table)
    bonus = compute_bonus_net(scenario_a_inputs, results, 6000, peru_table)

    assert bonus.bonus_gross == 6000
    assert bonus.annual_tax_with_bonus == pytest.approx(887.20, abs=0.01)
    assert bonus.monthly_tax_with_bonus == pytest.approx(73.93, abs=0.01)
    assert bonus.bonus_net == pytest.approx(5926.07, abs=0.01)


def test_alternate_regime_uses_equivalents(peru_table) -> None:
    """RIA rebuilds the same 42,540 base from the gratificación equivalents."""
    inputs = SalaryInputs(basic_salary=3000, year=2025, regime="RIA")
    results = calculate_salary(inputs, peru_table)
    bonus = compute_bonus_net(inputs, results, 6000, peru_table)
    assert bonus.bonus_net == pytest.approx(5926.07, abs=0.01)


def test_small_bonus_clamped_at_zero(peru_table, scenario_a_inputs) -> None:
    """A 10.00 bonus: monthly tax with bonus is 34.00, so the net would be negative."""
    results = calculate_salary(scenario_a_inputs, peru_table)
    bonus = compute_bonus_net(scenario_a_inputs, results, 10, peru_table)
    assert bonus.monthly_tax_with_bonus == pytest.approx(34.00, abs=0.01)
    assert bonus.bonus_net == 0


def test_zero_bonus(peru_table, scenario_a_inputs) -> None:
    results = calculate_salary(scenario_a_inputs, peru_table)
    bonus = compute_bonus_net(scenario_a_inputs, results, 0, peru_table)
    assert bonus.bonus_net == 0
    assert bonus.annual_tax_with_bonus == pytest.approx(results.annual_fifth_category_tax, abs=0.01)


def test_large_bonus_reaches_top_bracket(peru_table, scenario_a_inputs) -> None:
    """
    1,000,000 bonus: taxable 1,005,090
      2,140 + 11,235 + 13,642.5 + 10,700 + 30% × 764,340 (229,302) = 267,019.50
    """
    results = calculate_salary(scenario_a_inputs, peru_table)
    bonus = compute_bonus_net(scenario_a_inputs, results, 1_000_000, peru_table)
    assert bonus.annual_tax_with_bonus == pytest.approx(267_019.50, abs=0.01)
    assert bonus.bonus_net > 0
    assert bonus.bonus_net == pytest.approx(1_000_000 - 22_251.625, abs=0.01)


def test_bonus_uses_effective_year_of_results(peru_table) -> None:
    """A result computed with fallback parameters nets the bonus against the same year."""
    inputs = SalaryInputs(basic_salary=3000, year=2099)
    results = calculate_salary(inputs, peru_table)
    assert results.effective_year == 2025
    bonus = compute_bonus_net(inputs, results, 6000, peru_table)
    assert bonus.bonus_net == pytest.approx(5926.07, abs=0.01)


def test_results_snapshot_not_mutated(peru_table, scenario_a_inputs) -> None:
    results = calculate_salary(scenario_a_inputs, peru_table)
    before = results.model_dump()
    compute_bonus_net(scenario_a_inputs, results, 6000, peru_table)
    assert results.model_dump() == before
