"""
Parameter table and resolver tests.

Groups:
  1. Exact lookup and year fallback (missing year, empty year object)
  2. ConfigurationError on missing regimes / malformed tables
  3. Shipped tables under parameters/data/
"""
from __future__ import annotations

import json
import logging

import pytest

from netsalary.engine.schemas import Regime
from netsalary.exceptions import ConfigurationError
from netsalary.parameters.resolver import ParameterTable, get_ecuador_table, get_peru_table
from netsalary.parameters.schemas import TaxParameters


# ===========================================================================
# TEST GROUP 1: Lookup and fallback
# ===========================================================================

def test_exact_year_is_returned_without_fallback(peru_table) -> None:
    resolution = peru_table.resolve(2025, Regime.STANDARD)
    assert resolution.effective_year == 2025
    assert resolution.fallback is False
    assert resolution.params.uit == 5350
    assert resolution.notice(2025) is None


def test_missing_year_falls_back_to_latest(peru_table, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        resolution = peru_table.resolve(2099, Regime.STANDARD)

    assert resolution.effective_year == 2025
    assert resolution.fallback is True
    assert "2099" in caplog.text and "2025" in caplog.text
    assert resolution.notice(2099) == "Usando parámetros de 2025 (no hay datos para 2099)"


def test_empty_year_object_means_no_data(peru_table) -> None:
    """2026 exists in the raw table as {} — it must fall back, not fail."""
    resolution = peru_table.resolve(2026, "NORMAL")
    assert resolution.effective_year == 2025
    assert resolution.fallback is True
    assert peru_table.available_years("NORMAL") == [2025]


def test_earlier_year_also_falls_back_to_latest(peru_raw) -> None:
    peru_raw["NORMAL"]["2023"] = dict(peru_raw["NORMAL"]["2025"], UIT=4950)
    table = ParameterTable.from_mapping("peru", peru_raw, TaxParameters)

    assert table.resolve(2023, "NORMAL").params.uit == 4950
    resolution = table.resolve(2024, "NORMAL")
    assert resolution.effective_year == 2025
    assert table.available_years(Regime.STANDARD) == [2023, 2025]


def test_fallback_warning_goes_to_injected_logger(peru_raw, caplog) -> None:
    injected = logging.getLogger("tests.observability")
    table = ParameterTable.from_mapping("peru", peru_raw, TaxParameters, log=injected)

    with caplog.at_level(logging.WARNING, logger="tests.observability"):
        table.resolve(2030, Regime.ALTERNATE)

    assert [r.name for r in caplog.records] == ["tests.observability"]
    assert caplog.records[0].levelno == logging.WARNING


# ===========================================================================
# TEST GROUP 2: Configuration errors
# ===========================================================================

def test_regime_without_populated_years_raises(peru_raw) -> None:
    peru_raw["RIA"] = {"2024": {}, "2025": {}}
    table = ParameterTable.from_mapping("peru", peru_raw, TaxParameters)

    with pytest.raises(ConfigurationError, match="no parameters loaded for regime RIA"):
        table.resolve(2025, Regime.ALTERNATE)


def test_unknown_regime_raises(peru_table) -> None:
    with pytest.raises(ConfigurationError, match="regime MYPE"):
        peru_table.resolve(2025, "MYPE")


@pytest.mark.parametrize("brackets, reason", [
    (
        [{"fromUIT": 0, "toUIT": 5, "rate": 0.08}, {"fromUIT": 6, "toUIT": None, "rate": 0.14}],
        "gap between brackets",
    ),
    (
        [{"fromUIT": 0, "toUIT": 5, "rate": 0.08}, {"fromUIT": 5, "toUIT": 20, "rate": 0.14}],
        "last bracket bounded",
    ),
    (
        [{"fromUIT": 0, "toUIT": None, "rate": 0.08}, {"fromUIT": 5, "toUIT": None, "rate": 0.14}],
        "open bracket before the last",
    ),
    (
        [{"fromUIT": 0, "toUIT": None, "rate": 1.5}],
        "rate above 100%",
    ),
    (
        [{"fromUIT": 1, "toUIT": None, "rate": 0.08}],
        "does not start at zero",
    ),
    (
        [],
        "empty bracket list",
    ),
])
def test_malformed_brackets_fail_at_load(peru_raw, brackets, reason) -> None:
    peru_raw["NORMAL"]["2025"]["FIFTH_CATEGORY_BRACKETS_UIT"] = brackets
    with pytest.raises(ConfigurationError):
        ParameterTable.from_mapping("peru", peru_raw, TaxParameters)


def test_negative_rate_fails_at_load(peru_raw) -> None:
    peru_raw["NORMAL"]["2025"]["AFP_BASE_RATE"] = -0.1
    with pytest.raises(ConfigurationError, match="regime NORMAL, year 2025"):
        ParameterTable.from_mapping("peru", peru_raw, TaxParameters)


def test_health_bonus_out_of_range_fails_at_load(peru_raw) -> None:
    peru_raw["NORMAL"]["2025"]["HEALTH_BONUS"] = {"ESSALUD": 9}
    with pytest.raises(ConfigurationError):
        ParameterTable.from_mapping("peru", peru_raw, TaxParameters)


def test_unknown_key_fails_at_load(peru_raw) -> None:
    peru_raw["NORMAL"]["2025"]["UIT_TYPO"] = 1
    with pytest.raises(ConfigurationError):
        ParameterTable.from_mapping("peru", peru_raw, TaxParameters)


def test_non_integer_year_key_fails_at_load(peru_raw) -> None:
    peru_raw["NORMAL"]["latest"] = peru_raw["NORMAL"]["2025"]
    with pytest.raises(ConfigurationError, match="non-integer year"):
        ParameterTable.from_mapping("peru", peru_raw, TaxParameters)


def test_unreadable_json_raises(tmp_path) -> None:
    path = tmp_path / "peru.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Cannot read parameter table"):
        ParameterTable.from_json(path, TaxParameters)


def test_from_json_round_trip(tmp_path, peru_raw) -> None:
    path = tmp_path / "peru.json"
    path.write_text(json.dumps(peru_raw), encoding="utf-8")
    table = ParameterTable.from_json(path, TaxParameters)
    assert table.name == "peru"
    assert table.regimes() == ["NORMAL", "RIA"]


def test_health_bonus_keys_are_normalised(peru_raw) -> None:
    peru_raw["NORMAL"]["2025"]["HEALTH_BONUS"] = {" eps ": 0.0675, "EsSalud": 0.09}
    table = ParameterTable.from_mapping("peru", peru_raw, TaxParameters)
    assert table.resolve(2025, "NORMAL").params.health_bonus == {"EPS": 0.0675, "ESSALUD": 0.09}


# ===========================================================================
# TEST GROUP 3: Shipped tables
# ===========================================================================

def test_shipped_peru_table_years() -> None:
    table = get_peru_table()
    assert table.available_years(Regime.STANDARD) == [2023, 2024, 2025, 2026]
    assert table.available_years(Regime.ALTERNATE) == [2023, 2024, 2025, 2026]


def test_shipped_peru_table_falls_back_to_2026() -> None:
    """Requesting 2099 when only 2023–2026 are populated returns 2026."""
    resolution = get_peru_table().resolve(2099, Regime.STANDARD)
    assert resolution.effective_year == 2026
    assert resolution.fallback is True
    assert resolution.params.uit == 5500


def test_shipped_ecuador_table_loads() -> None:
    table = get_ecuador_table()
    assert table.available_years("GENERAL") == [2024, 2025]
    assert table.resolve(2025, "GENERAL").params.sbu == 470
