"""
Test configuration for netsalary tests.

sys.path is configured so 'from netsalary...' resolves whether or not the
package is installed, and pytest can be run from the project root or from
netsalary/tests/.

Fixture tables are built in memory (not read from parameters/data/) so the
expected values in the engine tests do not move when the shipped tables are
updated for a new year.
"""
import copy
import sys
from pathlib import Path

import pytest

_project_root = Path(__file__).parent.parent.parent     # .../package/
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from netsalary.parameters.resolver import ParameterTable  # noqa: E402
from netsalary.parameters.schemas import EcuadorParameters, TaxParameters  # noqa: E402

# ---------------------------------------------------------------------------
# Peru — 2025 constants (UIT 5,350; 7 UIT deduction = 37,450)
# ---------------------------------------------------------------------------
PERU_BRACKETS = [
    {"fromUIT": 0, "toUIT": 5, "rate": 0.08},      # 0 – 26,750
    {"fromUIT": 5, "toUIT": 20, "rate": 0.14},     # 26,750 – 107,000
    {"fromUIT": 20, "toUIT": 35, "rate": 0.17},    # 107,000 – 187,250
    {"fromUIT": 35, "toUIT": 45, "rate": 0.20},    # 187,250 – 240,750
    {"fromUIT": 45, "toUIT": None, "rate": 0.30},  # > 240,750
]

PERU_2025 = {
    "UIT": 5350,
    "FAMILY_ALLOWANCE": 113,
    "HEALTH_BONUS": {"ESSALUD": 0.09, "EPS": 0.0675},
    "AFP_BASE_RATE": 0.1147,
    "AFP_EXTRA_RATE": 0.0137,
    "AFP_EXTRA_CAP": 12234.34,
    "FIFTH_CATEGORY_BRACKETS_UIT": PERU_BRACKETS,
    "DEDUCTION_UIT": 7,
}

RIA_2025 = dict(
    PERU_2025,
    BUILD_FROM_COMPONENTS=True,
    INCLUDE_HEALTH_BONUS_EQUIV=True,
)

# ---------------------------------------------------------------------------
# Ecuador — 2025 constants (SBU 470)
# ---------------------------------------------------------------------------
ECUADOR_2025 = {
    "SBU": 470,
    "IESS_EMPLOYEE_RATE": 0.0945,
    "RESERVE_FUND_RATE": 0.0833,
    "PERSONAL_EXPENSES_DEDUCTION": 1005.44,
    "INCOME_TAX_BRACKETS": [
        {"from": 0, "to": 12081, "fixed": 0, "rate": 0.0},
        {"from": 12081, "to": 15387, "fixed": 0, "rate": 0.05},
        {"from": 15387, "to": 19978, "fixed": 165, "rate": 0.10},
        {"from": 19978, "to": 26422, "fixed": 624, "rate": 0.12},
        {"from": 26422, "to": 34770, "fixed": 1398, "rate": 0.15},
        {"from": 34770, "to": 46089, "fixed": 2650, "rate": 0.20},
        {"from": 46089, "to": 61359, "fixed": 4914, "rate": 0.25},
        {"from": 61359, "to": 81817, "fixed": 8731, "rate": 0.30},
        {"from": 81817, "to": 108810, "fixed": 14869, "rate": 0.35},
        {"from": 108810, "to": None, "fixed": 24316, "rate": 0.37},
    ],
}


@pytest.fixture
def peru_raw() -> dict:
    """Raw Peru table: 2025 populated for both regimes, 2026 present but empty."""
    return copy.deepcopy({
        "NORMAL": {"2025": PERU_2025, "2026": {}},
        "RIA": {"2025": RIA_2025},
    })


@pytest.fixture
def peru_table(peru_raw) -> ParameterTable:
    return ParameterTable.from_mapping("peru", peru_raw, TaxParameters)


@pytest.fixture
def peru_params() -> TaxParameters:
    return TaxParameters.model_validate(copy.deepcopy(PERU_2025))


@pytest.fixture
def ecuador_table() -> ParameterTable:
    return ParameterTable.from_mapping(
        "ecuador", {"GENERAL": {"2025": copy.deepcopy(ECUADOR_2025)}}, EcuadorParameters,
    )
