"""
resolver.py — Year/regime-indexed parameter tables and the fallback resolver.

Table format on disk (versioned, append-only configuration data):

    {regime: {year: {constants...}}}

A missing year and an empty object for a year both mean "no data for that
year". resolve() then falls back to the latest populated year and logs a
warning through the table's logger (injected, so tests can capture it without
touching process output).

Tables are validated once at load time. Any malformed entry raises
ConfigurationError immediately.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Generic, List, Mapping, NamedTuple, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from netsalary.config import settings
from netsalary.exceptions import ConfigurationError
from netsalary.parameters.schemas import EcuadorParameters, TaxParameters

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)

PERU_TABLE_FILE = "peru.json"
ECUADOR_TABLE_FILE = "ecuador.json"


class Resolution(NamedTuple):
    """Result of resolve(): the parameters and the year they actually belong to."""
    params: Any
    effective_year: int
    fallback: bool

    def notice(self, requested_year: int) -> Optional[str]:
        """Human note for the caller when fallback happened, else None."""
        if not self.fallback:
            return None
        return f"Usando parámetros de {self.effective_year} (no hay datos para {requested_year})"


def _regime_key(regime: Any) -> str:
    """Accept a str-valued Enum member or a plain string."""
    return str(getattr(regime, "value", regime))


class ParameterTable(Generic[P]):
    """
    Immutable {regime: {year: params}} lookup.

    Only populated years are stored; empty year objects are dropped at load.
    """

    def __init__(
        self,
        name: str,
        entries: Mapping[str, Mapping[int, P]],
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.name = name
        self._entries: Dict[str, Dict[int, P]] = {
            regime: dict(years) for regime, years in entries.items()
        }
        self._log = log or logger

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(
        cls,
        name: str,
        raw: Mapping[str, Any],
        model: Type[P],
        log: Optional[logging.Logger] = None,
    ) -> "ParameterTable[P]":
        """Validate a raw nested mapping into a table. Raises ConfigurationError."""
        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"{name}: top level must be a mapping of regimes")

        entries: Dict[str, Dict[int, P]] = {}
        for regime, years in raw.items():
            if not isinstance(years, Mapping):
                raise ConfigurationError(f"{name}: regime {regime} must map years to parameters")
            populated: Dict[int, P] = {}
            for year_key, values in years.items():
                try:
                    year = int(year_key)
                except (TypeError, ValueError):
                    raise ConfigurationError(
                        f"{name}: regime {regime} has a non-integer year key {year_key!r}"
                    ) from None
                if not values:
                    continue    # empty object → no data for that year
                try:
                    populated[year] = model.model_validate(values)
                except ValidationError as exc:
                    raise ConfigurationError(
                        f"{name}: invalid parameters for regime {regime}, year {year}: {exc}"
                    ) from exc
            entries[str(regime)] = populated

        return cls(name, entries, log=log)

    @classmethod
    def from_json(
        cls,
        path: Path,
        model: Type[P],
        log: Optional[logging.Logger] = None,
    ) -> "ParameterTable[P]":
        """Load and validate a JSON table file. Raises ConfigurationError."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Cannot read parameter table {path}: {exc}") from exc
        table = cls.from_mapping(Path(path).stem, raw, model, log=log)
        logger.info(
            "Loaded parameter table %s (%s)",
            table.name,
            ", ".join(f"{r}: {table.available_years(r)}" for r in table.regimes()),
        )
        return table

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def regimes(self) -> List[str]:
        return list(self._entries)

    def available_years(self, regime: Any) -> List[int]:
        """Populated years for the regime, ascending. Empty for unknown regimes."""
        return sorted(self._entries.get(_regime_key(regime), {}))

    def resolve(self, year: int, regime: Any) -> Resolution:
        """
        Return the parameters for (year, regime).

        Falls back to the latest populated year when the requested year has no
        data, logging a warning that names both years.

        Raises:
            ConfigurationError: the regime has no populated year at all.
        """
        key = _regime_key(regime)
        by_year = self._entries.get(key, {})

        exact = by_year.get(year)
        if exact is not None:
            return Resolution(exact, year, False)

        if not by_year:
            raise ConfigurationError(f"no parameters loaded for regime {key}")

        last_year = max(by_year)
        self._log.warning(
            "Using %s parameters from %s (no data for %s) in regime %s",
            self.name, last_year, year, key,
        )
        return Resolution(by_year[last_year], last_year, True)


# ---------------------------------------------------------------------------
# Process-wide tables, loaded once on first use
# ---------------------------------------------------------------------------

@lru_cache(maxsize=None)
def get_peru_table() -> ParameterTable[TaxParameters]:
    return ParameterTable.from_json(settings.parameters_dir / PERU_TABLE_FILE, TaxParameters)


@lru_cache(maxsize=None)
def get_ecuador_table() -> ParameterTable[EcuadorParameters]:
    return ParameterTable.from_json(settings.parameters_dir / ECUADOR_TABLE_FILE, EcuadorParameters)
