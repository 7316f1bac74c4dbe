from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

import pandas as pd

from carbonsnapshot.config import FACTOR_FILE

logger = logging.getLogger(__name__)

DEFAULT_KEY = "default"
REQUIRED_COLUMNS = {"activity", "factor", "unit", "scope", "category"}


class ScopeLabel(str, Enum):
    SCOPE_1 = "Scope 1: Direct Emissions"
    SCOPE_2 = "Scope 2: Indirect Emissions - Purchased Energy"
    SCOPE_3 = "Scope 3: Indirect Emissions - Value Chain"

    def __str__(self) -> str:
        return self.value


SCOPE_MAP = {
    "scope1": ScopeLabel.SCOPE_1,
    "scope_1": ScopeLabel.SCOPE_1,
    "scope 1": ScopeLabel.SCOPE_1,
    "s1": ScopeLabel.SCOPE_1,
    "scope2": ScopeLabel.SCOPE_2,
    "scope_2": ScopeLabel.SCOPE_2,
    "scope 2": ScopeLabel.SCOPE_2,
    "s2": ScopeLabel.SCOPE_2,
    "scope3": ScopeLabel.SCOPE_3,
    "scope_3": ScopeLabel.SCOPE_3,
    "scope 3": ScopeLabel.SCOPE_3,
    "s3": ScopeLabel.SCOPE_3,
}
SCOPE_MAP.update({label.value.lower(): label for label in ScopeLabel})


def normalize_scope(value: object) -> ScopeLabel:
    if isinstance(value, ScopeLabel):
        return value
    raw = str(value).strip().lower()
    try:
        return SCOPE_MAP[raw]
    except KeyError:
        raise ValueError(f"Unknown scope label: {value!r}") from None


@dataclass(frozen=True)
class EmissionFactorEntry:
    factor: float
    unit: str
    scope: ScopeLabel
    category: str


@dataclass(frozen=True)
class EmissionFactorTable:
    """Ordered activity -> factor mapping with a mandatory fallback entry.

    Order matters: the category fallback picks the first entry, in table
    order, whose category appears inside the activity text.
    """

    entries: Tuple[Tuple[str, EmissionFactorEntry], ...]
    default: EmissionFactorEntry
    _index: Dict[str, EmissionFactorEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: Dict[str, EmissionFactorEntry] = {}
        for key, entry in self.entries:
            if key != key.strip().lower() or not key:
                raise ValueError(f"Factor keys must be trimmed lowercase text, got {key!r}.")
            if key == DEFAULT_KEY:
                raise ValueError("The default entry is stored separately from keyed entries.")
            if key in index:
                raise ValueError(f"Duplicate emission factor key: {key!r}")
            index[key] = entry
        object.__setattr__(self, "_index", index)

    @classmethod
    def from_mapping(cls, mapping: Dict[str, EmissionFactorEntry]) -> "EmissionFactorTable":
        """Build from a dict that includes a ``default`` key."""
        if DEFAULT_KEY not in mapping:
            raise ValueError("Emission factor table requires a 'default' entry.")
        entries = tuple((key, entry) for key, entry in mapping.items() if key != DEFAULT_KEY)
        return cls(entries=entries, default=mapping[DEFAULT_KEY])

    def get(self, activity: str) -> Optional[EmissionFactorEntry]:
        return self._index.get(activity)

    def __contains__(self, activity: object) -> bool:
        return activity in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def values(self) -> Iterable[EmissionFactorEntry]:
        """Keyed entries in table order, followed by the default entry."""
        return tuple(entry for _, entry in self.entries) + (self.default,)

    def to_dataframe(self) -> pd.DataFrame:
        rows = [
            {
                "activity": key,
                "factor": entry.factor,
                "unit": entry.unit,
                "scope": entry.scope.value,
                "category": entry.category,
            }
            for key, entry in self.entries + ((DEFAULT_KEY, self.default),)
        ]
        return pd.DataFrame(rows, columns=["activity", "factor", "unit", "scope", "category"])


def factor_table_from_dataframe(factors: pd.DataFrame) -> EmissionFactorTable:
    missing = REQUIRED_COLUMNS - set(factors.columns)
    if missing:
        raise ValueError(f"Emission factor file missing columns: {', '.join(sorted(missing))}")

    working = factors.copy()
    working["activity"] = working["activity"].astype(str).str.strip().str.lower()
    working["unit"] = working["unit"].astype(str).str.strip()
    working["category"] = working["category"].astype(str).str.strip()
    working["factor"] = pd.to_numeric(working["factor"], errors="coerce")

    invalid = working[working["factor"].isna()]
    if not invalid.empty:
        logger.warning(
            "Dropping %d emission factor row(s) with non-numeric factor: %s",
            len(invalid),
            ", ".join(invalid["activity"].tolist()),
        )
    working = working.dropna(subset=["factor"])

    mapping: Dict[str, EmissionFactorEntry] = {}
    for _, row in working.iterrows():
        key = row["activity"]
        if key in mapping:
            raise ValueError(f"Duplicate emission factor key: {key!r}")
        mapping[key] = EmissionFactorEntry(
            factor=float(row["factor"]),
            unit=row["unit"],
            scope=normalize_scope(row["scope"]),
            category=row["category"],
        )

    return EmissionFactorTable.from_mapping(mapping)


def load_emission_factors(csv_path: str | Path) -> EmissionFactorTable:
    """Load an emission factor table from CSV, keeping file order."""
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Emission factor file not found: {path}")

    factors = pd.read_csv(path, dtype=str, keep_default_na=False)
    table = factor_table_from_dataframe(factors)
    logger.info("Loaded %d emission factors from %s", len(table), path)
    return table


@lru_cache(maxsize=None)
def default_factor_table() -> EmissionFactorTable:
    return load_emission_factors(FACTOR_FILE)
