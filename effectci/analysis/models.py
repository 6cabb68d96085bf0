"""
Data model for the selector → calculator → aggregator pipeline.

All records are frozen dataclasses: tables and statistics are built once
from literal input data, results are immutable once computed, and the
ResultTable is the read-only artifact handed to exporters and plotters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..errors import InvalidInput
from .config import RESULT_COLUMNS

ODDS_RATIO = "odds_ratio"
STANDARDIZED_MEAN = "standardized_mean"

SCALE_BY_KIND: dict[str, str] = {
    ODDS_RATIO: "log_odds_ratio",
    STANDARDIZED_MEAN: "standardized_mean",
}


def _check_unique_names(names: Sequence[str], what: str) -> None:
    seen: set[str] = set()
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput(f"{what} names must be non-empty strings, got {name!r}")
        if name in seen:
            raise InvalidInput(f"Duplicate {what} name: {name!r}")
        seen.add(name)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ContingencyTable:
    """
    k×2 table of (success, failure) counts with named rows.

    Invariants: at least 2 rows, exactly 2 columns, non-negative integer
    counts, unique non-empty row names.
    """

    rows: tuple[str, ...]
    counts: tuple[tuple[int, int], ...]
    columns: tuple[str, str] = ("success", "failure")
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(self.rows))
        object.__setattr__(self, "columns", tuple(self.columns))

        if len(self.columns) != 2:
            raise InvalidInput(f"Expected exactly 2 columns, got {len(self.columns)}")
        if len(self.rows) < 2:
            raise InvalidInput(f"Contingency table needs at least 2 rows, got {len(self.rows)}")
        if len(self.counts) != len(self.rows):
            raise InvalidInput(
                f"{len(self.rows)} row names but {len(self.counts)} count rows"
            )
        _check_unique_names(self.rows, "row")

        normalized = []
        for row_name, row in zip(self.rows, self.counts):
            row = tuple(row)
            if len(row) != 2:
                raise InvalidInput(f"Row {row_name!r} must have 2 counts, got {len(row)}")
            for value in row:
                if isinstance(value, bool) or int(value) != value or value < 0:
                    raise InvalidInput(
                        f"Row {row_name!r} counts must be non-negative integers, got {row}"
                    )
            normalized.append((int(row[0]), int(row[1])))
        object.__setattr__(self, "counts", tuple(normalized))

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Sequence[int]],
        columns: tuple[str, str] = ("success", "failure"),
        name: str = "",
    ) -> "ContingencyTable":
        """Build from ``{row_name: (success, failure)}`` preserving key order."""
        return cls(
            rows=tuple(data.keys()),
            counts=tuple(tuple(v) for v in data.values()),
            columns=columns,
            name=name,
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, name: str = "") -> "ContingencyTable":
        """Build from a DataFrame indexed by row name with two count columns."""
        if df.shape[1] != 2:
            raise InvalidInput(f"Expected exactly 2 columns, got {df.shape[1]}")
        return cls(
            rows=tuple(str(i) for i in df.index),
            counts=tuple(tuple(r) for r in df.to_numpy().tolist()),
            columns=(str(df.columns[0]), str(df.columns[1])),
            name=name,
        )

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    def index_of(self, row_name: str) -> int:
        try:
            return self.rows.index(row_name)
        except ValueError:
            raise InvalidInput(f"Unknown row {row_name!r}; rows are {list(self.rows)}") from None

    def subtable(self, i: int, j: int) -> np.ndarray:
        """2×2 count matrix of rows ``i`` and ``j`` (in that order)."""
        for idx in (i, j):
            if not 0 <= idx < self.n_rows:
                raise InvalidInput(f"Row index {idx} out of range for {self.n_rows} rows")
        if i == j:
            raise InvalidInput(f"Sub-table needs two distinct rows, got ({i}, {j})")
        return np.array([self.counts[i], self.counts[j]], dtype=np.int64)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.counts), index=list(self.rows), columns=list(self.columns))


@dataclass(frozen=True)
class TestStatistic:
    """A computed test statistic (e.g. paired t) and its sample size."""

    __test__ = False  # not a pytest test class

    name: str
    value: float
    n: int

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidInput(f"Statistic name must be a non-empty string, got {self.name!r}")


@dataclass(frozen=True)
class StatisticFamily:
    """Caller-grouped family of statistics sharing one alpha adjustment."""

    name: str
    statistics: tuple[TestStatistic, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "statistics", tuple(self.statistics))
        _check_unique_names([s.name for s in self.statistics], "statistic")

    @classmethod
    def from_records(
        cls,
        name: str,
        records: Sequence[tuple[str, float, int]],
    ) -> "StatisticFamily":
        """Build from ``[(statistic_name, value, n), ...]``."""
        return cls(name=name, statistics=tuple(TestStatistic(*r) for r in records))

    def __len__(self) -> int:
        return len(self.statistics)


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanEntry:
    """One sub-comparison, self-contained so it can be computed in isolation."""

    label: str
    kind: str
    rows: Optional[tuple[int, int]] = None
    counts: Optional[tuple[tuple[int, int], tuple[int, int]]] = None
    statistic: Optional[TestStatistic] = None


@dataclass(frozen=True)
class ComparisonPlan:
    family: str
    entries: tuple[PlanEntry, ...]
    strategy: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))

    @property
    def family_size(self) -> int:
        return len(self.entries)

    @property
    def labels(self) -> list[str]:
        return [e.label for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ComparisonResult:
    label: str
    estimate: float
    lower: float
    upper: float
    p_value: float
    adjusted_level: float
    scale: str

    status = "ok"

    def excludes(self, value: float = 0.0) -> bool:
        """True if ``value`` lies outside the closed interval [lower, upper]."""
        return value < self.lower or value > self.upper

    def to_record(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "status": self.status,
            "scale": self.scale,
            "estimate": self.estimate,
            "lower": self.lower,
            "upper": self.upper,
            "adjusted_level": self.adjusted_level,
            "p_value": self.p_value,
            "error_category": None,
            "error_message": None,
        }


@dataclass(frozen=True)
class ComparisonFailure:
    """Error marker holding a failed entry's position in the table."""

    label: str
    category: str
    message: str
    adjusted_level: float = math.nan

    status = "failed"

    def to_record(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "status": self.status,
            "scale": None,
            "estimate": None,
            "lower": None,
            "upper": None,
            "adjusted_level": self.adjusted_level,
            "p_value": None,
            "error_category": self.category,
            "error_message": self.message,
        }


EntryOutcome = Union[ComparisonResult, ComparisonFailure]


@dataclass(frozen=True)
class ResultTable:
    """
    Ordered, read-only summary of one family of comparisons.

    ``adjusted_level`` (per row) is the interval-level correction;
    ``p_adjusted`` is the separate display-only p-value correction.
    """

    family: str
    rows: tuple[EntryOutcome, ...]
    p_adjusted: tuple[Optional[float], ...]
    p_adjust_method: str
    nominal_alpha: float
    family_size: int = field(default=0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(self.rows))
        object.__setattr__(self, "p_adjusted", tuple(self.p_adjusted))
        if not self.family_size:
            object.__setattr__(self, "family_size", len(self.rows))

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[EntryOutcome]:
        return iter(self.rows)

    @property
    def labels(self) -> list[str]:
        return [r.label for r in self.rows]

    @property
    def n_failed(self) -> int:
        return sum(1 for r in self.rows if r.status == "failed")

    def get(self, label: str) -> EntryOutcome:
        for row in self.rows:
            if row.label == label:
                return row
        raise KeyError(label)

    def to_records(self) -> list[dict[str, Any]]:
        records = []
        for row, p_adj in zip(self.rows, self.p_adjusted):
            record = row.to_record()
            record["p_adjusted"] = p_adj
            records.append(record)
        return records

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_records(), columns=RESULT_COLUMNS)
