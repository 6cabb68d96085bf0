"""
Exact conditional odds-ratio interval for a 2×2 count table.

The estimate is the conditional maximum-likelihood odds ratio and the
interval comes from the noncentral hypergeometric distribution, both via
``scipy.stats.contingency.odds_ratio(kind="conditional")``.  The p-value is
the two-sided Fisher exact test.

Degenerate tables are rejected rather than clamped: a zero row or column
sum, or an estimate/bound of 0 or infinity, raises :class:`DegenerateTable`.
No continuity correction is applied.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from scipy import stats
from scipy.stats.contingency import odds_ratio

from ..errors import DegenerateTable, InvalidInput
from .config import MAX_CONFIDENCE_LEVEL, MIN_CONFIDENCE_LEVEL


def as_two_by_two(table: Sequence[Sequence[int]] | np.ndarray) -> np.ndarray:
    """
    Coerce ``table`` into a 2×2 integer array of non-negative counts.

    Raises:
        InvalidInput: Wrong shape, negative or non-integer counts.
    """
    counts = np.asarray(table)
    if counts.shape != (2, 2):
        raise InvalidInput(f"Expected a 2x2 table, got shape {counts.shape}")
    if not np.all(np.equal(np.mod(counts, 1), 0)):
        raise InvalidInput(f"Counts must be integers, got {counts.tolist()}")
    counts = counts.astype(np.int64)
    if (counts < 0).any():
        raise InvalidInput(f"Counts must be non-negative, got {counts.tolist()}")
    return counts


def check_margins(counts: np.ndarray) -> None:
    """Raise :class:`DegenerateTable` if any row or column sums to zero."""
    row_sums = counts.sum(axis=1)
    col_sums = counts.sum(axis=0)
    if (row_sums == 0).any() or (col_sums == 0).any():
        raise DegenerateTable(
            f"Zero marginal in 2x2 table {counts.tolist()} "
            f"(row sums {row_sums.tolist()}, column sums {col_sums.tolist()})"
        )


def validate_confidence_level(confidence_level: float) -> float:
    level = float(confidence_level)
    if not (MIN_CONFIDENCE_LEVEL < level < MAX_CONFIDENCE_LEVEL):
        raise InvalidInput(f"confidence_level must be in (0, 1), got {confidence_level}")
    return level


class ExactOddsRatioInterval:
    """
    Exact-interval capability: conditional odds ratio, exact CI, Fisher p.

    Stateless; a single instance may be shared across threads.
    """

    name = "exact_odds_ratio"

    def compute(
        self,
        table: Sequence[Sequence[int]] | np.ndarray,
        confidence_level: float,
    ) -> dict:
        """
        Estimate the odds ratio of a 2×2 table with an exact two-sided CI.

        Args:
            table: 2×2 counts; rows are the two groups, columns are
                (success, failure).
            confidence_level: Two-sided confidence level in (0, 1).

        Returns:
            Dict with ``odds_ratio_estimate`` (float), ``interval``
            (lower, upper) on the odds-ratio scale, and ``p_value``.

        Raises:
            InvalidInput: Malformed table or confidence level.
            DegenerateTable: Zero marginal, or an undefined (0 / infinite)
                estimate or bound.
        """
        counts = as_two_by_two(table)
        level = validate_confidence_level(confidence_level)
        check_margins(counts)

        result = odds_ratio(counts, kind="conditional")
        estimate = float(result.statistic)
        ci = result.confidence_interval(confidence_level=level, alternative="two-sided")
        lower, upper = float(ci.low), float(ci.high)

        for label, value in (("estimate", estimate), ("lower", lower), ("upper", upper)):
            if not math.isfinite(value) or value <= 0:
                raise DegenerateTable(
                    f"Odds ratio {label} is undefined ({value}) for table "
                    f"{counts.tolist()}"
                )

        _, p_value = stats.fisher_exact(counts, alternative="two-sided")

        return {
            "odds_ratio_estimate": estimate,
            "interval": (lower, upper),
            "p_value": min(1.0, max(0.0, float(p_value))),
        }
