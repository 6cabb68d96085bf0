"""
Error taxonomy for family-adjusted interval computation.

Every domain failure is an :class:`EffectIntervalError` carrying a
``category`` string.  Per-entry failures (degenerate tables, bad statistics,
timeouts) are caught by :func:`effectci.analysis.calculator.compute_family`
and recorded as explicit failure markers; structural failures (malformed
tables or plans, aggregation mismatches) propagate to the caller.
"""

from __future__ import annotations


class ErrorCategory:
    """
    Category constants used in failure records and exported tables.

    Errors in PER_ENTRY become failure markers for a single entry; any other
    category aborts the stage that raised it.
    """

    INVALID_INPUT = "invalid_input"
    DEGENERATE_TABLE = "degenerate_table"
    INVALID_STATISTIC = "invalid_statistic"
    AGGREGATION_MISMATCH = "aggregation_mismatch"
    COMPUTATION_TIMEOUT = "computation_timeout"

    PER_ENTRY: frozenset[str] = frozenset(
        {DEGENERATE_TABLE, INVALID_STATISTIC, COMPUTATION_TIMEOUT}
    )


class EffectIntervalError(Exception):
    """Base class for all domain errors raised by effectci."""

    category: str = ErrorCategory.INVALID_INPUT


class InvalidInput(EffectIntervalError, ValueError):
    """Malformed table, family, plan, or argument."""

    category = ErrorCategory.INVALID_INPUT


class DegenerateTable(EffectIntervalError, ValueError):
    """2×2 sub-table whose odds ratio is undefined (0 or infinite)."""

    category = ErrorCategory.DEGENERATE_TABLE


class InvalidStatistic(EffectIntervalError, ValueError):
    """Test statistic that cannot be inverted (n ≤ 1, non-finite value)."""

    category = ErrorCategory.INVALID_STATISTIC


class AggregationMismatch(EffectIntervalError):
    """Plan and per-entry results do not line up."""

    category = ErrorCategory.AGGREGATION_MISMATCH


class ComputationTimeout(EffectIntervalError, TimeoutError):
    """A single entry exceeded its time budget."""

    category = ErrorCategory.COMPUTATION_TIMEOUT
