"""
Family-adjusted interval calculator.

Every entry of a family is computed at the same Bonferroni-style level

    adjusted_level = 1 - nominal_alpha / family_size

(no per-entry weighting, no Holm step-down).  Odds-ratio entries are
delegated to the exact-interval capability and stored on the natural-log
scale; standardized-mean entries are delegated to the noncentral-t
capability and stored as returned.

compute() handles one entry and raises on failure.  compute_family() runs
a whole plan, optionally on a thread pool with a per-entry timeout, and
turns per-entry errors into ComparisonFailure markers in plan order.
"""

from __future__ import annotations

import math
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional

from ..errors import (
    ComputationTimeout,
    DegenerateTable,
    EffectIntervalError,
    ErrorCategory,
    InvalidInput,
    InvalidStatistic,
)
from ..intervals import ExactOddsRatioInterval, NoncentralStandardizedMeanInterval
from ..intervals.exact import as_two_by_two, check_margins
from .models import (
    ODDS_RATIO,
    SCALE_BY_KIND,
    STANDARDIZED_MEAN,
    ComparisonFailure,
    ComparisonPlan,
    ComparisonResult,
    EntryOutcome,
    PlanEntry,
)


# ---------------------------------------------------------------------------
# Family-wise level
# ---------------------------------------------------------------------------

def family_adjusted_level(nominal_alpha: float, family_size: int) -> float:
    """
    Confidence level for each member of a family of ``family_size``.

    family_size = 1 gives the unadjusted ``1 - nominal_alpha``.

    Raises:
        InvalidInput: alpha outside (0, 1) or family_size not a positive int.
    """
    if not (0.0 < nominal_alpha < 1.0):
        raise InvalidInput(f"nominal_alpha must be in (0, 1), got {nominal_alpha}")
    if isinstance(family_size, bool) or int(family_size) != family_size or family_size < 1:
        raise InvalidInput(f"family_size must be a positive integer, got {family_size}")
    return 1.0 - nominal_alpha / int(family_size)


# ---------------------------------------------------------------------------
# Single entry
# ---------------------------------------------------------------------------

def compute(
    entry: PlanEntry,
    family_size: int,
    nominal_alpha: float,
    exact=None,
    noncentral=None,
) -> ComparisonResult:
    """
    Point estimate and family-adjusted interval for one plan entry.

    Args:
        entry: Plan entry (odds-ratio pair or standardized-mean statistic).
        family_size: Number of comparisons in the entry's family.
        nominal_alpha: Family-wise alpha (e.g. 0.05).
        exact: Exact-interval capability; defaults to ExactOddsRatioInterval.
        noncentral: Noncentral-t capability; defaults to
            NoncentralStandardizedMeanInterval.

    Returns:
        ComparisonResult labelled with ``entry.label``.

    Raises:
        DegenerateTable: Zero marginal in the selected sub-table, or an
            odds ratio / bound of 0 or infinity, or a malformed odds-ratio
            result (estimate outside its interval, p-value outside [0, 1]).
        InvalidStatistic: Sample size ≤ 1 or non-finite statistic, or a
            malformed standardized-mean result.
        InvalidInput: Bad alpha / family size or malformed entry.
    """
    level = family_adjusted_level(nominal_alpha, family_size)

    if entry.kind == ODDS_RATIO:
        if entry.counts is None:
            raise InvalidInput(f"Entry {entry.label!r} has no 2x2 counts")
        check_margins(as_two_by_two(entry.counts))
        capability = exact if exact is not None else ExactOddsRatioInterval()
        out = capability.compute(entry.counts, level)
        odds = (out["odds_ratio_estimate"], *out["interval"])
        for value in odds:
            if not math.isfinite(value) or value <= 0:
                raise DegenerateTable(
                    f"Odds ratio undefined for {entry.label!r}: "
                    f"estimate/interval {tuple(float(v) for v in odds)}"
                )
        estimate, lower, upper = (math.log(v) for v in odds)
        error = DegenerateTable

    elif entry.kind == STANDARDIZED_MEAN:
        if entry.statistic is None:
            raise InvalidInput(f"Entry {entry.label!r} has no test statistic")
        capability = noncentral if noncentral is not None else NoncentralStandardizedMeanInterval()
        out = capability.compute(
            ncp=entry.statistic.value,
            n=entry.statistic.n,
            confidence_level=level,
        )
        estimate = float(out["standardized_mean_estimate"])
        lower, upper = (float(v) for v in out["interval"])
        error = InvalidStatistic

    else:
        raise InvalidInput(f"Unknown entry kind {entry.kind!r} for {entry.label!r}")

    estimate, lower, upper = float(estimate), float(lower), float(upper)
    p_value = float(out["p_value"])
    if not all(math.isfinite(v) for v in (estimate, lower, upper)):
        raise error(f"Non-finite interval for {entry.label!r}: {(lower, estimate, upper)}")
    if not lower <= estimate <= upper:
        raise error(
            f"Estimate {estimate} outside interval [{lower}, {upper}] for {entry.label!r}"
        )
    if not 0.0 <= p_value <= 1.0:
        raise error(f"p-value {p_value} outside [0, 1] for {entry.label!r}")

    return ComparisonResult(
        label=entry.label,
        estimate=estimate,
        lower=lower,
        upper=upper,
        p_value=p_value,
        adjusted_level=level,
        scale=SCALE_BY_KIND[entry.kind],
    )


# ---------------------------------------------------------------------------
# Whole family
# ---------------------------------------------------------------------------

def _failure(entry: PlanEntry, exc: EffectIntervalError, level: float) -> ComparisonFailure:
    if exc.category not in ErrorCategory.PER_ENTRY:
        raise exc
    return ComparisonFailure(
        label=entry.label,
        category=exc.category,
        message=str(exc),
        adjusted_level=level,
    )


def compute_family(
    plan: ComparisonPlan,
    nominal_alpha: float,
    exact=None,
    noncentral=None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> list[EntryOutcome]:
    """
    Compute every entry of ``plan`` with one shared adjusted level.

    A per-entry error (ErrorCategory.PER_ENTRY: degenerate table, invalid
    statistic, timeout) is recorded as a ComparisonFailure at that entry's
    position; the other entries still complete.  Structural errors such as
    InvalidInput and non-domain exceptions propagate.

    A timed-out entry is abandoned, not interrupted: its worker thread keeps
    running in the background and, since concurrent.futures joins worker
    threads at interpreter exit, a capability that never returns still
    delays process exit.  Capabilities used with a timeout must terminate
    on their own.

    Args:
        plan: Comparison plan; its length is the family size.
        nominal_alpha: Single family-wise alpha for all entries.
        exact: Optional exact-interval capability override.
        noncentral: Optional noncentral-t capability override.
        max_workers: Thread-pool size.  ``None`` or 1 without a timeout
            computes sequentially.
        timeout: Optional per-entry budget in seconds; an entry still
            running after it becomes a ``computation_timeout`` failure.

    Returns:
        List of ComparisonResult / ComparisonFailure in plan order.
    """
    level = family_adjusted_level(nominal_alpha, plan.family_size)
    entries = list(plan.entries)

    if timeout is None and (max_workers is None or max_workers <= 1):
        outcomes: list[EntryOutcome] = []
        for entry in entries:
            try:
                outcomes.append(
                    compute(entry, plan.family_size, nominal_alpha, exact, noncentral)
                )
            except EffectIntervalError as exc:
                outcomes.append(_failure(entry, exc, level))
        return outcomes

    # One worker per entry when a timeout is set so every entry starts at once
    # and the deadline below is a true per-entry budget.
    workers = len(entries) if timeout is not None else max_workers
    pool = ThreadPoolExecutor(max_workers=max(1, workers or 1))
    futures: list[Future] = [
        pool.submit(compute, entry, plan.family_size, nominal_alpha, exact, noncentral)
        for entry in entries
    ]
    deadline = time.monotonic() + timeout if timeout is not None else None

    outcomes = []
    try:
        for entry, future in zip(entries, futures):
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                outcomes.append(future.result(timeout=remaining))
            except FutureTimeout:
                future.cancel()
                outcomes.append(_failure(
                    entry,
                    ComputationTimeout(
                        f"Entry {entry.label!r} exceeded {timeout}s"
                    ),
                    level,
                ))
            except EffectIntervalError as exc:
                outcomes.append(_failure(entry, exc, level))
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    return outcomes
