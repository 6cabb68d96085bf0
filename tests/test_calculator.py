"""
Unit tests for effectci/analysis/calculator.py.

Covers:
- family_adjusted_level: worked values (3 → 0.98333, 4 → 0.9875), the
  family_size = 1 boundary, monotonicity, invalid arguments.
- compute on the incentive example: Money-vs-Time excludes 0 on the log
  scale, Time-vs-Control includes 0; log transform of the capability
  output; idempotence.
- compute with stub capabilities: uniform level passed through, alternate
  standardized-mean path, degenerate and invalid-statistic errors.
- compute_family: plan order, per-entry failure markers, thread-pool
  execution, per-entry timeout without aborting the family or waiting for
  the slow worker, structural errors propagating.
- compute output checks: undefined odds ratios, zero margins, estimate
  outside its interval and out-of-range p-values from a capability.
"""

from __future__ import annotations

import math
import time

import pytest

from conftest import StubExact, StubNoncentral
from effectci.analysis.calculator import compute, compute_family, family_adjusted_level
from effectci.analysis.models import (
    ODDS_RATIO,
    ComparisonFailure,
    ComparisonPlan,
    ComparisonResult,
    ContingencyTable,
    PlanEntry,
    StatisticFamily,
    TestStatistic,
)
from effectci.analysis.partitions import select
from effectci.errors import (
    DegenerateTable,
    ErrorCategory,
    InvalidInput,
    InvalidStatistic,
)


def _by_label(plan, label):
    return next(e for e in plan if e.label == label)


# ---------------------------------------------------------------------------
# family_adjusted_level
# ---------------------------------------------------------------------------

class TestFamilyAdjustedLevel:

    def test_three_comparisons(self):
        assert family_adjusted_level(0.05, 3) == pytest.approx(0.983333, abs=1e-6)

    def test_four_comparisons(self):
        assert family_adjusted_level(0.05, 4) == pytest.approx(0.9875)

    def test_single_comparison_is_unadjusted(self):
        assert family_adjusted_level(0.05, 1) == pytest.approx(0.95)

    def test_level_moves_monotonically_with_family_size(self):
        levels = [family_adjusted_level(0.05, k) for k in range(1, 10)]
        assert all(a < b for a, b in zip(levels, levels[1:]))
        assert all(0 < lvl < 1 for lvl in levels)

    @pytest.mark.parametrize("alpha", [0.0, 1.0, -0.05, 1.2])
    def test_alpha_out_of_range(self, alpha):
        with pytest.raises(InvalidInput):
            family_adjusted_level(alpha, 3)

    @pytest.mark.parametrize("size", [0, -1, 2.5, True])
    def test_family_size_invalid(self, size):
        with pytest.raises(InvalidInput):
            family_adjusted_level(0.05, size)


# ---------------------------------------------------------------------------
# compute — worked example with SciPy
# ---------------------------------------------------------------------------

class TestComputeIncentiveExample:

    def test_money_vs_time_excludes_zero(self, incentive_table):
        plan = select(incentive_table)
        result = compute(_by_label(plan, "Money-Time"), plan.family_size, 0.05)
        assert result.scale == "log_odds_ratio"
        assert result.adjusted_level == pytest.approx(1 - 0.05 / 3)
        assert result.estimate > 0
        assert result.lower > 0
        assert result.excludes(0.0)

    def test_time_vs_control_includes_zero(self, incentive_table):
        plan = select(incentive_table)
        result = compute(_by_label(plan, "Time-Control"), plan.family_size, 0.05)
        assert result.lower < 0 < result.upper
        assert not result.excludes(0.0)

    def test_interval_ordered_and_p_in_range(self, incentive_table):
        plan = select(incentive_table)
        for entry in plan:
            result = compute(entry, plan.family_size, 0.05)
            assert result.lower <= result.estimate <= result.upper
            assert 0.0 <= result.p_value <= 1.0
            assert all(math.isfinite(v) for v in (result.estimate, result.lower, result.upper))

    def test_idempotent(self, incentive_table):
        plan = select(incentive_table)
        entry = plan.entries[0]
        first = compute(entry, plan.family_size, 0.05)
        second = compute(entry, plan.family_size, 0.05)
        assert first == second
        assert repr(first) == repr(second)

    def test_degenerate_subtable_raises(self):
        table = ContingencyTable.from_dict({"A": (10, 5), "Empty": (0, 0), "C": (3, 4)})
        plan = select(table)
        with pytest.raises(DegenerateTable):
            compute(_by_label(plan, "A-Empty"), plan.family_size, 0.05)


# ---------------------------------------------------------------------------
# compute — stub capabilities
# ---------------------------------------------------------------------------

class TestComputeWithStubs:

    def test_log_transform_applied(self, incentive_table):
        stub = StubExact(odds_ratio=math.e, interval=(1.0, math.e ** 2), p_value=0.03)
        plan = select(incentive_table)
        result = compute(plan.entries[0], plan.family_size, 0.05, exact=stub)
        assert result.estimate == pytest.approx(1.0)
        assert result.lower == pytest.approx(0.0)
        assert result.upper == pytest.approx(2.0)
        assert result.p_value == 0.03

    def test_counts_and_level_forwarded(self, incentive_table, stub_exact):
        plan = select(incentive_table)
        compute(plan.entries[1], plan.family_size, 0.05, exact=stub_exact)
        table, level = stub_exact.calls[0]
        assert table == [[28, 4], [22, 11]]
        assert level == pytest.approx(1 - 0.05 / 3)

    def test_standardized_mean_not_log_transformed(self, reading_family, stub_noncentral):
        plan = select(reading_family)
        result = compute(plan.entries[0], plan.family_size, 0.05, noncentral=stub_noncentral)
        assert result.scale == "standardized_mean"
        assert result.estimate == pytest.approx(3.42 / math.sqrt(24))
        assert result.upper - result.lower == pytest.approx(1.0)
        call = stub_noncentral.calls[0]
        assert call == {"ncp": 3.42, "n": 24, "confidence_level": pytest.approx(1 - 0.05 / 3)}

    def test_same_level_for_every_member(self, reading_family, stub_noncentral):
        plan = select(reading_family)
        levels = {
            compute(e, plan.family_size, 0.05, noncentral=stub_noncentral).adjusted_level
            for e in plan
        }
        assert len(levels) == 1

    def test_small_sample_raises_invalid_statistic(self):
        entry = PlanEntry(label="tiny", kind="standardized_mean",
                          statistic=TestStatistic("tiny", 2.0, 1))
        with pytest.raises(InvalidStatistic):
            compute(entry, 1, 0.05)

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidInput):
            compute(PlanEntry(label="x", kind="hazard_ratio"), 1, 0.05)

    @pytest.mark.parametrize("odds_ratio, interval", [
        (math.inf, (2.0, math.inf)),
        (0.0, (0.0, 0.5)),
        (math.nan, (1.0, 4.0)),
        (2.0, (-1.0, 4.0)),
    ])
    def test_undefined_odds_ratio_from_capability_raises(self, incentive_table,
                                                         odds_ratio, interval):
        stub = StubExact(odds_ratio=odds_ratio, interval=interval)
        plan = select(incentive_table)
        with pytest.raises(DegenerateTable):
            compute(plan.entries[0], plan.family_size, 0.05, exact=stub)

    def test_zero_margin_checked_before_capability(self, stub_exact):
        table = ContingencyTable.from_dict({"A": (10, 5), "Empty": (0, 0), "C": (3, 4)})
        plan = select(table)
        with pytest.raises(DegenerateTable):
            compute(_by_label(plan, "A-Empty"), plan.family_size, 0.05, exact=stub_exact)
        assert stub_exact.calls == []

    def test_estimate_outside_interval_raises(self, incentive_table):
        stub = StubExact(odds_ratio=8.0, interval=(1.0, 4.0))
        plan = select(incentive_table)
        with pytest.raises(DegenerateTable, match="outside interval"):
            compute(plan.entries[0], plan.family_size, 0.05, exact=stub)

    @pytest.mark.parametrize("p_value", [-0.1, 1.5, math.nan])
    def test_p_value_out_of_range_raises(self, reading_family, p_value):
        plan = select(reading_family)
        with pytest.raises(InvalidStatistic, match="p-value"):
            compute(plan.entries[0], plan.family_size, 0.05,
                    noncentral=StubNoncentral(p_value=p_value))


# ---------------------------------------------------------------------------
# compute_family
# ---------------------------------------------------------------------------

class TestComputeFamily:

    def test_sequential_plan_order(self, incentive_table):
        plan = select(incentive_table)
        outcomes = compute_family(plan, 0.05)
        assert [o.label for o in outcomes] == plan.labels
        assert all(isinstance(o, ComparisonResult) for o in outcomes)

    def test_failure_recorded_in_position(self):
        table = ContingencyTable.from_dict({"A": (10, 5), "Empty": (0, 0), "C": (3, 4)})
        plan = select(table)
        outcomes = compute_family(plan, 0.05)
        assert [o.label for o in outcomes] == ["A-Empty", "A-C", "Empty-C"]
        assert isinstance(outcomes[0], ComparisonFailure)
        assert outcomes[0].category == ErrorCategory.DEGENERATE_TABLE
        assert isinstance(outcomes[1], ComparisonResult)
        assert isinstance(outcomes[2], ComparisonFailure)

    def test_invalid_statistic_recorded(self):
        family = StatisticFamily.from_records("F", [("ok", 2.0, 20), ("bad", 2.0, 1)])
        outcomes = compute_family(select(family), 0.05)
        assert outcomes[0].status == "ok"
        assert outcomes[1].status == "failed"
        assert outcomes[1].category == ErrorCategory.INVALID_STATISTIC

    def test_parallel_matches_sequential(self, incentive_table):
        plan = select(incentive_table)
        sequential = compute_family(plan, 0.05)
        parallel = compute_family(plan, 0.05, max_workers=3)
        assert parallel == sequential

    def test_timeout_only_fails_slow_entry(self, reading_family):
        stub = StubNoncentral(delay_for={2.15: 1.0})
        plan = select(reading_family)
        outcomes = compute_family(plan, 0.05, noncentral=stub, timeout=0.25)
        assert [o.label for o in outcomes] == plan.labels
        assert outcomes[0].status == "ok"
        assert outcomes[1].status == "failed"
        assert outcomes[1].category == ErrorCategory.COMPUTATION_TIMEOUT
        assert outcomes[2].status == "ok"

    @pytest.mark.parametrize("max_workers", [None, 3])
    def test_zero_odds_ratio_recorded_not_raised(self, incentive_table, max_workers):
        stub = StubExact(odds_ratio=0.0, interval=(0.0, 1.0))
        plan = select(incentive_table)
        outcomes = compute_family(plan, 0.05, exact=stub, max_workers=max_workers)
        assert [o.label for o in outcomes] == plan.labels
        assert all(o.category == ErrorCategory.DEGENERATE_TABLE for o in outcomes)

    def test_structural_error_propagates(self, incentive_table):
        plan = select(incentive_table)
        broken = PlanEntry(label="no counts", kind=ODDS_RATIO)
        with pytest.raises(InvalidInput, match="no 2x2 counts"):
            compute_family(ComparisonPlan(family="F", entries=(plan.entries[0], broken)), 0.05)

    def test_timeout_does_not_wait_for_slow_entry(self, reading_family):
        stub = StubNoncentral(delay_for={2.15: 2.0})
        plan = select(reading_family)
        started = time.monotonic()
        outcomes = compute_family(plan, 0.05, noncentral=stub, timeout=0.25)
        assert time.monotonic() - started < 1.5
        assert outcomes[1].category == ErrorCategory.COMPUTATION_TIMEOUT

    def test_empty_plan_rejected(self):
        with pytest.raises(InvalidInput):
            compute_family(ComparisonPlan(family="none", entries=()), 0.05)
