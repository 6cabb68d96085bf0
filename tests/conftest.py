"""
Shared pytest fixtures for the interval pipeline tests.

The incentive table is the worked example: Money=(28,4), Time=(14,19),
Control=(22,11) as (success, failure) counts.  Capability stubs return
fixed values so calculator and aggregator tests do not depend on SciPy's
numerics.
"""

from __future__ import annotations

import time

import numpy as np
import pytest

from effectci.analysis.models import (
    ComparisonFailure,
    ComparisonResult,
    ContingencyTable,
    StatisticFamily,
)


# ---------------------------------------------------------------------------
# Example data
# ---------------------------------------------------------------------------

INCENTIVE_COUNTS = {
    "Money":   (28, 4),
    "Time":    (14, 19),
    "Control": (22, 11),
}


@pytest.fixture
def incentive_table():
    """Three-row Money / Time / Control table."""
    return ContingencyTable.from_dict(INCENTIVE_COUNTS, name="Incentive")


@pytest.fixture
def reading_family():
    """Three paired-t statistics grouped into one family."""
    return StatisticFamily.from_records("Reading", [
        ("Pre-Post", 3.42, 24),
        ("Pre-FollowUp", 2.15, 24),
        ("Post-FollowUp", -0.87, 24),
    ])


# ---------------------------------------------------------------------------
# Capability stubs
# ---------------------------------------------------------------------------

class StubExact:
    """Exact-interval stand-in returning a fixed odds ratio."""

    def __init__(self, odds_ratio=2.0, interval=(1.0, 4.0), p_value=0.01):
        self.odds_ratio = odds_ratio
        self.interval = interval
        self.p_value = p_value
        self.calls: list[tuple[list, float]] = []

    def compute(self, table, confidence_level):
        self.calls.append((np.asarray(table).tolist(), confidence_level))
        return {
            "odds_ratio_estimate": self.odds_ratio,
            "interval": self.interval,
            "p_value": self.p_value,
        }


class StubNoncentral:
    """Noncentral-t stand-in: estimate t/sqrt(n), interval ± 0.5."""

    def __init__(self, p_value=0.02, delay_for: dict[float, float] | None = None):
        self.p_value = p_value
        self.delay_for = delay_for or {}
        self.calls: list[dict] = []

    def compute(self, ncp, n, confidence_level):
        self.calls.append({"ncp": ncp, "n": n, "confidence_level": confidence_level})
        if ncp in self.delay_for:
            time.sleep(self.delay_for[ncp])
        estimate = ncp / np.sqrt(n)
        return {
            "standardized_mean_estimate": estimate,
            "interval": (estimate - 0.5, estimate + 0.5),
            "p_value": self.p_value,
        }


@pytest.fixture
def stub_exact():
    return StubExact()


@pytest.fixture
def stub_noncentral():
    return StubNoncentral()


# ---------------------------------------------------------------------------
# Result builders
# ---------------------------------------------------------------------------

def make_result(
    label: str,
    p_value: float = 0.01,
    estimate: float = 0.5,
    lower: float = 0.1,
    upper: float = 0.9,
    adjusted_level: float = 0.9833,
    scale: str = "log_odds_ratio",
) -> ComparisonResult:
    """Build a ComparisonResult with sensible defaults."""
    return ComparisonResult(
        label=label,
        estimate=estimate,
        lower=lower,
        upper=upper,
        p_value=p_value,
        adjusted_level=adjusted_level,
        scale=scale,
    )


def make_failure(label: str, category: str = "degenerate_table") -> ComparisonFailure:
    return ComparisonFailure(label=label, category=category, message="zero marginal")
