"""
Noncentral standardized-mean interval from a t statistic.

Treats the observed t as the noncentrality parameter of a noncentral t
distribution with ``df = n - 1`` and finds the ncp limits whose tail
probabilities at the observed t equal alpha/2:

    nct.cdf(t, df, ncp_lower) = 1 - alpha/2
    nct.cdf(t, df, ncp_upper) = alpha/2

The standardized mean and its bounds are the ncp values divided by
``sqrt(n)``.  ``nct.cdf`` is decreasing in ncp, so each limit is a single
root located by bracket expansion followed by ``scipy.optimize.brentq``.
"""

from __future__ import annotations

import math
from typing import Callable

from scipy import optimize, stats

from ..errors import InvalidStatistic
from .config import (
    MIN_SAMPLE_SIZE,
    NCP_BRACKET_STEP,
    NCP_MAX_EXPANSIONS,
    NCP_MAX_ITER,
    NCP_XTOL,
)
from .exact import validate_confidence_level


def _bracket_decreasing_root(
    func: Callable[[float], float],
    center: float,
) -> tuple[float, float]:
    """Widen ``[center - w, center + w]`` until ``func`` changes sign (+ to -)."""
    width = NCP_BRACKET_STEP
    for _ in range(NCP_MAX_EXPANSIONS):
        lo, hi = center - width, center + width
        if func(lo) > 0 and func(hi) < 0:
            return lo, hi
        width *= 2
    raise InvalidStatistic(
        f"Could not bracket the noncentrality limit around t={center}"
    )


def noncentral_t_limits(
    t_value: float,
    df: float,
    confidence_level: float,
) -> tuple[float, float]:
    """
    Two-sided confidence limits for the noncentrality parameter.

    Args:
        t_value: Observed t statistic.
        df: Degrees of freedom (> 0).
        confidence_level: Two-sided level in (0, 1).

    Returns:
        (ncp_lower, ncp_upper).
    """
    alpha = 1.0 - confidence_level
    limits = []
    for target in (1.0 - alpha / 2.0, alpha / 2.0):
        def tail(ncp: float, target: float = target) -> float:
            return float(stats.nct.cdf(t_value, df, ncp)) - target

        lo, hi = _bracket_decreasing_root(tail, t_value)
        limits.append(
            float(optimize.brentq(tail, lo, hi, xtol=NCP_XTOL, maxiter=NCP_MAX_ITER))
        )
    return limits[0], limits[1]


class NoncentralStandardizedMeanInterval:
    """
    Noncentral-standardized-mean capability.

    Stateless; a single instance may be shared across threads.
    """

    name = "noncentral_standardized_mean"

    def compute(self, ncp: float, n: int, confidence_level: float) -> dict:
        """
        Standardized mean (t / sqrt(n)) with a noncentral-t interval.

        Args:
            ncp: Observed t statistic, used as the noncentrality parameter.
            n: Sample size (number of pairs for a paired t test).
            confidence_level: Two-sided confidence level in (0, 1).

        Returns:
            Dict with ``standardized_mean_estimate``, ``interval``
            (lower, upper) and the two-sided central-t ``p_value``.

        Raises:
            InvalidStatistic: ``n`` below 2 or a non-finite statistic.
            InvalidInput: Confidence level outside (0, 1).
        """
        if isinstance(n, bool) or int(n) != n or n < MIN_SAMPLE_SIZE:
            raise InvalidStatistic(f"Sample size must be an integer > 1, got {n}")
        t_value = float(ncp)
        if not math.isfinite(t_value):
            raise InvalidStatistic(f"Test statistic must be finite, got {ncp}")
        level = validate_confidence_level(confidence_level)

        n = int(n)
        df = n - 1
        root_n = math.sqrt(n)
        ncp_lower, ncp_upper = noncentral_t_limits(t_value, df, level)
        p_value = float(2.0 * stats.t.sf(abs(t_value), df))

        return {
            "standardized_mean_estimate": t_value / root_n,
            "interval": (ncp_lower / root_n, ncp_upper / root_n),
            "p_value": min(1.0, max(0.0, p_value)),
        }
