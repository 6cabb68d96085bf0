"""
effectci.intervals — interval capabilities delegated to SciPy.

Module layout
-------------
config.py      — Confidence-level bounds and root-finding tolerances
exact.py       — ExactOddsRatioInterval (conditional OR, exact CI, Fisher p)
noncentral.py  — NoncentralStandardizedMeanInterval (noncentral t inversion)

Both capabilities expose a ``compute(...)`` method returning a plain dict
and may be replaced by any object with the same method (e.g. a test double).
"""

from .exact import ExactOddsRatioInterval
from .noncentral import NoncentralStandardizedMeanInterval, noncentral_t_limits

__all__ = [
    "ExactOddsRatioInterval",
    "NoncentralStandardizedMeanInterval",
    "noncentral_t_limits",
]
