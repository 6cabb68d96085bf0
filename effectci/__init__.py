"""
effectci — noncentral confidence intervals for effect sizes across families
of related comparisons.

Subpackages
-----------
intervals  — exact odds-ratio and noncentral standardized-mean capabilities
analysis   — partition selector, family-adjusted calculator, aggregator,
             export and forest plots

Errors live in ``effectci.errors``.
"""

__version__ = "0.1.0"
