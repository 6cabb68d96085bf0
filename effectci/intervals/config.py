"""
Numerical settings for the interval capabilities.

Centralized so the root-finding tolerances used to invert the noncentral t
distribution are not scattered through the solver code.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Confidence-level bounds
# ---------------------------------------------------------------------------

# Capabilities accept any level strictly inside (0, 1).
MIN_CONFIDENCE_LEVEL: float = 0.0
MAX_CONFIDENCE_LEVEL: float = 1.0

# ---------------------------------------------------------------------------
# Noncentral t inversion (brentq)
# ---------------------------------------------------------------------------

NCP_BRACKET_STEP: float = 2.0        # initial half-width around the observed t
NCP_MAX_EXPANSIONS: int = 40         # bracket doubles on every expansion
NCP_XTOL: float = 1e-10              # absolute tolerance on the ncp limit
NCP_MAX_ITER: int = 500

# Smallest sample size with a defined t distribution (df = n - 1 >= 1)
MIN_SAMPLE_SIZE: int = 2
