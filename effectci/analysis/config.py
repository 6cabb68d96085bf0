"""
Analysis-layer configuration: family-wise alpha, defaults, example data, and
output paths.

The example data reproduces the worked tutorial: a three-group incentive
study (Money / Time / Control) scored as success vs. failure counts, plus
two families of paired t statistics whose standardized means are reported
with noncentral intervals.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]

RESULTS_DIR = PROJECT_ROOT / "results"
FOREST_PLOT_DIR = RESULTS_DIR / "forest_plots"

# ---------------------------------------------------------------------------
# Family-wise adjustment
# ---------------------------------------------------------------------------

NOMINAL_ALPHA: float = 0.05

DEFAULT_STRATEGY: str = "all_pairs"
STRATEGIES: tuple[str, ...] = ("all_pairs", "reference")

# Secondary (display-only) p-value correction applied by the aggregator.
# Independent of the interval-level confidence adjustment.
DEFAULT_P_ADJUST: str = "bonferroni"
P_ADJUST_METHODS: tuple[str, ...] = ("bonferroni", "holm", "fdr_bh", "none")

# Canonical column order for exported result tables
RESULT_COLUMNS: list[str] = [
    "label",
    "status",
    "scale",
    "estimate",
    "lower",
    "upper",
    "adjusted_level",
    "p_value",
    "p_adjusted",
    "error_category",
    "error_message",
]

# ---------------------------------------------------------------------------
# Example data
# ---------------------------------------------------------------------------

# (success, failure) counts per incentive condition
EXAMPLE_TABLE_NAME: str = "Incentive"
EXAMPLE_TABLE: dict[str, tuple[int, int]] = {
    "Money":   (28, 4),
    "Time":    (14, 19),
    "Control": (22, 11),
}
EXAMPLE_REFERENCE_ROW: str = "Control"

# Paired t statistics grouped by the caller into families:
# family name → [(statistic name, t value, number of pairs), ...]
EXAMPLE_STATISTIC_FAMILIES: dict[str, list[tuple[str, float, int]]] = {
    "Reading": [
        ("Pre-Post", 3.42, 24),
        ("Pre-FollowUp", 2.15, 24),
        ("Post-FollowUp", -0.87, 24),
    ],
    "Arithmetic": [
        ("Pre-Post", 4.10, 18),
        ("Pre-FollowUp", 2.76, 18),
        ("Post-FollowUp", -1.05, 18),
        ("Baseline-Pre", 0.31, 18),
    ],
}

# Label scheme used in exported tables and forest plots
PAIR_LABEL_FORMAT: str = "{family}: {a}-{b}"
STATISTIC_LABEL_FORMAT: str = "{family}: {name}"
