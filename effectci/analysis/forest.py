"""Forest-plot rendering for a ResultTable."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from .config import FOREST_PLOT_DIR  # noqa: E402
from .models import ResultTable  # noqa: E402

SCALE_AXIS_LABELS: dict[str, str] = {
    "log_odds_ratio": "log odds ratio",
    "standardized_mean": "standardized mean",
}


def plot_forest(
    table: ResultTable,
    output_path: Optional[Path] = None,
    title: Optional[str] = None,
    reference: float = 0.0,
) -> Path:
    """
    Draw estimates and family-adjusted intervals, one row per comparison.

    Rows follow table order from top to bottom.  Failed rows keep their
    label and show "n/a" instead of a marker.

    Args:
        table: Output of :func:`effectci.analysis.aggregation.aggregate`.
        output_path: PNG destination; defaults to
            ``FOREST_PLOT_DIR / '<family>.png'``.
        title: Plot title; defaults to the family name and interval level.
        reference: Position of the vertical no-effect line.

    Returns:
        Path of the written PNG.
    """
    if output_path is None:
        stem = (table.family or "comparisons").replace(" ", "_").lower()
        output_path = FOREST_PLOT_DIR / f"{stem}.png"
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    n = len(table)
    y_positions = np.arange(n)[::-1]
    fig, ax = plt.subplots(figsize=(8, 1.2 + 0.5 * max(n, 1)))

    scales = set()
    levels = set()
    for y, row in zip(y_positions, table.rows):
        if row.status != "ok":
            ax.text(reference, y, "n/a", ha="center", va="center", color="grey")
            continue
        scales.add(row.scale)
        levels.add(round(row.adjusted_level, 4))
        ax.hlines(y, row.lower, row.upper, color="black", linewidth=1.5)
        ax.plot(row.estimate, y, marker="s", color="black", markersize=6)

    ax.axvline(reference, color="grey", linestyle="--", linewidth=1)
    ax.set_yticks(y_positions)
    ax.set_yticklabels(table.labels)
    ax.set_ylim(-1, n)

    if len(scales) == 1:
        ax.set_xlabel(SCALE_AXIS_LABELS.get(scales.pop(), "estimate"))
    else:
        ax.set_xlabel("estimate")

    if title is None:
        level_text = f" ({levels.pop():.2%} intervals)" if len(levels) == 1 else ""
        title = f"{table.family or 'Comparisons'}{level_text}"
    ax.set_title(title)

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
