"""
Analysis pipeline runner — selector → calculator → aggregator → export/plot.

Runs the bundled example: pairwise exact odds-ratio intervals for the
Money / Time / Control incentive table, and noncentral standardized-mean
intervals for each paired-t family.  Every family gets its own
Bonferroni-adjusted interval level.

Usage (from project root):
    python -m effectci.analysis.runner

Or programmatically:
    from effectci.analysis.runner import run_full_analysis
    results = run_full_analysis()
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .aggregation import aggregate, export_result_table
from .calculator import compute_family
from .config import (
    DEFAULT_P_ADJUST,
    DEFAULT_STRATEGY,
    EXAMPLE_REFERENCE_ROW,
    EXAMPLE_STATISTIC_FAMILIES,
    EXAMPLE_TABLE,
    EXAMPLE_TABLE_NAME,
    NOMINAL_ALPHA,
    PAIR_LABEL_FORMAT,
    RESULTS_DIR,
    STATISTIC_LABEL_FORMAT,
)
from .forest import plot_forest
from .models import ContingencyTable, ResultTable, StatisticFamily
from .partitions import select


def analyze_family(
    source: Union[ContingencyTable, StatisticFamily],
    nominal_alpha: float = NOMINAL_ALPHA,
    strategy: str = DEFAULT_STRATEGY,
    reference: Optional[str] = None,
    label_format: Optional[str] = None,
    p_adjust: str = DEFAULT_P_ADJUST,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
    exact=None,
    noncentral=None,
) -> ResultTable:
    """
    Run the three pipeline stages for one family.

    Args:
        source: ContingencyTable or StatisticFamily.
        nominal_alpha: Family-wise alpha.
        strategy: Partition strategy for tables.
        reference: Reference row for the ``'reference'`` strategy.
        label_format: Label template passed to :func:`select`.
        p_adjust: Secondary p-value correction for display.
        max_workers: Optional thread-pool size for the calculator.
        timeout: Optional per-entry timeout in seconds.
        exact: Optional exact-interval capability override.
        noncentral: Optional noncentral-t capability override.

    Returns:
        ResultTable in plan order.
    """
    plan = select(source, strategy=strategy, reference=reference, label_format=label_format)
    outcomes = compute_family(
        plan,
        nominal_alpha,
        exact=exact,
        noncentral=noncentral,
        max_workers=max_workers,
        timeout=timeout,
    )
    return aggregate(plan, outcomes, p_adjust=p_adjust, nominal_alpha=nominal_alpha)


def _print_table(table: ResultTable) -> None:
    level = 1.0 - table.nominal_alpha / table.family_size
    print(f"  Family size {table.family_size}, interval level {level:.4f}, "
          f"p-values adjusted by {table.p_adjust_method}")
    for row, p_adj in zip(table.rows, table.p_adjusted):
        if row.status != "ok":
            print(f"  {row.label}: FAILED [{row.category}] {row.message}")
            continue
        flag = "excludes 0" if row.excludes(0.0) else "includes 0"
        print(f"  {row.label}: {row.estimate:.3f} "
              f"[{row.lower:.3f}, {row.upper:.3f}] {flag}, "
              f"p={row.p_value:.4f}, p_adj={p_adj:.4f}")


def run_full_analysis(
    output_dir: Path = RESULTS_DIR,
    nominal_alpha: float = NOMINAL_ALPHA,
    plot: bool = True,
) -> dict:
    """
    Execute the example analysis and export every family's table.

    Args:
        output_dir: Root directory for exported tables and plots.
        nominal_alpha: Family-wise alpha used for every family.
        plot: If True, write a forest plot per family.

    Returns:
        Dict mapping family key → ResultTable.  Keys are
        ``'<table>_all_pairs'``, ``'<table>_vs_<reference>'`` and one per
        statistic family.
    """
    sep = "=" * 70
    print(f"\n{sep}")
    print("FAMILY-ADJUSTED NONCENTRAL INTERVALS")
    print(f"{sep}")

    output_dir.mkdir(parents=True, exist_ok=True)
    plot_dir = output_dir / "forest_plots"

    table = ContingencyTable.from_dict(EXAMPLE_TABLE, name=EXAMPLE_TABLE_NAME)
    families: dict[str, ResultTable] = {}

    # ── Odds ratios: all pairs ──
    print(f"\n--- {table.name}: all pairwise exact odds ratios (log scale) ---")
    families[f"{table.name}_all_pairs"] = analyze_family(
        table,
        nominal_alpha=nominal_alpha,
        strategy="all_pairs",
        label_format=PAIR_LABEL_FORMAT,
    )

    # ── Odds ratios: each condition vs. reference ──
    print(f"\n--- {table.name}: each condition vs. {EXAMPLE_REFERENCE_ROW} ---")
    families[f"{table.name}_vs_{EXAMPLE_REFERENCE_ROW}"] = analyze_family(
        table,
        nominal_alpha=nominal_alpha,
        strategy="reference",
        reference=EXAMPLE_REFERENCE_ROW,
        label_format=PAIR_LABEL_FORMAT,
    )

    # ── Standardized means from paired t statistics ──
    for family_name, records in EXAMPLE_STATISTIC_FAMILIES.items():
        print(f"\n--- {family_name}: noncentral standardized means ---")
        family = StatisticFamily.from_records(family_name, records)
        families[family_name] = analyze_family(
            family,
            nominal_alpha=nominal_alpha,
            label_format=STATISTIC_LABEL_FORMAT,
        )

    for key, result_table in families.items():
        print(f"\n{key}")
        _print_table(result_table)
        stem = key.replace(" ", "_").lower()
        export_result_table(result_table, output_dir=output_dir, stem=stem)
        if plot:
            path = plot_forest(result_table, output_path=plot_dir / f"{stem}.png")
            print(f"Forest plot written to {path}")

    print(f"\n{sep}")
    print(f"ALL FAMILIES COMPLETE — results in {output_dir}")
    print(sep)

    return families


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    run_full_analysis()
