"""
Result aggregation and tabular export.

aggregate() reassembles per-entry outcomes in plan order (whatever order
they were completed in), optionally re-labels them, and attaches a
secondary, display-only p-value correction.  That correction is kept in
its own ``p_adjusted`` column and never folded into the interval-level
``adjusted_level``.

export_result_table() writes a ResultTable as CSV, JSON and Markdown.
"""

from __future__ import annotations

import json
import math
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

import numpy as np

from ..errors import AggregationMismatch, InvalidInput
from .config import DEFAULT_P_ADJUST, NOMINAL_ALPHA, P_ADJUST_METHODS, RESULTS_DIR
from .models import ComparisonPlan, EntryOutcome, ResultTable


# ---------------------------------------------------------------------------
# Secondary p-value corrections
# ---------------------------------------------------------------------------

def bonferroni(p_values: list[float], family_size: int) -> list[float]:
    """Multiply by the family size and cap at 1.0."""
    return [min(1.0, p * family_size) for p in p_values]


def holm(p_values: list[float]) -> list[float]:
    indexed = sorted(enumerate(p_values), key=lambda x: x[1])
    m = len(p_values)
    adjusted = [0.0] * m
    running = 0.0
    for rank, (idx, p) in enumerate(indexed):
        running = max(running, min(1.0, p * (m - rank)))
        adjusted[idx] = running
    return adjusted


def benjamini_hochberg(p_values: list[float]) -> list[float]:
    indexed = sorted(enumerate(p_values), key=lambda x: x[1])
    m = len(p_values)
    adjusted = [0.0] * m
    running = 1.0
    for rank in range(m, 0, -1):
        idx, p = indexed[rank - 1]
        running = min(running, p * m / rank)
        adjusted[idx] = min(1.0, running)
    return adjusted


def adjust_p_values(
    p_values: Sequence[Optional[float]],
    method: str,
    family_size: int,
) -> list[Optional[float]]:
    """
    Apply ``method`` to the available p-values; ``None`` stays ``None``.

    Bonferroni multiplies by the full ``family_size`` (failed entries still
    count toward the family); Holm and BH rank only the available values.
    """
    if method not in P_ADJUST_METHODS:
        raise InvalidInput(f"Unknown p_adjust method {method!r}; expected one of {P_ADJUST_METHODS}")

    present = [(i, p) for i, p in enumerate(p_values) if p is not None]
    values = [p for _, p in present]

    if method == "none":
        adjusted = list(values)
    elif method == "bonferroni":
        adjusted = bonferroni(values, family_size)
    elif method == "holm":
        adjusted = holm(values)
    else:
        adjusted = benjamini_hochberg(values)

    out: list[Optional[float]] = [None] * len(p_values)
    for (i, _), adj in zip(present, adjusted):
        out[i] = adj
    return out


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def _in_plan_order(
    plan: ComparisonPlan,
    per_entry_results: Union[Sequence[EntryOutcome], Mapping[int, EntryOutcome]],
) -> list[EntryOutcome]:
    if isinstance(per_entry_results, Mapping):
        expected = set(range(plan.family_size))
        got = set(per_entry_results.keys())
        if got != expected:
            raise AggregationMismatch(
                f"Result indices {sorted(got)} do not match plan positions "
                f"{sorted(expected)}"
            )
        return [per_entry_results[i] for i in range(plan.family_size)]

    results = list(per_entry_results)
    if len(results) != plan.family_size:
        raise AggregationMismatch(
            f"Plan has {plan.family_size} entries but {len(results)} results were given"
        )
    return results


def aggregate(
    plan: ComparisonPlan,
    per_entry_results: Union[Sequence[EntryOutcome], Mapping[int, EntryOutcome]],
    labels: Optional[Sequence[str]] = None,
    p_adjust: str = DEFAULT_P_ADJUST,
    nominal_alpha: float = NOMINAL_ALPHA,
) -> ResultTable:
    """
    Assemble per-entry outcomes into an ordered ResultTable.

    Args:
        plan: The plan that produced the results.
        per_entry_results: Outcomes in plan order, or a mapping from plan
            index to outcome collected in any completion order.
        labels: Optional replacement labels, applied positionally.
        p_adjust: Display-only p-value correction: ``'bonferroni'``
            (p × family_size, capped at 1), ``'holm'``, ``'fdr_bh'`` or
            ``'none'``.
        nominal_alpha: Family-wise alpha the intervals were computed at;
            recorded on the table.

    Returns:
        ResultTable with one row per plan entry, in plan order.

    Raises:
        AggregationMismatch: Result count / indices or label count do not
            match the plan.
        InvalidInput: Unknown ``p_adjust`` or duplicate/empty labels.
    """
    rows = _in_plan_order(plan, per_entry_results)

    if labels is not None:
        labels = list(labels)
        if len(labels) != plan.family_size:
            raise AggregationMismatch(
                f"Plan has {plan.family_size} entries but {len(labels)} labels were given"
            )
        if any(not isinstance(lbl, str) or not lbl.strip() for lbl in labels):
            raise InvalidInput(f"Labels must be non-empty strings: {labels}")
        if len(set(labels)) != len(labels):
            raise InvalidInput(f"Labels are not unique: {labels}")
        rows = [_relabel(row, label) for row, label in zip(rows, labels)]

    p_values = [getattr(row, "p_value", None) if row.status == "ok" else None for row in rows]
    p_adjusted = adjust_p_values(p_values, p_adjust, plan.family_size)

    return ResultTable(
        family=plan.family,
        rows=tuple(rows),
        p_adjusted=tuple(p_adjusted),
        p_adjust_method=p_adjust,
        nominal_alpha=nominal_alpha,
        family_size=plan.family_size,
    )


def _relabel(row: EntryOutcome, label: str) -> EntryOutcome:
    return replace(row, label=label)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _json_default(obj):
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def _clean(value):
    # NaN is not valid JSON
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _fmt(value, digits: int = 3) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "—"
    return f"{value:.{digits}f}"


def format_markdown(table: ResultTable) -> str:
    """Render a ResultTable as a Markdown table with a short header."""
    lines: list[str] = [
        f"## {table.family or 'Comparisons'}\n",
        f"- Family size: {table.family_size}",
        f"- Nominal alpha: {table.nominal_alpha}",
        f"- Interval level per comparison: "
        f"{_fmt(1.0 - table.nominal_alpha / table.family_size, 4)}",
        f"- Secondary p-value correction: {table.p_adjust_method}\n",
        "| Comparison | Estimate | Lower | Upper | p | p (adj.) | Status |",
        "|------------|----------|-------|-------|---|----------|--------|",
    ]
    for rec in table.to_records():
        status = rec["status"] if rec["status"] == "ok" else f"failed: {rec['error_category']}"
        lines.append(
            f"| {rec['label']} | {_fmt(rec['estimate'])} | {_fmt(rec['lower'])} | "
            f"{_fmt(rec['upper'])} | {_fmt(rec['p_value'], 4)} | "
            f"{_fmt(rec['p_adjusted'], 4)} | {status} |"
        )
    return "\n".join(lines) + "\n"


def export_result_table(
    table: ResultTable,
    output_dir: Path = RESULTS_DIR,
    stem: Optional[str] = None,
) -> dict[str, Path]:
    """
    Export a ResultTable as CSV, JSON and Markdown.

    Args:
        table: Output of :func:`aggregate`.
        output_dir: Directory for output files (created if missing).
        stem: File name stem; defaults to the family name.

    Returns:
        Dict mapping ``'csv'``, ``'json'``, ``'markdown'`` to written paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = stem or (table.family or "comparisons").replace(" ", "_").lower()

    paths = {
        "csv": output_dir / f"{stem}.csv",
        "json": output_dir / f"{stem}.json",
        "markdown": output_dir / f"{stem}.md",
    }

    table.to_frame().to_csv(paths["csv"], index=False)

    payload = {
        "family": table.family,
        "family_size": table.family_size,
        "nominal_alpha": table.nominal_alpha,
        "p_adjust_method": table.p_adjust_method,
        "rows": [{k: _clean(v) for k, v in rec.items()} for rec in table.to_records()],
    }
    with paths["json"].open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, default=_json_default)

    with paths["markdown"].open("w", encoding="utf-8") as fh:
        fh.write(format_markdown(table))

    print(f"Exported {table.family or 'comparisons'} ({len(table)} rows) to {output_dir}")
    return paths
