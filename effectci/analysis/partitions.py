"""
Partition selection: turn a table or a statistic family into a ComparisonPlan.

The plan's length is the family size used for the alpha adjustment, so the
strategy chosen here directly determines how wide every interval will be.

Strategies for a ContingencyTable:
  all_pairs  — every unordered row pair (i, j), i < j, lexicographic order;
               C(N, 2) comparisons
  reference  — every other row against one reference row, table order;
               N - 1 comparisons

A StatisticFamily is already grouped by the caller; its plan is simply the
statistics in family order.
"""

from __future__ import annotations

from itertools import combinations
from typing import Optional, Union

from ..errors import InvalidInput
from .config import DEFAULT_STRATEGY, STRATEGIES
from .models import (
    ODDS_RATIO,
    STANDARDIZED_MEAN,
    ComparisonPlan,
    ContingencyTable,
    PlanEntry,
    StatisticFamily,
)


def _pair_indices(
    table: ContingencyTable,
    strategy: str,
    reference: Optional[str],
) -> list[tuple[int, int]]:
    if strategy == "all_pairs":
        return list(combinations(range(table.n_rows), 2))

    if strategy == "reference":
        if reference is None:
            raise InvalidInput("The 'reference' strategy needs a reference row name")
        ref = table.index_of(reference)
        return [(i, ref) for i in range(table.n_rows) if i != ref]

    raise InvalidInput(f"Unknown strategy {strategy!r}; expected one of {STRATEGIES}")


def _select_pairs(
    table: ContingencyTable,
    strategy: str,
    reference: Optional[str],
    label_format: Optional[str],
) -> ComparisonPlan:
    if table.n_rows < 2:
        raise InvalidInput(f"Contingency table needs at least 2 rows, got {table.n_rows}")

    entries = []
    for i, j in _pair_indices(table, strategy, reference):
        a, b = table.rows[i], table.rows[j]
        label = (
            label_format.format(family=table.name, a=a, b=b)
            if label_format else f"{a}-{b}"
        )
        entries.append(PlanEntry(
            label=label,
            kind=ODDS_RATIO,
            rows=(i, j),
            counts=(table.counts[i], table.counts[j]),
        ))
    return ComparisonPlan(family=table.name, entries=tuple(entries), strategy=strategy)


def _select_statistics(
    family: StatisticFamily,
    label_format: Optional[str],
) -> ComparisonPlan:
    if len(family) == 0:
        raise InvalidInput(f"Statistic family {family.name!r} is empty")

    entries = []
    for stat in family.statistics:
        label = (
            label_format.format(family=family.name, name=stat.name)
            if label_format else stat.name
        )
        entries.append(PlanEntry(label=label, kind=STANDARDIZED_MEAN, statistic=stat))
    return ComparisonPlan(family=family.name, entries=tuple(entries), strategy="family")


def select(
    source: Union[ContingencyTable, StatisticFamily],
    strategy: str = DEFAULT_STRATEGY,
    reference: Optional[str] = None,
    label_format: Optional[str] = None,
) -> ComparisonPlan:
    """
    Build the comparison plan for a table or a statistic family.

    Args:
        source: ContingencyTable (pairwise odds ratios) or StatisticFamily
            (one standardized mean per statistic).
        strategy: ``'all_pairs'`` or ``'reference'``; ignored for families.
        reference: Reference row name for the ``'reference'`` strategy.
        label_format: Optional label template.  Pairs use ``{family}``,
            ``{a}``, ``{b}``; statistics use ``{family}``, ``{name}``.

    Returns:
        ComparisonPlan whose ``family_size`` is the number of entries.

    Raises:
        InvalidInput: Fewer than 2 rows, empty family, unknown strategy or
            reference row, unsupported source, or duplicate labels.
    """
    if isinstance(source, ContingencyTable):
        plan = _select_pairs(source, strategy, reference, label_format)
    elif isinstance(source, StatisticFamily):
        plan = _select_statistics(source, label_format)
    else:
        raise InvalidInput(
            f"Cannot build a plan from {type(source).__name__}; "
            "expected ContingencyTable or StatisticFamily"
        )

    labels = plan.labels
    if len(set(labels)) != len(labels):
        raise InvalidInput(f"Plan labels are not unique: {labels}")
    return plan
