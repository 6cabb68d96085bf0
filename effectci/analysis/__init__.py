"""
Analysis package — family-adjusted interval pipeline.

Public API surface:

    Data model:
        ContingencyTable, TestStatistic, StatisticFamily, ComparisonPlan,
        PlanEntry, ComparisonResult, ComparisonFailure, ResultTable

    Partition selector:
        select

    Adjusted-interval calculator:
        family_adjusted_level, compute, compute_family

    Result aggregator:
        aggregate, adjust_p_values, export_result_table, format_markdown

    Rendering:
        plot_forest

    Runner:
        analyze_family, run_full_analysis
"""

from .aggregation import adjust_p_values, aggregate, export_result_table, format_markdown
from .calculator import compute, compute_family, family_adjusted_level
from .forest import plot_forest
from .models import (
    ComparisonFailure,
    ComparisonPlan,
    ComparisonResult,
    ContingencyTable,
    PlanEntry,
    ResultTable,
    StatisticFamily,
    TestStatistic,
)
from .partitions import select
from .runner import analyze_family, run_full_analysis

__all__ = [
    # data model
    "ContingencyTable",
    "TestStatistic",
    "StatisticFamily",
    "ComparisonPlan",
    "PlanEntry",
    "ComparisonResult",
    "ComparisonFailure",
    "ResultTable",
    # selector
    "select",
    # calculator
    "family_adjusted_level",
    "compute",
    "compute_family",
    # aggregator
    "aggregate",
    "adjust_p_values",
    "export_result_table",
    "format_markdown",
    # rendering
    "plot_forest",
    # runner
    "analyze_family",
    "run_full_analysis",
]
