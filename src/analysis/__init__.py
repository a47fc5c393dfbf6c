"""
Analysis package — summary statistics, bootstrap CIs and hypothesis tests.

Public API surface:

    Outcome type:
        Outcome, NotComputableError

    Aggregation:
        summarize, summarize_long, reduce_values, quantile, parse_reduction,
        quantile_name, ordered_groups, Summary

    Bootstrap:
        bootstrap_mean_ci, bootstrap_mean_ci_outcome, grouped_bootstrap_ci,
        make_rng

    Hypothesis tests:
        residual_normality, kruskal_wallis, pairwise_wilcoxon, art_anova,
        samples_by

    Report tables:
        generate_metric_tables, generate_descriptive_table,
        generate_quantile_table, generate_cost_effectiveness_table,
        generate_correlation_matrix, export_summary_tables

    Test battery and failures:
        run_all_statistical_tests, FailureSummary
"""

from .aggregation import (
    Summary,
    ordered_groups,
    parse_reduction,
    quantile,
    quantile_name,
    reduce_values,
    summarize,
    summarize_long,
)
from .bootstrap import (
    bootstrap_mean_ci,
    bootstrap_mean_ci_outcome,
    grouped_bootstrap_ci,
    make_rng,
)
from .failures import FailureSummary
from .hypothesis import (
    art_anova,
    kruskal_wallis,
    pairwise_wilcoxon,
    residual_normality,
    samples_by,
)
from .outcome import NotComputableError, Outcome
from .performance import (
    export_summary_tables,
    generate_correlation_matrix,
    generate_cost_effectiveness_table,
    generate_descriptive_table,
    generate_metric_tables,
    generate_quantile_table,
)
from .statistics import flatten_test_results, run_all_statistical_tests

__all__ = [
    # outcome
    "Outcome",
    "NotComputableError",
    # aggregation
    "Summary",
    "ordered_groups",
    "parse_reduction",
    "quantile",
    "quantile_name",
    "reduce_values",
    "summarize",
    "summarize_long",
    # bootstrap
    "bootstrap_mean_ci",
    "bootstrap_mean_ci_outcome",
    "grouped_bootstrap_ci",
    "make_rng",
    # hypothesis tests
    "art_anova",
    "kruskal_wallis",
    "pairwise_wilcoxon",
    "residual_normality",
    "samples_by",
    # report tables
    "export_summary_tables",
    "generate_correlation_matrix",
    "generate_cost_effectiveness_table",
    "generate_descriptive_table",
    "generate_metric_tables",
    "generate_quantile_table",
    # battery
    "flatten_test_results",
    "run_all_statistical_tests",
    "FailureSummary",
]
