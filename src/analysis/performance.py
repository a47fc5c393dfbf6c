"""
Chart-ready summary tables for the report.

Every table is keyed by size × group and iterates in the declared category
order, so CSV rows, chart bars and Word tables all line up.  CIs come from
the single bootstrap estimator, drawing from one generator supplied by the
caller so the whole report is reproducible from a single seed.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from src.data.config import NUMERIC_COLUMNS

from .aggregation import Summary, summarize
from .bootstrap import RandomSource, grouped_bootstrap_ci, make_rng
from .config import (
    CI_ALPHA,
    DEFAULT_REDUCTIONS,
    MB_PER_GB,
    N_RESAMPLES,
    QUANTILE_REDUCTIONS,
    RESULTS_DIR,
    SUMMARY_KEYS,
    SUMMARY_METRICS,
)
from .failures import FailureSummary


# ---------------------------------------------------------------------------
# Mean / median / CI per metric
# ---------------------------------------------------------------------------

def generate_metric_table(
    runs_df: pd.DataFrame,
    metric: str,
    rng: RandomSource = None,
    n_resamples: int = N_RESAMPLES,
    alpha: float = CI_ALPHA,
) -> Summary:
    """
    Size × group table for one metric: n, mean, median, bootstrap CI.

    Returns:
        Summary with columns size, group, n, mean, median, ci_lower,
        ci_upper.  Not-computable cells from both the median and the CI are
        carried in ``not_computable``.
    """
    ci = grouped_bootstrap_ci(runs_df, SUMMARY_KEYS, metric, n_resamples, alpha, rng)
    medians = summarize(runs_df, SUMMARY_KEYS, metric, ["median"])

    table = ci.table.copy()
    table.insert(table.columns.get_loc("mean") + 1, "median",
                 medians.table[f"{metric}_median"].to_numpy())
    return Summary(table, ci.not_computable + medians.not_computable)


def generate_metric_tables(
    runs_df: pd.DataFrame,
    metrics: list[str] = SUMMARY_METRICS,
    rng: RandomSource = None,
    n_resamples: int = N_RESAMPLES,
    alpha: float = CI_ALPHA,
) -> dict[str, Summary]:
    """One :func:`generate_metric_table` per metric, sharing one generator."""
    generator = make_rng(rng)
    return {
        metric: generate_metric_table(runs_df, metric, generator, n_resamples, alpha)
        for metric in metrics
    }


# ---------------------------------------------------------------------------
# Descriptive and quantile tables
# ---------------------------------------------------------------------------

def generate_descriptive_table(
    runs_df: pd.DataFrame,
    metrics: list[str] = SUMMARY_METRICS,
) -> Summary:
    """count / mean / std / median / min / max per size × group."""
    return summarize(runs_df, SUMMARY_KEYS, metrics, DEFAULT_REDUCTIONS)


def generate_quantile_table(
    runs_df: pd.DataFrame,
    metrics: list[str] = SUMMARY_METRICS,
) -> Summary:
    """min / q25 / median / q75 / max per size × group (boxplot companion)."""
    return summarize(runs_df, SUMMARY_KEYS, metrics, QUANTILE_REDUCTIONS)


# ---------------------------------------------------------------------------
# Cost-effectiveness and correlation
# ---------------------------------------------------------------------------

def _ratio(
    numerator: pd.Series,
    denominator: pd.Series,
    keys: pd.DataFrame,
    name: str,
    failures: list[dict],
) -> pd.Series:
    valid = numerator.notna() & denominator.notna() & (denominator > 0)
    for idx in keys.index[~valid.to_numpy()]:
        failures.append({
            **keys.loc[idx].to_dict(),
            "column": name,
            "reduction": "ratio",
            "reason": "denominator is missing or not positive",
        })
    return (numerator / denominator.where(valid)).astype(float)


def generate_cost_effectiveness_table(runs_df: pd.DataFrame) -> Summary:
    """
    Mean accuracy against its resource cost per size × group.

    Columns: size, group, n, accuracy, gpu_peak_gb, latency, throughput,
    accuracy_per_gb (accuracy / peak GPU GB) and accuracy_per_latency
    (accuracy / sec-per-example).
    """
    means = summarize(
        runs_df,
        SUMMARY_KEYS,
        ["accuracy", "gpu_peak_mem_mb", "latency", "throughput"],
        ["mean"],
    )
    means_table = means.table
    failures = list(means.not_computable)

    table = means_table[SUMMARY_KEYS + ["n"]].copy()
    table["accuracy"] = means_table["accuracy_mean"]
    table["gpu_peak_gb"] = means_table["gpu_peak_mem_mb_mean"] / MB_PER_GB
    table["latency"] = means_table["latency_mean"]
    table["throughput"] = means_table["throughput_mean"]

    keys = table[SUMMARY_KEYS].astype(str)
    table["accuracy_per_gb"] = _ratio(
        table["accuracy"], table["gpu_peak_gb"], keys, "accuracy_per_gb", failures
    )
    table["accuracy_per_latency"] = _ratio(
        table["accuracy"], table["latency"], keys, "accuracy_per_latency", failures
    )
    return Summary(table, failures)


def generate_correlation_matrix(
    runs_df: pd.DataFrame,
    metrics: list[str] = NUMERIC_COLUMNS,
) -> Summary:
    """
    Spearman rank correlation between metrics over all runs.

    Pairs involving a constant metric have no correlation; they stay NaN
    and are listed as not computable.
    """
    corr = runs_df[metrics].astype(float).corr(method="spearman")
    failures = [
        {"column": f"{a}~{b}", "reduction": "spearman",
         "reason": "a metric is constant or has too few paired observations"}
        for i, a in enumerate(metrics)
        for b in metrics[i:]
        if np.isnan(corr.loc[a, b])
    ]
    return Summary(corr, failures)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def export_summary_tables(
    runs_df: pd.DataFrame,
    output_dir: Path = RESULTS_DIR,
    rng: RandomSource = None,
    failures: FailureSummary | None = None,
    n_resamples: int = N_RESAMPLES,
) -> dict:
    """
    Generate and export every summary table to CSV.

    Args:
        runs_df: Normalized runs table.
        output_dir: Directory for output files.
        rng: Generator or seed for all bootstrap CIs.
        failures: Collector for not-computable cells (created if omitted).
        n_resamples: Bootstrap resamples per CI.

    Returns:
        Dict with keys: metrics (metric → DataFrame), descriptive,
        quantiles, cost_effectiveness, correlation.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    failures = failures if failures is not None else FailureSummary()
    generator = make_rng(rng)

    metric_tables = generate_metric_tables(
        runs_df, rng=generator, n_resamples=n_resamples
    )
    for metric, summary in metric_tables.items():
        failures.record_summary(f"summary:{metric}", summary)
        summary.table.to_csv(output_dir / f"summary_{metric}.csv", index=False)

    descriptive = failures.record_summary("descriptive", generate_descriptive_table(runs_df))
    descriptive.table.to_csv(output_dir / "descriptive_statistics.csv", index=False)

    quantiles = failures.record_summary("quantiles", generate_quantile_table(runs_df))
    quantiles.table.to_csv(output_dir / "quantiles.csv", index=False)

    cost = failures.record_summary(
        "cost_effectiveness", generate_cost_effectiveness_table(runs_df)
    )
    cost.table.to_csv(output_dir / "cost_effectiveness.csv", index=False)

    correlation = failures.record_summary("correlation", generate_correlation_matrix(runs_df))
    correlation.table.to_csv(output_dir / "correlation_spearman.csv")

    print(f"Summary tables exported to {output_dir}")
    return {
        "metrics": {metric: s.table for metric, s in metric_tables.items()},
        "descriptive": descriptive.table,
        "quantiles": quantiles.table,
        "cost_effectiveness": cost.table,
        "correlation": correlation.table,
    }
