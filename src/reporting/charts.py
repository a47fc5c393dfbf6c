"""
Report charts: bar charts with bootstrap CIs, boxplots, interaction plots,
the metric correlation heatmap and the cost-effectiveness scatter.

Charts only draw tables that the analysis layer has already computed; no
statistic is recomputed here.  Every function writes one PNG and returns
its path.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from src.analysis.aggregation import ordered_groups  # noqa: E402
from src.analysis.config import CHARTS_DIR, CI_ALPHA  # noqa: E402

from .config import (  # noqa: E402
    BAR_WIDTH,
    CHART_METRICS,
    DPI,
    FIGSIZE,
    GROUP_COLORS,
    HEATMAP_FIGSIZE,
    INTERACTION_METRICS,
    METRIC_LABELS,
    SIZE_MARKERS,
)

STYLE = "seaborn-v0_8-darkgrid"


def _observed_levels(column: pd.Series) -> list[str]:
    present = set(column.astype(str))
    if isinstance(column.dtype, pd.CategoricalDtype):
        return [str(c) for c in column.cat.categories if str(c) in present]
    return list(pd.unique(column.astype(str)))


def _save(fig, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=DPI)
    plt.close(fig)
    return path


# ---------------------------------------------------------------------------
# Bar chart with CI error bars
# ---------------------------------------------------------------------------

def bar_chart_with_ci(metric_table: pd.DataFrame, metric: str, path: Path) -> Path:
    """
    Grouped bars of the mean per size, one bar per group, with the
    bootstrap CI as error bars.  Cells without a CI are drawn without bars.
    """
    sizes = _observed_levels(metric_table["size"])
    groups = _observed_levels(metric_table["group"])
    x = np.arange(len(sizes))
    offsets = (np.arange(len(groups)) - (len(groups) - 1) / 2) * BAR_WIDTH

    with plt.style.context(STYLE):
        fig, ax = plt.subplots(figsize=FIGSIZE)
        for offset, group in zip(offsets, groups):
            rows = metric_table[metric_table["group"].astype(str) == group]
            rows = rows.set_index(rows["size"].astype(str)).reindex(sizes)
            means = rows["mean"].to_numpy(dtype=float)
            yerr = np.clip(np.vstack([
                means - rows["ci_lower"].to_numpy(dtype=float),
                rows["ci_upper"].to_numpy(dtype=float) - means,
            ]), 0.0, None)
            ax.bar(
                x + offset, means, BAR_WIDTH, yerr=yerr, capsize=4,
                label=group, color=GROUP_COLORS.get(group), alpha=0.85,
                edgecolor="black", linewidth=0.8,
            )

        ax.set_xticks(x)
        ax.set_xticklabels(sizes)
        ax.set_xlabel("Model size", fontweight="bold")
        ax.set_ylabel(METRIC_LABELS.get(metric, metric), fontweight="bold")
        ax.set_title(
            f"{METRIC_LABELS.get(metric, metric)}: mean with "
            f"{100 * (1 - CI_ALPHA):g}% bootstrap CI",
            fontweight="bold",
        )
        ax.legend(title="Group", framealpha=0.9)
        return _save(fig, path)


# ---------------------------------------------------------------------------
# Boxplot
# ---------------------------------------------------------------------------

def boxplot(runs_df: pd.DataFrame, metric: str, path: Path) -> Path:
    """One box per observed size × group cell, in declared order."""
    data, labels, colors = [], [], []
    for (size, group), rows in ordered_groups(runs_df, ["size", "group"]):
        values = rows[metric].dropna().to_numpy(dtype=float)
        if values.size == 0:
            continue
        data.append(values)
        labels.append(f"{size}\n{group}")
        colors.append(GROUP_COLORS.get(str(group), "#999999"))

    with plt.style.context(STYLE):
        fig, ax = plt.subplots(figsize=FIGSIZE)
        if data:
            parts = ax.boxplot(data, patch_artist=True)
            for patch, color in zip(parts["boxes"], colors):
                patch.set_facecolor(color)
                patch.set_alpha(0.75)
            ax.set_xticks(np.arange(1, len(labels) + 1))
            ax.set_xticklabels(labels, fontsize=8)
        ax.set_ylabel(METRIC_LABELS.get(metric, metric), fontweight="bold")
        ax.set_title(f"{METRIC_LABELS.get(metric, metric)} by size and group",
                     fontweight="bold")
        return _save(fig, path)


# ---------------------------------------------------------------------------
# Interaction plot
# ---------------------------------------------------------------------------

def interaction_plot(metric_table: pd.DataFrame, metric: str, path: Path) -> Path:
    """Mean per size, one line per group (size × group interaction)."""
    sizes = _observed_levels(metric_table["size"])
    groups = _observed_levels(metric_table["group"])
    x = np.arange(len(sizes))

    with plt.style.context(STYLE):
        fig, ax = plt.subplots(figsize=FIGSIZE)
        for group in groups:
            rows = metric_table[metric_table["group"].astype(str) == group]
            means = (
                rows.set_index(rows["size"].astype(str))["mean"]
                .reindex(sizes)
                .to_numpy(dtype=float)
            )
            ax.plot(x, means, marker="o", linewidth=2, label=group,
                    color=GROUP_COLORS.get(group))

        ax.set_xticks(x)
        ax.set_xticklabels(sizes)
        ax.set_xlabel("Model size", fontweight="bold")
        ax.set_ylabel(f"Mean {METRIC_LABELS.get(metric, metric)}", fontweight="bold")
        ax.set_title(f"Interaction: size x group ({METRIC_LABELS.get(metric, metric)})",
                     fontweight="bold")
        ax.legend(title="Group", framealpha=0.9)
        return _save(fig, path)


# ---------------------------------------------------------------------------
# Correlation heatmap
# ---------------------------------------------------------------------------

def correlation_heatmap(corr: pd.DataFrame, path: Path) -> Path:
    """Spearman correlation matrix with annotated cells (NaN shown as 'n/c')."""
    labels = [METRIC_LABELS.get(c, c) for c in corr.columns]
    values = corr.to_numpy(dtype=float)

    fig, ax = plt.subplots(figsize=HEATMAP_FIGSIZE)
    image = ax.imshow(np.ma.masked_invalid(values), cmap="coolwarm", vmin=-1, vmax=1)
    fig.colorbar(image, ax=ax, label="Spearman ρ")

    ax.set_xticks(np.arange(len(labels)))
    ax.set_yticks(np.arange(len(labels)))
    ax.set_xticklabels(labels, rotation=45, ha="right", fontsize=8)
    ax.set_yticklabels(labels, fontsize=8)
    for i in range(values.shape[0]):
        for j in range(values.shape[1]):
            text = "n/c" if np.isnan(values[i, j]) else f"{values[i, j]:.2f}"
            ax.text(j, i, text, ha="center", va="center", fontsize=8)
    ax.set_title("Metric correlations (Spearman)", fontweight="bold")
    return _save(fig, path)


# ---------------------------------------------------------------------------
# Cost-effectiveness scatter
# ---------------------------------------------------------------------------

def cost_effectiveness_scatter(cost_table: pd.DataFrame, path: Path) -> Path:
    """Mean accuracy against mean peak GPU memory, coloured by group."""
    with plt.style.context(STYLE):
        fig, ax = plt.subplots(figsize=FIGSIZE)
        for row in cost_table.itertuples():
            if np.isnan(row.accuracy) or np.isnan(row.gpu_peak_gb):
                continue
            group, size = str(row.group), str(row.size)
            ax.scatter(
                row.gpu_peak_gb, row.accuracy, s=90,
                color=GROUP_COLORS.get(group), marker=SIZE_MARKERS.get(size, "o"),
                edgecolor="black", linewidth=0.8,
            )
            ax.annotate(f"{size} {group}", (row.gpu_peak_gb, row.accuracy),
                        textcoords="offset points", xytext=(6, 4), fontsize=8)

        ax.set_xlabel("Mean peak GPU memory (GB)", fontweight="bold")
        ax.set_ylabel("Mean accuracy", fontweight="bold")
        ax.set_title("Cost-effectiveness: accuracy vs. GPU memory", fontweight="bold")
        return _save(fig, path)


# ---------------------------------------------------------------------------
# All charts
# ---------------------------------------------------------------------------

def render_all_charts(
    runs_df: pd.DataFrame,
    tables: dict,
    output_dir: Path = CHARTS_DIR,
) -> dict[str, Path]:
    """
    Draw every report chart from the exported summary tables.

    Args:
        runs_df: Normalized runs (boxplots need the raw values).
        tables: Return value of ``export_summary_tables``.
        output_dir: Directory for PNG files.

    Returns:
        Dict of chart name → PNG path, in report order.
    """
    charts: dict[str, Path] = {}
    for metric in CHART_METRICS:
        metric_table = tables["metrics"].get(metric)
        if metric_table is None:
            continue
        charts[f"bar_{metric}"] = bar_chart_with_ci(
            metric_table, metric, output_dir / f"bar_{metric}.png"
        )
        charts[f"box_{metric}"] = boxplot(runs_df, metric, output_dir / f"box_{metric}.png")
        if metric in INTERACTION_METRICS:
            charts[f"interaction_{metric}"] = interaction_plot(
                metric_table, metric, output_dir / f"interaction_{metric}.png"
            )

    charts["correlation_heatmap"] = correlation_heatmap(
        tables["correlation"], output_dir / "correlation_heatmap.png"
    )
    charts["cost_effectiveness"] = cost_effectiveness_scatter(
        tables["cost_effectiveness"], output_dir / "cost_effectiveness.png"
    )

    print(f"Rendered {len(charts)} charts to {output_dir}")
    return charts
