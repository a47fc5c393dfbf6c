"""
Aggregation engine: group-by summaries over the runs table.

Groups are always emitted in the declared category order of the key
columns (1B, 3B, 11B; Base BF16, Base 4-bit, FT 4-bit), never in
appearance or hash order.  Key combinations with no rows are not emitted,
and rows sharing a key are merged into a single summary row.

Reductions are named:

    count, mean, std, median, min, max   plain reductions
    q<pct>                               type-7 quantile at pct/100,
                                         e.g. q25, q2.5, q99.5

Missing values in the key or in the aggregated column are excluded from
that computation only.  A cell that cannot be computed (no observations,
standard deviation of a single run) is left as NaN in the table *and*
listed in ``Summary.not_computable`` with its reason.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

import numpy as np
import pandas as pd

from src.data.config import CATEGORY_ORDERS

from .config import DEFAULT_REDUCTIONS
from .outcome import Outcome

PLAIN_REDUCTIONS: tuple[str, ...] = ("count", "mean", "std", "median", "min", "max")


@dataclass
class Summary:
    """A summary table plus the cells that could not be computed."""

    table: pd.DataFrame
    not_computable: list[dict] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.not_computable


# ---------------------------------------------------------------------------
# Reductions
# ---------------------------------------------------------------------------

def quantile_name(p: float) -> str:
    """Reduction name for the p-th quantile (0.25 → 'q25', 0.005 → 'q0.5')."""
    return f"q{p * 100:g}"


def parse_reduction(name: str) -> tuple[str, float | None]:
    """
    Split a reduction name into (kind, probability).

    Returns:
        ``(name, None)`` for plain reductions, ``("quantile", p)`` for q<pct>.

    Raises:
        ValueError: Unknown name or a quantile outside [0, 100].
    """
    if name in PLAIN_REDUCTIONS:
        return name, None
    if name.startswith("q"):
        try:
            p = float(name[1:]) / 100
        except ValueError:
            raise ValueError(f"Unknown reduction {name!r}") from None
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"Quantile reduction {name!r} is outside q0..q100")
        return "quantile", p
    raise ValueError(f"Unknown reduction {name!r}")


def _observed(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float).ravel()
    return arr[~np.isnan(arr)]


def quantile(values: Iterable[float], p: float) -> float:
    """
    Type-7 sample quantile: position 1 + p·(n−1), linear interpolation
    between the bracketing order statistics.  Missing values are ignored.

    Raises:
        ValueError: p outside [0, 1] or no observed values.
    """
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Quantile probability must be in [0, 1], got {p}")
    arr = _observed(values)
    if arr.size == 0:
        raise ValueError("Cannot take a quantile of an empty sample")
    return float(np.quantile(arr, p, method="linear"))


def reduce_values(values: Iterable[float], reduction: str) -> Outcome:
    """
    Apply one named reduction to a sample.

    Returns:
        Computed Outcome with a float (or int for ``count``), or a
        not-computable Outcome when the sample is too small.
    """
    kind, p = parse_reduction(reduction)
    arr = _observed(values)
    n = arr.size

    if kind == "count":
        return Outcome.computed(int(n))
    if n == 0:
        return Outcome.not_computable("no observations")

    if kind == "mean":
        return Outcome.computed(float(arr.mean()))
    if kind == "std":
        if n < 2:
            return Outcome.not_computable(
                "sample standard deviation needs at least 2 observations"
            )
        return Outcome.computed(float(arr.std(ddof=1)))
    if kind == "median":
        return Outcome.computed(float(np.median(arr)))
    if kind == "min":
        return Outcome.computed(float(arr.min()))
    if kind == "max":
        return Outcome.computed(float(arr.max()))
    return Outcome.computed(quantile(arr, p))


# ---------------------------------------------------------------------------
# Grouping in declared order
# ---------------------------------------------------------------------------

def as_key_list(by: str | Sequence[str]) -> list[str]:
    return [by] if isinstance(by, str) else list(by)


def with_declared_order(df: pd.DataFrame, keys: Sequence[str]) -> pd.DataFrame:
    """
    Copy of ``df`` with each key column as an ordered categorical.

    Known columns (size, quant, group) take their declared order; any other
    key keeps the order of first appearance.  Rows missing a key are dropped.
    """
    ordered = df.copy()
    for key in keys:
        column = ordered[key]
        if isinstance(column.dtype, pd.CategoricalDtype):
            continue
        categories = CATEGORY_ORDERS.get(key) or list(pd.unique(column.dropna()))
        ordered[key] = pd.Categorical(column, categories=categories, ordered=True)
    return ordered.dropna(subset=list(keys))


def ordered_groups(
    df: pd.DataFrame,
    by: str | Sequence[str],
) -> Iterator[tuple[tuple, pd.DataFrame]]:
    """Yield ``(key_tuple, rows)`` for each observed key in declared order."""
    keys = as_key_list(by)
    ordered = with_declared_order(df, keys)
    for key, rows in ordered.groupby(keys, observed=True, sort=True):
        yield (key if isinstance(key, tuple) else (key,)), rows


def restore_key_order(
    table: pd.DataFrame,
    source: pd.DataFrame,
    keys: Sequence[str],
) -> pd.DataFrame:
    ordered = with_declared_order(source, keys)
    for key in keys:
        table[key] = pd.Categorical(
            table[key], categories=ordered[key].cat.categories, ordered=True
        )
    return table


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def summarize(
    df: pd.DataFrame,
    by: str | Sequence[str],
    columns: str | Sequence[str],
    reductions: Sequence[str] = DEFAULT_REDUCTIONS,
) -> Summary:
    """
    One summary row per observed key combination.

    Args:
        df: Runs table.
        by: Key column(s), e.g. ``["size", "group"]``.
        columns: Numeric column(s) to reduce.
        reductions: Reduction names (see module docstring).

    Returns:
        Summary whose table has the key columns, ``n`` (rows in the group),
        and one ``<column>_<reduction>`` column per pair.
    """
    keys = as_key_list(by)
    columns = as_key_list(columns)
    for name in reductions:
        parse_reduction(name)

    value_columns = [f"{c}_{r}" for c in columns for r in reductions]
    rows: list[dict] = []
    failures: list[dict] = []

    for key, group in ordered_groups(df, keys):
        key_fields = dict(zip(keys, key))
        row = {**key_fields, "n": len(group)}
        for column in columns:
            for name in reductions:
                outcome = reduce_values(group[column], name)
                row[f"{column}_{name}"] = outcome.value if outcome.ok else np.nan
                if not outcome.ok:
                    failures.append({
                        **key_fields,
                        "column": column,
                        "reduction": name,
                        "reason": outcome.reason,
                    })
        rows.append(row)

    table = pd.DataFrame(rows, columns=keys + ["n"] + value_columns)
    return Summary(restore_key_order(table, df, keys), failures)


def summarize_long(
    df: pd.DataFrame,
    by: str | Sequence[str],
    columns: str | Sequence[str],
    reductions: Sequence[str] = DEFAULT_REDUCTIONS,
) -> pd.DataFrame:
    """
    Long-format view of :func:`summarize`: one row per (key, column) with
    one column per reduction.  Used by the HTML and Word tables.
    """
    keys = as_key_list(by)
    wide = summarize(df, keys, columns, reductions).table
    frames = []
    for column in as_key_list(columns):
        part = wide[keys + ["n"]].copy()
        part.insert(len(keys), "metric", column)
        for name in reductions:
            part[name] = wide[f"{column}_{name}"]
        frames.append(part)
    return pd.concat(frames, ignore_index=True)
