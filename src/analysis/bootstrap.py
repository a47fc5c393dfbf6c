"""
Percentile bootstrap confidence intervals for the mean.

This is the only bootstrap implementation in the project; every table and
chart that shows a CI calls :func:`bootstrap_mean_ci` (directly or through
:func:`grouped_bootstrap_ci`).

Randomness is always explicit.  Each call takes either a
``numpy.random.Generator`` held by the caller or a seed used to build a
fresh one; there is no module-level generator.  Passing one generator to a
sequence of calls makes the whole sequence reproducible from a single seed.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from .aggregation import (
    Summary,
    as_key_list,
    ordered_groups,
    quantile,
    restore_key_order,
)
from .config import CI_ALPHA, N_RESAMPLES
from .outcome import Outcome

RandomSource = np.random.Generator | int | None


def make_rng(random_source: RandomSource = None) -> np.random.Generator:
    """Return the generator as-is, or build one from a seed (None = fresh entropy)."""
    if isinstance(random_source, np.random.Generator):
        return random_source
    return np.random.default_rng(random_source)


def bootstrap_mean_ci(
    x: Iterable[float],
    n_resamples: int = N_RESAMPLES,
    alpha: float = CI_ALPHA,
    rng: RandomSource = None,
) -> tuple[float, float]:
    """
    Two-sided percentile bootstrap CI for the mean of ``x``.

    Draws ``n_resamples`` resamples of size ``len(x)`` with replacement,
    takes each resample's mean, and returns the type-7 quantiles of those
    means at ``alpha/2`` and ``1 - alpha/2``.

    Args:
        x: Sample (at least one value, no NaN).
        n_resamples: Number of bootstrap resamples R.
        alpha: Significance level; 0.01 gives a 99% interval.
        rng: Generator or seed (see module docstring).

    Returns:
        ``(lower, upper)`` with ``lower <= upper``.  A sample with a single
        distinct value returns exactly ``(c, c)``.

    Raises:
        ValueError: Empty sample, NaN in the sample, ``n_resamples < 1``,
            or ``alpha`` outside (0, 1).
    """
    sample = np.asarray(x, dtype=float).ravel()
    if sample.size == 0:
        raise ValueError("bootstrap_mean_ci needs a non-empty sample")
    if np.isnan(sample).any():
        raise ValueError("bootstrap_mean_ci sample contains NaN; drop missing values first")
    if n_resamples < 1:
        raise ValueError(f"n_resamples must be >= 1, got {n_resamples}")
    if not 0.0 < alpha < 1.0:
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")

    if np.all(sample == sample[0]):
        c = float(sample[0])
        return (c, c)

    generator = make_rng(rng)
    n = sample.size
    indices = generator.integers(0, n, size=(n_resamples, n))
    means = sample[indices].mean(axis=1)

    lower = quantile(means, alpha / 2)
    upper = quantile(means, 1 - alpha / 2)
    return (lower, max(lower, upper))


def bootstrap_mean_ci_outcome(
    x: Iterable[float],
    n_resamples: int = N_RESAMPLES,
    alpha: float = CI_ALPHA,
    rng: RandomSource = None,
) -> Outcome:
    """
    Report-cell wrapper: drops missing values, and returns a not-computable
    Outcome for an empty sample instead of raising.
    """
    sample = np.asarray(x, dtype=float).ravel()
    sample = sample[~np.isnan(sample)]
    if sample.size == 0:
        return Outcome.not_computable("no observations to resample")
    return Outcome.computed(bootstrap_mean_ci(sample, n_resamples, alpha, rng))


def grouped_bootstrap_ci(
    df: pd.DataFrame,
    by: str | Sequence[str],
    column: str,
    n_resamples: int = N_RESAMPLES,
    alpha: float = CI_ALPHA,
    rng: RandomSource = None,
) -> Summary:
    """
    Mean and bootstrap CI of ``column`` for each key, in declared order.

    All groups draw from the same generator, so one seed reproduces the
    whole table.

    Returns:
        Summary with columns: keys..., n, mean, ci_lower, ci_upper.
    """
    keys = as_key_list(by)
    generator = make_rng(rng)
    rows: list[dict] = []
    failures: list[dict] = []

    for key, group in ordered_groups(df, keys):
        key_fields = dict(zip(keys, key))
        values = group[column].dropna().to_numpy(dtype=float)
        outcome = bootstrap_mean_ci_outcome(values, n_resamples, alpha, generator)
        lower, upper = outcome.value if outcome.ok else (np.nan, np.nan)
        mean = float(values.mean()) if values.size else np.nan
        if outcome.ok:
            # summation error can push the mean of a constant cell past (c, c)
            mean = min(max(mean, lower), upper)
        rows.append({
            **key_fields,
            "n": int(values.size),
            "mean": mean,
            "ci_lower": lower,
            "ci_upper": upper,
        })
        if not outcome.ok:
            failures.append({
                **key_fields,
                "column": column,
                "reduction": "bootstrap_ci",
                "reason": outcome.reason,
            })

    table = pd.DataFrame(rows, columns=keys + ["n", "mean", "ci_lower", "ci_upper"])
    return Summary(restore_key_order(table, df, keys), failures)
