"""
Hypothesis test suite: residual normality, Kruskal–Wallis, pairwise
Wilcoxon rank-sum with Bonferroni correction, and the two-way aligned rank
transform (ART) ANOVA.

Every routine is stateless and returns an :class:`Outcome`.  Degenerate
input (too few groups, an empty group, constant data) yields a
not-computable Outcome with the reason; the routine never raises for it and
never substitutes NaN for a statistic.

Groups are passed either as a mapping ``{label: values}`` (Kruskal–Wallis,
pairwise) or as a runs table plus factor column(s) (normality, ART).  Use
:func:`samples_by` to turn a table into a mapping in declared order.
"""

from __future__ import annotations

from itertools import combinations
from typing import Mapping, Sequence

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from scipy import stats
from statsmodels.stats.anova import anova_lm

from .aggregation import ordered_groups, with_declared_order
from .config import ALPHA, MIN_NORMALITY_GROUP_SIZE
from .outcome import Outcome


# ---------------------------------------------------------------------------
# Input shaping
# ---------------------------------------------------------------------------

def samples_by(df: pd.DataFrame, response: str, factor: str) -> dict[str, np.ndarray]:
    """
    Split ``response`` by ``factor`` in declared order.

    Only observed factor levels are returned; missing responses are dropped,
    so a level whose runs all lack the response maps to an empty array.
    """
    return {
        str(key[0]): rows[response].dropna().to_numpy(dtype=float)
        for key, rows in ordered_groups(df, factor)
    }


def _clean_samples(samples: Mapping[str, Sequence[float]]) -> dict[str, np.ndarray]:
    cleaned = {}
    for label, values in samples.items():
        arr = np.asarray(values, dtype=float).ravel()
        cleaned[str(label)] = arr[~np.isnan(arr)]
    return cleaned


def _sample_problem(samples: dict[str, np.ndarray]) -> str | None:
    if len(samples) < 2:
        return f"needs at least 2 groups, got {len(samples)}"
    empty = [label for label, arr in samples.items() if arr.size == 0]
    if empty:
        return f"group(s) {empty} have no observations"
    return None


def _is_constant(values: np.ndarray) -> bool:
    return bool(values.size) and bool(np.all(values == values[0]))


def _complete_cases(df: pd.DataFrame, response: str, factors: Sequence[str]) -> pd.DataFrame:
    data = with_declared_order(df, factors).dropna(subset=[response])
    for factor in factors:
        data[factor] = data[factor].cat.remove_unused_categories()
    return data.reset_index(drop=True)


# ---------------------------------------------------------------------------
# Normality of one-way model residuals
# ---------------------------------------------------------------------------

def residual_normality(
    df: pd.DataFrame,
    response: str,
    factor: str,
    min_group_size: int = MIN_NORMALITY_GROUP_SIZE,
    alpha: float = ALPHA,
) -> Outcome:
    """
    Shapiro–Wilk test on the residuals of ``response ~ factor``.

    Fits the one-way fixed-effect model by OLS; each residual is the
    observation minus its group mean.

    Returns:
        Outcome with ``{"statistic", "p_value", "n", "normal"}``, or
        not computable when a group has fewer than ``min_group_size``
        observations or the residuals are constant.
    """
    data = _complete_cases(df, response, [factor])
    counts = data.groupby(factor, observed=True).size()
    if counts.empty:
        return Outcome.not_computable("no observations")

    small = [str(level) for level, n in counts.items() if n < min_group_size]
    if small:
        return Outcome.not_computable(
            f"group(s) {small} have fewer than {min_group_size} observations"
        )

    work = pd.DataFrame({"y": data[response].astype(float), "level": data[factor]})
    residuals = smf.ols("y ~ C(level)", data=work).fit().resid.to_numpy()

    scale = max(1.0, float(np.abs(work["y"]).max()))
    if residuals.size < 3:
        return Outcome.not_computable("fewer than 3 residuals")
    if np.ptp(residuals) <= 1e-12 * scale:
        return Outcome.not_computable("residuals are constant")

    w_stat, p_value = stats.shapiro(residuals)
    return Outcome.computed({
        "response": response,
        "factor": factor,
        "statistic": float(w_stat),
        "p_value": float(p_value),
        "n": int(residuals.size),
        "normal": bool(p_value >= alpha),
    })


# ---------------------------------------------------------------------------
# One-way rank test
# ---------------------------------------------------------------------------

def kruskal_wallis(
    samples: Mapping[str, Sequence[float]],
    alpha: float = ALPHA,
) -> Outcome:
    """
    Kruskal–Wallis H test across two or more independent groups.

    Returns:
        Outcome with ``{"statistic", "p_value", "df", "n_groups", "n_total",
        "significant"}``; not computable for fewer than 2 groups, an empty
        group, or when every observation is identical.
    """
    cleaned = _clean_samples(samples)
    problem = _sample_problem(cleaned)
    if problem:
        return Outcome.not_computable(problem)

    pooled = np.concatenate(list(cleaned.values()))
    if _is_constant(pooled):
        return Outcome.not_computable("all observations are identical")

    h_stat, p_value = stats.kruskal(*cleaned.values())
    return Outcome.computed({
        "statistic": float(h_stat),
        "p_value": float(p_value),
        "df": len(cleaned) - 1,
        "n_groups": len(cleaned),
        "n_total": int(pooled.size),
        "significant": bool(p_value < alpha),
    })


# ---------------------------------------------------------------------------
# Pairwise post-hoc
# ---------------------------------------------------------------------------

def pairwise_wilcoxon(
    samples: Mapping[str, Sequence[float]],
    alpha: float = ALPHA,
) -> Outcome:
    """
    Two-sided Wilcoxon rank-sum (Mann–Whitney U) test for every unordered
    pair of groups, Bonferroni-adjusted: ``min(1, p * n_comparisons)``.

    A pair whose pooled values are all identical has no test; it is listed
    under ``not_computable_pairs`` and left NaN in the matrices.

    Returns:
        Outcome with:
          - ``pairs``: DataFrame (group_a, group_b, u_statistic, p_value,
            p_adjusted, significant), one row per pair in declared order
          - ``raw_p`` / ``adjusted_p``: symmetric DataFrames indexed by
            group label, diagonal NaN (undefined)
          - ``n_comparisons``, ``not_computable_pairs``
    """
    cleaned = _clean_samples(samples)
    problem = _sample_problem(cleaned)
    if problem:
        return Outcome.not_computable(problem)

    labels = list(cleaned)
    pairs = list(combinations(labels, 2))
    n_comparisons = len(pairs)

    raw = pd.DataFrame(np.nan, index=labels, columns=labels)
    records: list[dict] = []
    skipped: list[dict] = []

    for group_a, group_b in pairs:
        a, b = cleaned[group_a], cleaned[group_b]
        if _is_constant(np.concatenate([a, b])):
            skipped.append({
                "group_a": group_a,
                "group_b": group_b,
                "reason": "both groups hold the same single value",
            })
            continue

        result = stats.mannwhitneyu(a, b, alternative="two-sided")
        p_value = float(result.pvalue)
        p_adjusted = min(1.0, p_value * n_comparisons)
        raw.loc[group_a, group_b] = raw.loc[group_b, group_a] = p_value
        records.append({
            "group_a": group_a,
            "group_b": group_b,
            "u_statistic": float(result.statistic),
            "p_value": p_value,
            "p_adjusted": p_adjusted,
            "significant": p_adjusted < alpha,
        })

    if not records:
        return Outcome.not_computable("no pair of groups could be compared")

    return Outcome.computed({
        "method": "wilcoxon_rank_sum",
        "correction": "bonferroni",
        "n_comparisons": n_comparisons,
        "pairs": pd.DataFrame(records),
        "raw_p": raw,
        "adjusted_p": (raw * n_comparisons).clip(upper=1.0),
        "not_computable_pairs": skipped,
    })


# ---------------------------------------------------------------------------
# Two-way aligned rank transform ANOVA
# ---------------------------------------------------------------------------

_ART_FORMULA = "ranked ~ C(a, Sum) * C(b, Sum)"
_ART_TERMS = {
    "a":   "C(a, Sum)",
    "b":   "C(b, Sum)",
    "a:b": "C(a, Sum):C(b, Sum)",
}


def _aligned_responses(work: pd.DataFrame) -> dict[str, pd.Series]:
    """
    Align the response for each effect: residual from the cell mean plus
    that effect's estimated contribution (marginal or interaction means
    relative to the grand mean).
    """
    y = work["y"]
    grand = y.mean()
    cell_mean = work.groupby(["a", "b"], observed=True)["y"].transform("mean")
    mean_a = work.groupby("a", observed=True)["y"].transform("mean")
    mean_b = work.groupby("b", observed=True)["y"].transform("mean")
    residual = y - cell_mean

    return {
        "a":   residual + (mean_a - grand),
        "b":   residual + (mean_b - grand),
        "a:b": residual + (cell_mean - mean_a - mean_b + grand),
    }


def art_anova(
    df: pd.DataFrame,
    response: str,
    factor_a: str,
    factor_b: str,
    alpha: float = ALPHA,
) -> Outcome:
    """
    Two-way ANOVA on aligned-rank-transformed responses (Wobbrock et al. ART).

    For each of A, B and A:B the response is aligned for that effect,
    ranked with average ranks for ties, and the full-factorial model is
    fitted on the ranks; only the row for the aligned effect is kept
    (type III sums of squares, sum-to-zero contrasts).

    Returns:
        Outcome with ``effects``: three dicts (effect, f_statistic, df,
        df_resid, p_value, significant).  Not computable when a factor has
        fewer than 2 levels, a cell of the design is empty, there are no
        residual degrees of freedom, or the ranks leave no residual variance.
    """
    data = _complete_cases(df, response, [factor_a, factor_b])
    work = pd.DataFrame({
        "y": data[response].astype(float),
        "a": data[factor_a],
        "b": data[factor_b],
    })

    for factor, column in ((factor_a, "a"), (factor_b, "b")):
        n_levels = len(work[column].cat.categories)
        if n_levels < 2:
            return Outcome.not_computable(
                f"factor {factor!r} needs at least 2 levels, got {n_levels}"
            )

    cell_counts = work.groupby(["a", "b"], observed=False).size()
    empty_cells = [f"{a}/{b}" for (a, b), n in cell_counts.items() if n == 0]
    if empty_cells:
        return Outcome.not_computable(f"design cell(s) {empty_cells} have no observations")

    if _is_constant(work["y"].to_numpy()):
        return Outcome.not_computable("all observations are identical")

    df_resid = len(work) - len(cell_counts)
    if df_resid < 1:
        return Outcome.not_computable(
            "no residual degrees of freedom (need more than one run in some cell)"
        )

    labels = {"a": factor_a, "b": factor_b, "a:b": f"{factor_a}:{factor_b}"}
    effects: list[dict] = []
    for effect, aligned in _aligned_responses(work).items():
        fit_data = work.assign(ranked=stats.rankdata(aligned))
        table = anova_lm(smf.ols(_ART_FORMULA, data=fit_data).fit(), typ=3)
        row = table.loc[_ART_TERMS[effect]]
        f_stat, p_value = float(row["F"]), float(row["PR(>F)"])
        if not (np.isfinite(f_stat) and np.isfinite(p_value)):
            return Outcome.not_computable(
                f"aligned ranks for {labels[effect]} leave no residual variance"
            )
        effects.append({
            "effect": labels[effect],
            "f_statistic": f_stat,
            "df": int(round(row["df"])),
            "df_resid": int(round(table.loc["Residual", "df"])),
            "p_value": p_value,
            "significant": p_value < alpha,
        })

    return Outcome.computed({
        "response": response,
        "factors": [factor_a, factor_b],
        "n": len(work),
        "effects": effects,
    })
