"""
Statistical test battery for the report.

For each tested response (accuracy, f1):

1. Residual normality of the one-way model, per factor (size, group).
   Motivates the rank-based tests that follow.
2. Kruskal–Wallis across the levels of each factor.
3. Pairwise Wilcoxon rank-sum with Bonferroni correction, per factor.
4. Two-way ART ANOVA for size × group with interaction.

Each test is independent: a not-computable result is recorded in the
failure summary and the remaining tests still run.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd

from .config import (
    ONE_WAY_FACTORS,
    RESULTS_DIR,
    STATISTICS_JSON_NAME,
    TEST_RESPONSES,
    TWO_WAY_FACTORS,
)
from .failures import FailureSummary
from .hypothesis import (
    art_anova,
    kruskal_wallis,
    pairwise_wilcoxon,
    residual_normality,
    samples_by,
)
from .outcome import Outcome


def run_one_way_tests(
    runs_df: pd.DataFrame,
    response: str,
    factor: str,
) -> dict[str, Outcome]:
    """Normality, Kruskal–Wallis and pairwise post-hoc for one factor."""
    samples = samples_by(runs_df, response, factor)
    return {
        "normality": residual_normality(runs_df, response, factor),
        "kruskal_wallis": kruskal_wallis(samples),
        "pairwise": pairwise_wilcoxon(samples),
    }


def _print_outcome(label: str, outcome: Outcome, fmt) -> None:
    if outcome.ok:
        print(f"  {label}: {fmt(outcome.value)}")
    else:
        print(f"  {label}: not computable ({outcome.reason})")


def _print_response(response: str, results: dict) -> None:
    print(f"\n--- {response} ---")
    for factor in ONE_WAY_FACTORS:
        tests = results["one_way"][factor]
        _print_outcome(
            f"Shapiro-Wilk residuals ~ {factor}", tests["normality"],
            lambda v: f"W={v['statistic']:.4f}, p={v['p_value']:.4f}, normal={v['normal']}",
        )
        _print_outcome(
            f"Kruskal-Wallis ~ {factor}", tests["kruskal_wallis"],
            lambda v: f"H={v['statistic']:.3f}, df={v['df']}, p={v['p_value']:.4f}",
        )
        _print_outcome(
            f"Pairwise Wilcoxon ~ {factor} (Bonferroni)", tests["pairwise"],
            lambda v: ", ".join(
                f"{r.group_a} vs {r.group_b}: p_adj={r.p_adjusted:.4f}"
                for r in v["pairs"].itertuples()
            ),
        )
    a, b = TWO_WAY_FACTORS
    _print_outcome(
        f"ART ANOVA {a} x {b}", results["art_anova"],
        lambda v: "; ".join(
            f"{e['effect']}: F({e['df']},{e['df_resid']})={e['f_statistic']:.3f}, "
            f"p={e['p_value']:.4f}"
            for e in v["effects"]
        ),
    )


def flatten_test_results(all_results: dict) -> pd.DataFrame:
    """
    One row per test (pairwise: one row per pair, ART: one row per effect)
    for the HTML and Word tables.  Not-computable tests keep their reason.
    """
    rows: list[dict] = []

    def _failed(response, factor, test, outcome):
        rows.append({
            "response": response, "factor": factor, "test": test,
            "statistic": np.nan, "df": None, "p_value": np.nan,
            "p_adjusted": np.nan, "note": f"not computable: {outcome.reason}",
        })

    for response, results in all_results.items():
        for factor, tests in results["one_way"].items():
            for name in ("normality", "kruskal_wallis"):
                outcome = tests[name]
                if not outcome.ok:
                    _failed(response, factor, name, outcome)
                    continue
                value = outcome.value
                rows.append({
                    "response": response, "factor": factor, "test": name,
                    "statistic": value["statistic"], "df": value.get("df"),
                    "p_value": value["p_value"], "p_adjusted": np.nan, "note": "",
                })
            pairwise = tests["pairwise"]
            if not pairwise.ok:
                _failed(response, factor, "pairwise", pairwise)
                continue
            for pair in pairwise.value["pairs"].itertuples():
                rows.append({
                    "response": response, "factor": factor,
                    "test": f"pairwise {pair.group_a} vs {pair.group_b}",
                    "statistic": pair.u_statistic, "df": None,
                    "p_value": pair.p_value, "p_adjusted": pair.p_adjusted,
                    "note": "",
                })

        factors = " x ".join(TWO_WAY_FACTORS)
        art = results["art_anova"]
        if not art.ok:
            _failed(response, factors, "art_anova", art)
            continue
        for effect in art.value["effects"]:
            rows.append({
                "response": response, "factor": factors,
                "test": f"art_anova {effect['effect']}",
                "statistic": effect["f_statistic"],
                "df": f"{effect['df']}, {effect['df_resid']}",
                "p_value": effect["p_value"], "p_adjusted": np.nan, "note": "",
            })

    return pd.DataFrame(rows, columns=[
        "response", "factor", "test", "statistic", "df",
        "p_value", "p_adjusted", "note",
    ])


def _json_default(obj):
    if isinstance(obj, Outcome):
        return obj.to_dict()
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return None if np.isnan(obj) else float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return np.where(pd.isna(obj), None, obj).tolist()
    if isinstance(obj, pd.DataFrame):
        # undefined cells (matrix diagonal, skipped pairs) become null
        return obj.astype(object).where(obj.notna(), None).to_dict(orient="index")
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def run_all_statistical_tests(
    runs_df: pd.DataFrame,
    output_dir: Path = RESULTS_DIR,
    failures: FailureSummary | None = None,
    responses: list[str] = TEST_RESPONSES,
) -> dict:
    """
    Run the full test battery and export it to JSON.

    Args:
        runs_df: Normalized runs table.  Unclassified runs are excluded
            from group-keyed tests automatically (their group is missing).
        output_dir: Directory for ``statistical_tests.json``.
        failures: Collector for not-computable tests (created if omitted).
        responses: Response columns to test.

    Returns:
        ``{response: {"one_way": {factor: {test: Outcome}}, "art_anova": Outcome}}``
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    failures = failures if failures is not None else FailureSummary()
    sep = "=" * 70

    print(f"\n{sep}")
    print("STATISTICAL TESTS")
    print(sep)

    all_results: dict = {}
    for response in responses:
        one_way = {}
        for factor in ONE_WAY_FACTORS:
            tests = run_one_way_tests(runs_df, response, factor)
            for name, outcome in tests.items():
                failures.record("tests", f"{response} ~ {factor}: {name}", outcome)
                if name == "pairwise" and outcome.ok:
                    for pair in outcome.value["not_computable_pairs"]:
                        failures.add(
                            "tests",
                            f"{response} ~ {factor}: pairwise "
                            f"{pair['group_a']} vs {pair['group_b']}",
                            pair["reason"],
                        )
            one_way[factor] = tests

        art = failures.record(
            "tests",
            f"{response} ~ {' * '.join(TWO_WAY_FACTORS)}: art_anova",
            art_anova(runs_df, response, *TWO_WAY_FACTORS),
        )
        all_results[response] = {"one_way": one_way, "art_anova": art}
        _print_response(response, all_results[response])

    out_path = output_dir / STATISTICS_JSON_NAME
    with out_path.open("w", encoding="utf-8") as fh:
        json.dump(all_results, fh, indent=2, default=_json_default)

    print(f"\nExported statistical tests to {out_path}")
    return all_results
