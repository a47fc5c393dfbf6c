"""
Unit tests for src/analysis/hypothesis.py.

Covers:
- kruskal_wallis: clearly separated groups, degenerate inputs.
- pairwise_wilcoxon: Bonferroni arithmetic, matrix symmetry, diagonal,
  identical-pair handling, significance with adequately sized groups.
- residual_normality: computed statistic and the small-group / constant
  residual refusals.
- art_anova: effect rows and degrees of freedom on the full design,
  refusals for empty cells, single-level factors and saturated designs.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from src.analysis.hypothesis import (
    art_anova,
    kruskal_wallis,
    pairwise_wilcoxon,
    residual_normality,
    samples_by,
)

from .conftest import make_runs


# ---------------------------------------------------------------------------
# samples_by
# ---------------------------------------------------------------------------

class TestSamplesBy:

    def test_declared_order(self, design_df):
        samples = samples_by(design_df.iloc[::-1], "accuracy", "size")
        assert list(samples) == ["1B", "3B", "11B"]
        assert all(len(v) == 5 for v in samples.values())

    def test_missing_response_dropped(self):
        df = make_runs([{"size": "1B", "f1": None}, {"size": "1B", "f1": 0.4}])
        assert list(samples_by(df, "f1", "size")["1B"]) == [0.4]


# ---------------------------------------------------------------------------
# Kruskal–Wallis
# ---------------------------------------------------------------------------

class TestKruskalWallis:

    def test_separated_groups_reject(self, separated_samples):
        result = kruskal_wallis(separated_samples).unwrap()
        # Ranks 1-3 / 4-6 / 7-9 → H = 12/(9·10)·(36+225+576)/3 − 30 = 7.2
        assert result["statistic"] == pytest.approx(7.2)
        assert result["p_value"] == pytest.approx(np.exp(-3.6), rel=1e-6)
        assert result["p_value"] < 0.05
        assert result["significant"]
        assert result["df"] == 2
        assert result["n_total"] == 9

    def test_identical_distributions_do_not_reject(self):
        samples = {"A": [1, 2, 3, 4], "B": [1, 2, 3, 4]}
        result = kruskal_wallis(samples).unwrap()
        assert result["p_value"] > 0.5

    def test_single_group_not_computable(self):
        outcome = kruskal_wallis({"A": [0.1, 0.2]})
        assert not outcome.ok
        assert "at least 2 groups" in outcome.reason

    def test_empty_group_not_computable(self):
        outcome = kruskal_wallis({"A": [0.1, 0.2], "B": []})
        assert not outcome.ok
        assert "'B'" in outcome.reason

    def test_all_identical_not_computable(self):
        outcome = kruskal_wallis({"A": [0.5, 0.5], "B": [0.5]})
        assert not outcome.ok
        assert "identical" in outcome.reason


# ---------------------------------------------------------------------------
# Pairwise Wilcoxon + Bonferroni
# ---------------------------------------------------------------------------

class TestPairwiseWilcoxon:

    def test_bonferroni_adjustment(self, separated_samples):
        result = pairwise_wilcoxon(separated_samples).unwrap()
        pairs = result["pairs"]
        assert result["n_comparisons"] == 3
        assert list(zip(pairs["group_a"], pairs["group_b"])) == [
            ("A", "B"), ("A", "C"), ("B", "C"),
        ]
        for row in pairs.itertuples():
            assert row.p_adjusted <= min(1.0, row.p_value * 3) + 1e-12
            assert row.p_adjusted == pytest.approx(min(1.0, row.p_value * 3))

    def test_three_per_group_reaches_smallest_attainable_p(self, separated_samples):
        """
        With 3 vs 3 and complete separation the exact two-sided rank-sum p
        is 2/C(6,3) = 0.1, the smallest possible; Bonferroni over 3 pairs
        gives 0.3.  Every pair sits at that floor.
        """
        pairs = pairwise_wilcoxon(separated_samples).unwrap()["pairs"]
        assert list(pairs["p_value"]) == pytest.approx([0.1, 0.1, 0.1])
        assert list(pairs["p_adjusted"]) == pytest.approx([0.3, 0.3, 0.3])

    def test_all_pairs_significant_with_larger_groups(self):
        rng = np.random.default_rng(7)
        samples = {
            "A": 0.80 + rng.uniform(-0.005, 0.005, 10),
            "B": 0.85 + rng.uniform(-0.005, 0.005, 10),
            "C": 0.90 + rng.uniform(-0.005, 0.005, 10),
        }
        assert kruskal_wallis(samples).unwrap()["p_value"] < 0.05
        pairs = pairwise_wilcoxon(samples).unwrap()["pairs"]
        assert pairs["significant"].all()
        assert (pairs["p_adjusted"] < 0.05).all()

    def test_matrices_symmetric_with_undefined_diagonal(self, separated_samples):
        result = pairwise_wilcoxon(separated_samples).unwrap()
        for key in ("raw_p", "adjusted_p"):
            matrix = result[key]
            assert list(matrix.index) == ["A", "B", "C"]
            values = matrix.to_numpy()
            assert np.isnan(np.diag(values)).all()
            off = ~np.eye(3, dtype=bool)
            assert np.allclose(values[off], values.T[off])
        assert (result["adjusted_p"].to_numpy()[off] <= 1.0).all()

    def test_adjusted_p_capped_at_one(self):
        samples = {"A": [1, 2, 3, 4], "B": [1, 2, 3, 4], "C": [2, 3, 4, 5]}
        pairs = pairwise_wilcoxon(samples).unwrap()["pairs"]
        assert (pairs["p_adjusted"] <= 1.0).all()
        assert pairs.loc[0, "p_adjusted"] == 1.0

    def test_identical_pair_listed_not_computed(self):
        samples = {"A": [0.5, 0.5], "B": [0.5, 0.5], "C": [0.7, 0.8]}
        result = pairwise_wilcoxon(samples).unwrap()
        assert result["not_computable_pairs"][0]["group_a"] == "A"
        assert result["not_computable_pairs"][0]["group_b"] == "B"
        assert np.isnan(result["raw_p"].loc["A", "B"])
        assert len(result["pairs"]) == 2
        assert result["n_comparisons"] == 3

    def test_empty_group_not_computable(self):
        assert not pairwise_wilcoxon({"A": [0.1], "B": []}).ok

    def test_nothing_comparable_not_computable(self):
        outcome = pairwise_wilcoxon({"A": [0.5], "B": [0.5]})
        assert not outcome.ok


# ---------------------------------------------------------------------------
# Residual normality
# ---------------------------------------------------------------------------

class TestResidualNormality:

    def test_computed_on_design(self, design_df):
        result = residual_normality(design_df, "accuracy", "size").unwrap()
        assert 0 < result["statistic"] <= 1
        assert 0 <= result["p_value"] <= 1
        assert result["n"] == 15
        assert result["factor"] == "size"

    def test_residuals_are_deviations_from_group_means(self):
        """Shifting a whole group leaves the residuals and the test unchanged."""
        values = [0.10, 0.13, 0.11, 0.19, 0.15]
        rows = [{"size": "1B", "accuracy": v} for v in values]
        rows += [{"size": "3B", "accuracy": v + 0.3} for v in values[::-1]]
        shifted = [{**r, "accuracy": r["accuracy"] + 0.2} if r["size"] == "3B" else r
                   for r in rows]
        base = residual_normality(make_runs(rows), "accuracy", "size").unwrap()
        moved = residual_normality(make_runs(shifted), "accuracy", "size").unwrap()
        assert base["statistic"] == pytest.approx(moved["statistic"])

    def test_small_group_not_computable(self):
        df = make_runs(
            [{"size": "1B", "accuracy": v} for v in (0.1, 0.2, 0.3)]
            + [{"size": "3B", "accuracy": v} for v in (0.4, 0.5)]
        )
        outcome = residual_normality(df, "accuracy", "size")
        assert not outcome.ok
        assert "3B" in outcome.reason

    def test_constant_residuals_not_computable(self):
        df = make_runs(
            [{"size": "1B", "accuracy": 0.6}] * 3
            + [{"size": "3B", "accuracy": 0.7}] * 3
        )
        outcome = residual_normality(df, "accuracy", "size")
        assert not outcome.ok
        assert "constant" in outcome.reason


# ---------------------------------------------------------------------------
# ART ANOVA
# ---------------------------------------------------------------------------

class TestArtAnova:

    def test_effect_rows_on_design(self, design_df):
        result = art_anova(design_df, "accuracy", "size", "group").unwrap()
        effects = {e["effect"]: e for e in result["effects"]}
        assert list(effects) == ["size", "group", "size:group"]
        assert effects["size"]["df"] == 2
        assert effects["group"]["df"] == 2
        assert effects["size:group"]["df"] == 4
        for effect in effects.values():
            assert effect["df_resid"] == 15 - 9
            assert effect["f_statistic"] >= 0
            assert 0 <= effect["p_value"] <= 1

    def test_strong_main_effect_detected(self, design_df):
        effects = art_anova(design_df, "accuracy", "size", "group").unwrap()["effects"]
        assert effects[0]["effect"] == "size"
        assert effects[0]["p_value"] < 0.05

    def test_empty_cell_not_computable(self, design_df):
        missing = design_df[~((design_df["size"] == "3B")
                              & (design_df["group"] == "FT 4-bit"))]
        outcome = art_anova(missing, "accuracy", "size", "group")
        assert not outcome.ok
        assert "3B/FT 4-bit" in outcome.reason

    def test_single_level_factor_not_computable(self, design_df):
        one_size = design_df[design_df["size"] == "1B"]
        outcome = art_anova(one_size, "accuracy", "size", "group")
        assert not outcome.ok
        assert "'size'" in outcome.reason

    def test_no_residual_df_not_computable(self):
        """One run per cell: 2 × 2 design with 4 runs."""
        df = make_runs([
            {"size": "1B", "quant": "4bit", "accuracy": 0.60},
            {"size": "3B", "quant": "4bit", "accuracy": 0.70},
            {"size": "1B", "quant": "bf16", "accuracy": 0.62},
            {"size": "3B", "quant": "bf16", "accuracy": 0.73},
        ])
        outcome = art_anova(df, "accuracy", "size", "group")
        assert not outcome.ok
        assert "residual degrees of freedom" in outcome.reason

    def test_unclassified_rows_ignored(self, design_df):
        extra = make_runs([{"size": "1B", "quant": "bf16", "seed": 4, "accuracy": 0.1}])
        combined = pd.concat([design_df, extra], ignore_index=True)
        a = art_anova(design_df, "accuracy", "size", "group").unwrap()
        b = art_anova(combined, "accuracy", "size", "group").unwrap()
        assert a["n"] == b["n"] == 15
