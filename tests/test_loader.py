"""
Unit tests for src/data/loader.py.

Covers:
- load_runs: size suffix normalization, declared category order, empty seeds.
- normalize_runs: reject-all validation (missing columns, unparsable numbers,
  out-of-set categories, negative resources, fractional seeds).
- derive_group: the three group labels and the unclassified bf16+seed case.
"""

from __future__ import annotations

import pandas as pd
import pytest

from src.data.config import GROUP_ORDER, QUANT_ORDER, SIZE_ORDER
from src.data.loader import (
    DatasetValidationError,
    derive_group,
    load_runs,
    normalize_runs,
    unclassified_runs,
)

from .conftest import make_run_row, make_runs


def _write_csv(tmp_path, text: str):
    path = tmp_path / "runs.csv"
    path.write_text(text, encoding="utf-8")
    return path


HEADER = "size,quant,seed,accuracy,f1,throughput,latency,gpu_peak_mem_mb,cpu_rss_mb\n"


# ---------------------------------------------------------------------------
# load_runs
# ---------------------------------------------------------------------------

class TestLoadRuns:

    def test_sizes_get_b_suffix(self, tmp_path):
        path = _write_csv(tmp_path, HEADER
                          + "11,bf16,,0.8,0.7,50,0.02,20000,3000\n"
                          + "1,4bit,,0.6,0.5,200,0.005,1000,1500\n"
                          + "3B,4bit,7,0.7,0.6,120,0.01,3000,2000\n")
        df = load_runs(path)
        assert list(df["size"].astype(str)) == ["11B", "1B", "3B"]

    def test_categories_are_ordered_as_declared(self, design_csv):
        df = load_runs(design_csv)
        assert list(df["size"].cat.categories) == SIZE_ORDER
        assert list(df["quant"].cat.categories) == QUANT_ORDER
        assert list(df["group"].cat.categories) == GROUP_ORDER
        assert df["size"].cat.ordered

    def test_empty_seed_is_missing(self, tmp_path):
        path = _write_csv(tmp_path, HEADER + "1,bf16,,0.6,0.5,200,0.005,1000,1500\n")
        df = load_runs(path)
        assert pd.isna(df.loc[0, "seed"])
        assert df.loc[0, "group"] == "Base BF16"

    def test_seed_parsed_as_integer(self, tmp_path):
        path = _write_csv(tmp_path, HEADER + "1,4bit,42,0.6,0.5,200,0.005,1000,1500\n")
        df = load_runs(path)
        assert df.loc[0, "seed"] == 42
        assert str(df["seed"].dtype) == "Int64"

    def test_empty_metric_cell_is_allowed(self, tmp_path):
        path = _write_csv(tmp_path, HEADER + "1,bf16,,0.6,,200,0.005,1000,1500\n")
        df = load_runs(path)
        assert pd.isna(df.loc[0, "f1"])
        assert df.loc[0, "accuracy"] == pytest.approx(0.6)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_runs(tmp_path / "nope.csv")

    def test_design_csv_round_trip(self, design_csv):
        df = load_runs(design_csv)
        assert len(df) == 15
        assert (df["group_status"] == "classified").all()


# ---------------------------------------------------------------------------
# normalize_runs validation
# ---------------------------------------------------------------------------

class TestNormalizeRunsValidation:

    def test_missing_column_rejected(self):
        raw = pd.DataFrame([make_run_row()]).drop(columns=["latency"])
        with pytest.raises(DatasetValidationError, match="latency"):
            normalize_runs(raw)

    def test_unparsable_numeric_rejected(self):
        raw = pd.DataFrame([make_run_row(), make_run_row()])
        raw["accuracy"] = raw["accuracy"].astype(object)
        raw.loc[1, "accuracy"] = "abc"
        with pytest.raises(DatasetValidationError, match="accuracy"):
            normalize_runs(raw)

    def test_unknown_size_rejected(self):
        raw = pd.DataFrame([make_run_row(size="7B")])
        with pytest.raises(DatasetValidationError, match="size"):
            normalize_runs(raw)

    def test_unknown_quant_rejected(self):
        raw = pd.DataFrame([make_run_row(quant="8bit")])
        with pytest.raises(DatasetValidationError, match="quant"):
            normalize_runs(raw)

    def test_negative_latency_rejected(self):
        raw = pd.DataFrame([make_run_row(latency=-0.1)])
        with pytest.raises(DatasetValidationError, match="latency"):
            normalize_runs(raw)

    def test_fractional_seed_rejected(self):
        raw = pd.DataFrame([make_run_row(quant="4bit", seed=1.5)])
        with pytest.raises(DatasetValidationError, match="seed"):
            normalize_runs(raw)

    def test_all_problems_reported_together(self):
        """Reject-all: one error lists every problem, not just the first."""
        raw = pd.DataFrame([make_run_row(size="7B"), make_run_row(quant="fp8")])
        with pytest.raises(DatasetValidationError) as excinfo:
            normalize_runs(raw)
        assert len(excinfo.value.problems) == 2

    def test_input_is_not_mutated(self):
        raw = pd.DataFrame([make_run_row(size="1")])
        normalize_runs(raw)
        assert raw.loc[0, "size"] == "1"
        assert "group" not in raw.columns

    def test_extra_columns_carried_through(self):
        raw = pd.DataFrame([{**make_run_row(), "model_id": "llama-1b"}])
        df = normalize_runs(raw)
        assert df.loc[0, "model_id"] == "llama-1b"


# ---------------------------------------------------------------------------
# derive_group
# ---------------------------------------------------------------------------

class TestDeriveGroup:

    def test_three_labels(self):
        df = make_runs([
            {"quant": "bf16"},
            {"quant": "4bit"},
            {"quant": "4bit", "seed": 3},
        ])
        assert list(df["group"].astype(str)) == ["Base BF16", "Base 4-bit", "FT 4-bit"]
        assert (df["group_status"] == "classified").all()

    def test_bf16_with_seed_is_unclassified(self):
        df = make_runs([{"quant": "bf16", "seed": 5}, {"quant": "bf16"}])
        assert pd.isna(df.loc[0, "group"])
        assert df.loc[0, "group_status"] == "unclassified"
        assert len(unclassified_runs(df)) == 1

    def test_derive_group_returns_ordered_categorical(self, design_df):
        group = derive_group(design_df)
        assert group.name == "group"
        assert group.cat.ordered
        assert list(group.cat.categories) == GROUP_ORDER
