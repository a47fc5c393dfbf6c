"""
Shared pytest fixtures and builders for the report pipeline tests.

The design fixture mirrors the real experiment layout: for every size one
Base BF16 run, one Base 4-bit run, and three fine-tuned 4-bit runs (seeds
1-3).  Accuracy rises by 0.10 per size step, 4-bit costs 0.02, and
fine-tuning adds 0.05, plus small seeded noise so no cell is constant.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from src.data.loader import normalize_runs


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def make_run_row(
    size: str = "1B",
    quant: str = "bf16",
    seed: int | None = None,
    accuracy: float | None = 0.70,
    f1: float | None = 0.65,
    throughput: float = 120.0,
    latency: float = 0.008,
    gpu_peak_mem_mb: float = 2400.0,
    cpu_rss_mb: float = 1800.0,
) -> dict:
    """Build a single raw run row (pre-normalization)."""
    return {
        "size": size,
        "quant": quant,
        "seed": seed,
        "accuracy": accuracy,
        "f1": f1,
        "throughput": throughput,
        "latency": latency,
        "gpu_peak_mem_mb": gpu_peak_mem_mb,
        "cpu_rss_mb": cpu_rss_mb,
    }


def make_runs(rows: list[dict]) -> pd.DataFrame:
    """Normalize a list of raw rows, filling unspecified fields with defaults."""
    return normalize_runs(pd.DataFrame([make_run_row(**r) for r in rows]))


SIZE_BASE_ACCURACY = {"1B": 0.60, "3B": 0.70, "11B": 0.80}
SIZE_PARAMS_GB = {"1B": 2.5, "3B": 6.5, "11B": 22.0}


def make_design_rows(noise_seed: int = 0) -> list[dict]:
    """Full size × group design as raw rows."""
    rng = np.random.default_rng(noise_seed)
    rows = []
    for size, base_acc in SIZE_BASE_ACCURACY.items():
        mem_gb = SIZE_PARAMS_GB[size]
        variants = [("bf16", None, 0.0, 1.0)]
        variants += [("4bit", None, -0.02, 0.35)]
        variants += [("4bit", seed, 0.03, 0.38) for seed in (1, 2, 3)]
        for quant, seed, shift, mem_scale in variants:
            acc = base_acc + shift + rng.normal(0, 0.01)
            rows.append(make_run_row(
                size=size,
                quant=quant,
                seed=seed,
                accuracy=round(acc, 4),
                f1=round(acc - 0.04 + rng.normal(0, 0.01), 4),
                throughput=round(400 / mem_gb * (1.3 if quant == "4bit" else 1.0)
                                 + rng.normal(0, 2), 3),
                latency=round(mem_gb / 400 + abs(rng.normal(0, 0.001)), 5),
                gpu_peak_mem_mb=round(mem_gb * mem_scale * 1024 + rng.normal(0, 50), 1),
                cpu_rss_mb=round(1500 + 40 * mem_gb + rng.normal(0, 20), 1),
            ))
    return rows


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def design_df() -> pd.DataFrame:
    """Normalized full-design runs table (15 runs)."""
    return make_runs(make_design_rows())


@pytest.fixture
def design_csv(tmp_path):
    """Design table written as CSV with bare sizes ('1', '3', '11')."""
    raw = pd.DataFrame(make_design_rows())
    raw["size"] = raw["size"].str.rstrip("B")
    raw["seed"] = raw["seed"].map(lambda s: "" if pd.isna(s) else str(int(s)))
    path = tmp_path / "runs.csv"
    raw.to_csv(path, index=False)
    return path


@pytest.fixture
def separated_samples() -> dict[str, list[float]]:
    """Three groups with no overlap: A < B < C."""
    return {
        "A": [0.80, 0.82, 0.81],
        "B": [0.85, 0.86, 0.84],
        "C": [0.90, 0.91, 0.89],
    }
