"""
Dataset configuration: input schema, declared category orders, and the
default location of the evaluation-runs table.

Every ordering used by tables and charts comes from here.  Downstream
modules must not re-declare category lists inline.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_DIR  = PROJECT_ROOT / "data"
RUNS_PATH = DATA_DIR / "runs.csv"

# ---------------------------------------------------------------------------
# Input schema
# ---------------------------------------------------------------------------

KEY_COLUMNS: list[str] = ["size", "quant", "seed"]

NUMERIC_COLUMNS: list[str] = [
    "accuracy",
    "f1",
    "throughput",       # examples / sec
    "latency",          # sec / example
    "gpu_peak_mem_mb",
    "cpu_rss_mb",
]

REQUIRED_COLUMNS: list[str] = KEY_COLUMNS + NUMERIC_COLUMNS

# Resource measurements cannot be negative; scores are only expected in [0, 1].
NON_NEGATIVE_COLUMNS: list[str] = [
    "throughput",
    "latency",
    "gpu_peak_mem_mb",
    "cpu_rss_mb",
]

# ---------------------------------------------------------------------------
# Declared category orders
# ---------------------------------------------------------------------------

SIZE_SUFFIX: str = "B"
SIZE_ORDER: list[str]  = ["1B", "3B", "11B"]
QUANT_ORDER: list[str] = ["bf16", "4bit"]

GROUP_BASE_BF16 = "Base BF16"
GROUP_BASE_4BIT = "Base 4-bit"
GROUP_FT_4BIT   = "FT 4-bit"
GROUP_ORDER: list[str] = [GROUP_BASE_BF16, GROUP_BASE_4BIT, GROUP_FT_4BIT]

STATUS_CLASSIFIED   = "classified"
STATUS_UNCLASSIFIED = "unclassified"

# Columns whose values follow a declared order rather than appearance order.
CATEGORY_ORDERS: dict[str, list[str]] = {
    "size":  SIZE_ORDER,
    "quant": QUANT_ORDER,
    "group": GROUP_ORDER,
}
