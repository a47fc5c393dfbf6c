"""
Analysis-layer configuration: statistical parameters, report sections, and
output paths.

Centralizes constants that every section of the report shares, so the
bootstrap settings and significance threshold are never re-declared inline.
"""

from src.data.config import NUMERIC_COLUMNS, PROJECT_ROOT

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

RESULTS_DIR = PROJECT_ROOT / "results"      # exported tables, charts, report
CHARTS_DIR  = RESULTS_DIR / "charts"

STATISTICS_JSON_NAME  = "statistical_tests.json"
FAILURE_SUMMARY_NAME  = "failure_summary.csv"

# ---------------------------------------------------------------------------
# Bootstrap confidence intervals
# ---------------------------------------------------------------------------

N_RESAMPLES: int = 2000
CI_ALPHA: float  = 0.01     # 99% percentile intervals
DEFAULT_SEED: int = 20240917

# ---------------------------------------------------------------------------
# Hypothesis tests
# ---------------------------------------------------------------------------

ALPHA: float = 0.05
MIN_NORMALITY_GROUP_SIZE: int = 3    # Shapiro-Wilk needs n >= 3 per group

# Responses tested for differences, and the one-way factors they are tested on.
TEST_RESPONSES: list[str] = ["accuracy", "f1"]
ONE_WAY_FACTORS: list[str] = ["size", "group"]
TWO_WAY_FACTORS: tuple[str, str] = ("size", "group")

# ---------------------------------------------------------------------------
# Summary tables
# ---------------------------------------------------------------------------

SUMMARY_KEYS: list[str] = ["size", "group"]
SUMMARY_METRICS: list[str] = list(NUMERIC_COLUMNS)

# Reductions for the mean/median/quantile tables.  "q<pct>" is the
# type-7 quantile at pct/100.
DEFAULT_REDUCTIONS: list[str] = ["count", "mean", "std", "median", "min", "max"]
QUANTILE_REDUCTIONS: list[str] = ["min", "q25", "median", "q75", "max"]

MB_PER_GB: float = 1024.0
