"""
Evaluation-runs loader: CSV reading, schema validation, and coercion of the
categorical fields into their declared, ordered categories.

Validation is reject-all: every problem in the table is collected and
reported in a single DatasetValidationError rather than dropping the
offending rows.  Two things are deliberately NOT errors:

- Empty numeric cells.  Aggregations and tests exclude missing values per
  computation, so a run with no recorded f1 still contributes its accuracy.
- A bf16 run that carries a seed.  No group label covers that combination;
  the row is kept with a missing ``group`` and ``group_status ==
  "unclassified"`` so the failure summary can report it.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from .config import (
    GROUP_BASE_4BIT,
    GROUP_BASE_BF16,
    GROUP_FT_4BIT,
    GROUP_ORDER,
    NON_NEGATIVE_COLUMNS,
    NUMERIC_COLUMNS,
    QUANT_ORDER,
    REQUIRED_COLUMNS,
    RUNS_PATH,
    SIZE_ORDER,
    SIZE_SUFFIX,
    STATUS_CLASSIFIED,
    STATUS_UNCLASSIFIED,
)


class DatasetValidationError(ValueError):
    """Raised when the runs table cannot be accepted as a whole."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__(
            f"Runs table rejected ({len(problems)} problem(s)):\n  - "
            + "\n  - ".join(problems)
        )


# ---------------------------------------------------------------------------
# Field-level helpers
# ---------------------------------------------------------------------------

def _as_text(values: pd.Series) -> pd.Series:
    return values.astype(str).str.strip()


def _blank_mask(values: pd.Series) -> pd.Series:
    """True where a cell is missing or whitespace-only."""
    return values.isna() | _as_text(values).eq("")


def _preview(values: pd.Series, limit: int = 5) -> list[str]:
    unique = [str(v) for v in pd.unique(values)]
    return unique[:limit] + (["..."] if len(unique) > limit else [])


def _parse_numeric(
    values: pd.Series,
    column: str,
    problems: list[str],
) -> pd.Series:
    """Parse a column to float; blanks become NaN, garbage is a problem."""
    blank = _blank_mask(values)
    parsed = pd.to_numeric(_as_text(values).where(~blank), errors="coerce")
    bad = (parsed.isna() & ~blank) | np.isinf(parsed)
    if bad.any():
        problems.append(
            f"{column}: {int(bad.sum())} unparsable value(s) {_preview(values[bad])}"
        )
    return parsed.astype(float)


def _normalize_size(values: pd.Series, problems: list[str]) -> pd.Categorical:
    """Append the 'B' suffix ('1' → '1B', '3b' → '3B') and check the set."""
    text = _as_text(values).str.replace(r"[bB]$", "", regex=True) + SIZE_SUFFIX
    bad = ~text.isin(SIZE_ORDER) | _blank_mask(values)
    if bad.any():
        problems.append(
            f"size: {int(bad.sum())} value(s) outside {SIZE_ORDER}: "
            f"{_preview(values[bad])}"
        )
    return pd.Categorical(text, categories=SIZE_ORDER, ordered=True)


def _normalize_quant(values: pd.Series, problems: list[str]) -> pd.Categorical:
    text = _as_text(values).str.lower()
    bad = ~text.isin(QUANT_ORDER)
    if bad.any():
        problems.append(
            f"quant: {int(bad.sum())} value(s) outside {QUANT_ORDER}: "
            f"{_preview(values[bad])}"
        )
    return pd.Categorical(text, categories=QUANT_ORDER, ordered=True)


def _normalize_seed(values: pd.Series, problems: list[str]) -> pd.Series:
    parsed = _parse_numeric(values, "seed", problems)
    fractional = parsed.notna() & (parsed % 1 != 0)
    if fractional.any():
        problems.append(
            f"seed: {int(fractional.sum())} non-integer value(s) "
            f"{_preview(values[fractional])}"
        )
        parsed = parsed.where(~fractional)
    return parsed.round().astype("Int64")


# ---------------------------------------------------------------------------
# Group label derivation
# ---------------------------------------------------------------------------

def derive_group(df: pd.DataFrame) -> pd.Series:
    """
    Map (quant, seed presence) onto the three-way group label.

    Args:
        df: Normalized runs with ``quant`` and ``seed`` columns.

    Returns:
        Ordered categorical Series named ``group``.  Runs with
        ``quant == "bf16"`` and a seed map to a missing value.
    """
    has_seed = df["seed"].notna()
    quant = df["quant"].astype(str)

    labels = pd.Series(pd.NA, index=df.index, dtype="object")
    labels.loc[(quant == "bf16") & ~has_seed] = GROUP_BASE_BF16
    labels.loc[(quant == "4bit") & ~has_seed] = GROUP_BASE_4BIT
    labels.loc[(quant == "4bit") & has_seed] = GROUP_FT_4BIT

    return pd.Series(
        pd.Categorical(labels, categories=GROUP_ORDER, ordered=True),
        index=df.index,
        name="group",
    )


def unclassified_runs(df: pd.DataFrame) -> pd.DataFrame:
    """Rows that no group label covers (bf16 runs carrying a seed)."""
    return df[df["group_status"] == STATUS_UNCLASSIFIED]


# ---------------------------------------------------------------------------
# Table-level normalization
# ---------------------------------------------------------------------------

def normalize_runs(raw_df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate a raw runs table and return a normalized copy.

    Args:
        raw_df: Table with at least the REQUIRED_COLUMNS.  Cells may be
            strings (as read from CSV) or already-typed values.

    Returns:
        New DataFrame with ordered categorical ``size``/``quant``/``group``,
        nullable-integer ``seed``, float metric columns, and
        ``group_status``.  Extra input columns are carried through.

    Raises:
        DatasetValidationError: Any missing column, unparsable number,
            out-of-set category, or negative resource measurement.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in raw_df.columns]
    if missing:
        raise DatasetValidationError([f"missing required column(s): {missing}"])

    problems: list[str] = []
    df = raw_df.copy()

    df["size"]  = _normalize_size(raw_df["size"], problems)
    df["quant"] = _normalize_quant(raw_df["quant"], problems)
    df["seed"]  = _normalize_seed(raw_df["seed"], problems)

    for column in NUMERIC_COLUMNS:
        df[column] = _parse_numeric(raw_df[column], column, problems)

    for column in NON_NEGATIVE_COLUMNS:
        negative = df[column] < 0
        if negative.any():
            problems.append(
                f"{column}: {int(negative.sum())} negative value(s) "
                f"{_preview(raw_df.loc[negative, column])}"
            )

    if problems:
        raise DatasetValidationError(problems)

    df["group"] = derive_group(df)
    df["group_status"] = np.where(
        df["group"].isna(), STATUS_UNCLASSIFIED, STATUS_CLASSIFIED
    )
    return df.reset_index(drop=True)


def load_runs(path: Path = RUNS_PATH) -> pd.DataFrame:
    """
    Load and normalize the evaluation-runs CSV.

    Every cell is read as text so that unparsable numbers are reported
    instead of silently coerced.

    Args:
        path: CSV with a header row and one run per data row.

    Returns:
        Normalized runs DataFrame (see :func:`normalize_runs`).

    Raises:
        FileNotFoundError: The CSV does not exist.
        DatasetValidationError: The table failed validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Runs table not found: {path}")

    raw = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = normalize_runs(raw)

    n_unclassified = len(unclassified_runs(df))
    print(f"Loaded runs: {len(df)} rows from {path.name}")
    for size in SIZE_ORDER:
        print(f"  {size:<4} {int((df['size'] == size).sum())} runs")
    if n_unclassified:
        print(f"  WARNING: {n_unclassified} run(s) have no group label "
              "(bf16 with a seed)")

    return df
