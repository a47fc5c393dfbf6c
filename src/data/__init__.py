"""
src/data — Loading and normalization of the evaluation-runs table.

Module layout
-------------
config.py  — Input schema, declared category orders, default input path
loader.py  — CSV loading, validation, categorical coercion, group labels

Public interface
----------------
    load_runs(path)
    normalize_runs(raw_df)
    derive_group(df)
    unclassified_runs(df)
"""

from .loader import (
    DatasetValidationError,
    derive_group,
    load_runs,
    normalize_runs,
    unclassified_runs,
)

__all__ = [
    "DatasetValidationError",
    "derive_group",
    "load_runs",
    "normalize_runs",
    "unclassified_runs",
]
