"""
Failure summary: which cells of the report could not be computed, and why.

Every aggregation cell and hypothesis test reports its own Outcome; this
collector gathers the not-computable ones from all sections so a single
degenerate group never hides behind a blank chart bar.  Recording a failure
never stops the pipeline.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from src.data.loader import unclassified_runs

from .aggregation import Summary
from .outcome import Outcome

FAILURE_COLUMNS = ["section", "cell", "reason"]


class FailureSummary:
    """Accumulates (section, cell, reason) entries across the report."""

    def __init__(self) -> None:
        self.entries: list[dict] = []

    def __len__(self) -> int:
        return len(self.entries)

    def add(self, section: str, cell: str, reason: str) -> None:
        self.entries.append({"section": section, "cell": cell, "reason": reason})

    def record(self, section: str, cell: str, outcome: Outcome) -> Outcome:
        """Log the outcome if it is not computable; returns it unchanged."""
        if not outcome.ok:
            self.add(section, cell, outcome.reason)
        return outcome

    def record_summary(self, section: str, summary: Summary) -> Summary:
        """Log every not-computable cell of an aggregation Summary."""
        for failure in summary.not_computable:
            key = ", ".join(
                f"{k}={v}" for k, v in failure.items()
                if k not in ("column", "reduction", "reason")
            )
            cell = f"{failure['column']}.{failure['reduction']}"
            self.add(section, f"{cell} [{key}]" if key else cell, failure["reason"])
        return summary

    def note_unclassified(self, runs_df: pd.DataFrame) -> int:
        """
        Record bf16 runs that carry a seed.  They stay in the table but are
        left out of every size × group cell.
        """
        unclassified = unclassified_runs(runs_df)
        for size, rows in unclassified.groupby("size", observed=True):
            self.add(
                "data",
                f"size={size}, quant=bf16, seed present",
                f"{len(rows)} run(s) match no group label; excluded from "
                "group-keyed tables and tests",
            )
        return len(unclassified)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.entries, columns=FAILURE_COLUMNS)

    def print_summary(self) -> None:
        if not self.entries:
            print("  All report cells computed.")
            return
        print(f"  {len(self.entries)} report cell(s) could not be computed:")
        for entry in self.entries:
            print(f"    [{entry['section']}] {entry['cell']}: {entry['reason']}")

    def export(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(path, index=False)
        return path
