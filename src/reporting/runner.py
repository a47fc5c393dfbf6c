"""
Report pipeline runner — load, summarize, test, render.

Loads the runs CSV, computes every summary table and statistical test,
draws the charts, writes the HTML and Word reports, and ends with the
failure summary listing any cell that could not be computed.

Usage (from project root):
    python -m src.reporting.runner [runs.csv] [output_dir] [--seed N]

Or programmatically:
    from src.reporting.runner import run_full_analysis
    results = run_full_analysis(seed=7)
"""

from __future__ import annotations

import argparse
from pathlib import Path

from src.analysis.bootstrap import make_rng
from src.analysis.config import (
    CHARTS_DIR,
    DEFAULT_SEED,
    FAILURE_SUMMARY_NAME,
    N_RESAMPLES,
    RESULTS_DIR,
)
from src.analysis.failures import FailureSummary
from src.analysis.performance import export_summary_tables
from src.analysis.statistics import flatten_test_results, run_all_statistical_tests
from src.data.config import RUNS_PATH
from src.data.loader import load_runs

from .charts import render_all_charts
from .config import DOCX_REPORT_NAME, HTML_REPORT_NAME
from .document import build_report_document
from .html_tables import render_html_tables


def run_full_analysis(
    runs_path: Path = RUNS_PATH,
    output_dir: Path = RESULTS_DIR,
    seed: int | None = DEFAULT_SEED,
    n_resamples: int = N_RESAMPLES,
    render: bool = True,
) -> dict:
    """
    Execute the full report pipeline and export all results.

    Args:
        runs_path: Evaluation-runs CSV.
        output_dir: Root directory for tables, charts and reports.
        seed: Seed for the single generator behind every bootstrap CI.
            ``None`` draws fresh entropy (non-reproducible).
        n_resamples: Bootstrap resamples per CI.
        render: If False, stop after tables and tests (no charts/reports).

    Returns:
        Dict with keys: runs, tables, statistics, charts, failures, and
        the report paths when rendered.

    Raises:
        FileNotFoundError: The runs CSV is missing.
        DatasetValidationError: The runs table was rejected.
    """
    sep = "=" * 70
    print(f"\n{sep}")
    print("EVALUATION REPORT PIPELINE")
    print(f"{sep}\n")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    rng = make_rng(seed)
    failures = FailureSummary()

    # ── Load ──
    runs_df = load_runs(runs_path)
    failures.note_unclassified(runs_df)

    # ── Summary tables ──
    print(f"\n{sep}")
    print("SUMMARY TABLES")
    print(sep)
    tables = export_summary_tables(
        runs_df, output_dir=output_dir, rng=rng, failures=failures,
        n_resamples=n_resamples,
    )

    # ── Statistical tests ──
    statistics = run_all_statistical_tests(runs_df, output_dir=output_dir, failures=failures)
    test_table = flatten_test_results(statistics)
    test_table.to_csv(output_dir / "statistical_tests.csv", index=False)

    results: dict = {
        "runs": runs_df,
        "tables": tables,
        "statistics": statistics,
        "test_table": test_table,
        "charts": {},
        "failures": failures,
    }

    # ── Charts and reports ──
    if render:
        print(f"\n{sep}")
        print("CHARTS AND REPORTS")
        print(sep)
        charts_dir = output_dir / CHARTS_DIR.name
        results["charts"] = render_all_charts(runs_df, tables, output_dir=charts_dir)

        sections = {"Statistical tests": test_table}
        sections.update({f"Summary: {m}": t for m, t in tables["metrics"].items()})
        sections["Quantiles"] = tables["quantiles"]
        sections["Cost-effectiveness"] = tables["cost_effectiveness"]
        sections["Correlation (Spearman)"] = tables["correlation"]
        sections["Cells not computed"] = failures.to_frame()
        results["html_path"] = render_html_tables(
            sections, output_dir / HTML_REPORT_NAME,
            index_sections=("Correlation (Spearman)",),
        )
        results["docx_path"] = build_report_document(
            tables, test_table, results["charts"], failures.to_frame(),
            output_dir / DOCX_REPORT_NAME,
        )

    # ── Failure summary ──
    print(f"\n{sep}")
    print("FAILURE SUMMARY")
    print(sep)
    failures.print_summary()
    failures.export(output_dir / FAILURE_SUMMARY_NAME)

    print(f"\n{sep}")
    print(f"REPORT COMPLETE — results in {output_dir}")
    print(sep)
    return results


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> dict:
    parser = argparse.ArgumentParser(description="Build the evaluation report.")
    parser.add_argument("runs_path", nargs="?", type=Path, default=RUNS_PATH,
                        help=f"runs CSV (default: {RUNS_PATH})")
    parser.add_argument("output_dir", nargs="?", type=Path, default=RESULTS_DIR,
                        help=f"results directory (default: {RESULTS_DIR})")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED,
                        help="seed for bootstrap resampling")
    parser.add_argument("--resamples", type=int, default=N_RESAMPLES,
                        help="bootstrap resamples per confidence interval")
    parser.add_argument("--no-render", action="store_true",
                        help="skip charts, HTML and Word output")
    args = parser.parse_args(argv)

    return run_full_analysis(
        runs_path=args.runs_path,
        output_dir=args.output_dir,
        seed=args.seed,
        n_resamples=args.resamples,
        render=not args.no_render,
    )


if __name__ == "__main__":
    main()
