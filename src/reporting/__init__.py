"""
src/reporting — Charts, HTML tables and Word export for the evaluation report.

Module layout
-------------
config.py       — Chart style, metric labels, report file names
charts.py       — Bar+CI, boxplot, interaction, heatmap, cost scatter (matplotlib)
html_tables.py  — Single-page HTML rendering of the summary tables
document.py     — Word report (python-docx)
runner.py       — End-to-end pipeline and CLI

Public interface
----------------
    run_full_analysis(runs_path, output_dir, seed)
    render_all_charts(runs_df, tables, output_dir)
    render_html_tables(sections, path)
    build_report_document(tables, test_table, charts, failures_df, path)
"""

from .charts import render_all_charts
from .document import build_report_document
from .html_tables import render_html_tables
from .runner import run_full_analysis

__all__ = [
    "build_report_document",
    "render_all_charts",
    "render_html_tables",
    "run_full_analysis",
]
