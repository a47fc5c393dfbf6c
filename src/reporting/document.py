"""
Word (.docx) export of the report: test results, summary tables, charts,
and the list of cells that could not be computed.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from src.analysis.config import CI_ALPHA

from .config import (
    DOC_FONT,
    DOC_FONT_SIZE,
    FIGURE_WIDTH_IN,
    METRIC_LABELS,
    REPORT_TITLE,
    TABLE_FLOAT_DIGITS,
)


# ── Helpers: page, headings, body ────────────────────────────────────────────

def _set_margins(document, top=1, bottom=1, left=1.0, right=1.0):
    for section in document.sections:
        section.top_margin    = Inches(top)
        section.bottom_margin = Inches(bottom)
        section.left_margin   = Inches(left)
        section.right_margin  = Inches(right)


def _heading(document, text, level):
    p = document.add_heading(text, level=level)
    for run in p.runs:
        run.font.name = DOC_FONT
        run.font.size = Pt({0: 18, 1: 14, 2: 12}.get(level, DOC_FONT_SIZE))
        run.font.bold = True
    return p


def _body(document, text):
    p = document.add_paragraph(text)
    p.style = document.styles["Normal"]
    p.paragraph_format.space_after = Pt(6)
    return p


# ── Helpers: tables and figures ──────────────────────────────────────────────

def _format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (float, np.floating)):
        return "n/c" if np.isnan(value) else f"{value:.{TABLE_FLOAT_DIGITS}f}"
    return str(value)


def _add_table(document, df: pd.DataFrame, index: bool = False):
    frame = df.reset_index() if index else df
    table = document.add_table(rows=1, cols=len(frame.columns))
    table.style = "Table Grid"

    for cell, name in zip(table.rows[0].cells, frame.columns):
        cell.text = str(name)
        for run in cell.paragraphs[0].runs:
            run.font.bold = True
            run.font.size = Pt(9)

    for row in frame.itertuples(index=False):
        for cell, value in zip(table.add_row().cells, row):
            cell.text = _format_cell(value)
            for run in cell.paragraphs[0].runs:
                run.font.size = Pt(9)

    document.add_paragraph()
    return table


def _add_figure(document, path: Path, caption: str):
    document.add_picture(str(path), width=Inches(FIGURE_WIDTH_IN))
    document.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER
    p = _body(document, caption)
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    p.runs[0].font.italic = True
    return p


# ── Document ────────────────────────────────────────────────────────────────

def build_report_document(
    tables: dict,
    test_table: pd.DataFrame,
    charts: dict[str, Path],
    failures_df: pd.DataFrame,
    path: Path,
    title: str = REPORT_TITLE,
) -> Path:
    """
    Assemble and save the Word report.

    Args:
        tables: Return value of ``export_summary_tables``.
        test_table: Flattened test results (``flatten_test_results``).
        charts: Chart name → PNG path (``render_all_charts``).
        failures_df: ``FailureSummary.to_frame()``.
        path: Output .docx file.
        title: Document title.

    Returns:
        The path written.
    """
    document = Document()
    style = document.styles["Normal"]
    style.font.name = DOC_FONT
    style.font.size = Pt(DOC_FONT_SIZE)
    _set_margins(document)

    _heading(document, title, 0)

    _heading(document, "1  Hypothesis tests", 1)
    _body(
        document,
        "Residual normality (Shapiro-Wilk), Kruskal-Wallis across levels, "
        "pairwise Wilcoxon rank-sum tests with Bonferroni-adjusted p-values, "
        "and a two-way aligned rank transform ANOVA for size x group.",
    )
    _add_table(document, test_table)

    _heading(document, "2  Summary by size and group", 1)
    _body(
        document,
        f"Means with {100 * (1 - CI_ALPHA):g}% percentile bootstrap confidence "
        "intervals. 'n/c' marks a cell that could not be computed.",
    )
    for metric, table in tables["metrics"].items():
        _heading(document, METRIC_LABELS.get(metric, metric), 2)
        _add_table(document, table)

    _heading(document, "3  Cost-effectiveness", 1)
    _add_table(document, tables["cost_effectiveness"])

    _heading(document, "4  Metric correlations", 1)
    _add_table(document, tables["correlation"], index=True)

    _heading(document, "5  Charts", 1)
    for name, chart_path in charts.items():
        _add_figure(document, chart_path, name.replace("_", " "))

    _heading(document, "6  Cells not computed", 1)
    if failures_df.empty:
        _body(document, "Every report cell was computed.")
    else:
        _add_table(document, failures_df)

    path.parent.mkdir(parents=True, exist_ok=True)
    document.save(str(path))
    print(f"Word report written to {path}")
    return path
