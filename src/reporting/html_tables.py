"""
HTML rendering of the report tables: one self-contained page with a
section per table.  Missing (not computable) cells are shown as "n/c".
"""

from __future__ import annotations

import html
from pathlib import Path

import pandas as pd

from .config import REPORT_TITLE, TABLE_FLOAT_DIGITS

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
  body {{ font-family: Georgia, serif; margin: 2em; }}
  table.summary {{ border-collapse: collapse; margin-bottom: 2em; font-size: 0.9em; }}
  table.summary th, table.summary td {{ border: 1px solid #999; padding: 4px 8px; }}
  table.summary th {{ background: #eee; }}
</style>
</head>
<body>
<h1>{title}</h1>
{sections}
</body>
</html>
"""


def table_to_html(df: pd.DataFrame, index: bool = False) -> str:
    """Render one DataFrame as an HTML table fragment."""
    return df.to_html(
        index=index,
        float_format=f"{{:.{TABLE_FLOAT_DIGITS}f}}".format,
        na_rep="n/c",
        classes="summary",
        border=0,
    )


def render_html_tables(
    sections: dict[str, pd.DataFrame],
    path: Path,
    title: str = REPORT_TITLE,
    index_sections: tuple[str, ...] = (),
) -> Path:
    """
    Write every table to a single HTML page.

    Args:
        sections: Section heading → table, rendered in dict order.
        path: Output .html file.
        title: Page title and top heading.
        index_sections: Headings whose DataFrame index is meaningful
            (e.g. the correlation matrix) and should be rendered.

    Returns:
        The path written.
    """
    parts = [
        f"<h2>{html.escape(heading)}</h2>\n"
        + table_to_html(df, index=heading in index_sections)
        for heading, df in sections.items()
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        _PAGE.format(title=html.escape(title), sections="\n".join(parts)),
        encoding="utf-8",
    )
    print(f"HTML tables written to {path}")
    return path
