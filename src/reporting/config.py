"""
Reporting-layer configuration: chart style, labels, and report file names.
"""

from src.data.config import GROUP_BASE_4BIT, GROUP_BASE_BF16, GROUP_FT_4BIT

# ---------------------------------------------------------------------------
# Output file names (relative to the results directory)
# ---------------------------------------------------------------------------

HTML_REPORT_NAME = "report_tables.html"
DOCX_REPORT_NAME = "report.docx"
REPORT_TITLE     = "Model Size, Quantization and Fine-Tuning: Evaluation Report"

# ---------------------------------------------------------------------------
# Chart style
# ---------------------------------------------------------------------------

FIGSIZE: tuple[float, float] = (9, 5.5)
HEATMAP_FIGSIZE: tuple[float, float] = (7.5, 6.5)
DPI: int = 150
BAR_WIDTH: float = 0.26

GROUP_COLORS: dict[str, str] = {
    GROUP_BASE_BF16: "#2E86AB",
    GROUP_BASE_4BIT: "#F18F01",
    GROUP_FT_4BIT:   "#A23B72",
}
SIZE_MARKERS: dict[str, str] = {"1B": "o", "3B": "s", "11B": "D"}

METRIC_LABELS: dict[str, str] = {
    "accuracy":        "Accuracy",
    "f1":              "F1",
    "throughput":      "Throughput (examples/s)",
    "latency":         "Latency (s/example)",
    "gpu_peak_mem_mb": "Peak GPU memory (MB)",
    "cpu_rss_mb":      "CPU RSS (MB)",
}

# Metrics drawn as bar+CI and boxplot charts, and those with interaction plots.
CHART_METRICS: list[str] = list(METRIC_LABELS)
INTERACTION_METRICS: list[str] = ["accuracy", "f1"]

# ---------------------------------------------------------------------------
# Word document style
# ---------------------------------------------------------------------------

DOC_FONT: str = "Times New Roman"
DOC_FONT_SIZE: int = 11
FIGURE_WIDTH_IN: float = 6.0
TABLE_FLOAT_DIGITS: int = 4
