"""Report records, summaries, and YAML/JSON report generation."""

from testreport.reporting.models import (
    Benchmark,
    Error,
    Package,
    Report,
    Test,
    parse_result,
)
from testreport.reporting.reporter import Reporter

__all__ = [
    "Benchmark",
    "Error",
    "Package",
    "Report",
    "Reporter",
    "Test",
    "parse_result",
]
