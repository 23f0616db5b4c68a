"""Build hierarchical test reports from test lifecycle event streams."""

from testreport.analysis.builder import ReportBuilder
from testreport.analysis.events import Event, from_events
from testreport.config import BuilderConfig
from testreport.reporting.models import Report
from testreport.reporting.reporter import Reporter

__all__ = [
    "BuilderConfig",
    "Event",
    "Report",
    "ReportBuilder",
    "Reporter",
    "from_events",
]
