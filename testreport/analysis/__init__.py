"""Event analysis: output normalisation, test tracking, and report building."""

from testreport.analysis.builder import ReportBuilder, assemble_report
from testreport.analysis.events import Event, dispatch, from_events
from testreport.analysis.output import trim_prefix_spaces
from testreport.analysis.tracker import TestNode, TestNodeTracker

__all__ = [
    "Event",
    "ReportBuilder",
    "TestNode",
    "TestNodeTracker",
    "assemble_report",
    "dispatch",
    "from_events",
    "trim_prefix_spaces",
]
