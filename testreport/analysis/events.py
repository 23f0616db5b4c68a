"""Test lifecycle events and their dispatch onto a report builder.

Events are produced by an upstream tokenizer of test tool output.  Each
carries a ``type`` discriminant selecting one ``ReportBuilder`` operation;
unknown types are reported as warnings and skipped for forward
compatibility.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Iterable

from testreport.analysis.builder import ReportBuilder
from testreport.config import BuilderConfig
from testreport.reporting.models import Report

# Event discriminants
RUN_TEST = "run_test"
PAUSE_TEST = "pause_test"
CONT_TEST = "cont_test"
END_TEST = "end_test"
BENCHMARK = "benchmark"
STATUS = "status"
SUMMARY = "summary"
COVERAGE = "coverage"
BUILD_OUTPUT = "build_output"
OUTPUT = "output"

EVENT_TYPES = frozenset({
    RUN_TEST,
    PAUSE_TEST,
    CONT_TEST,
    END_TEST,
    BENCHMARK,
    STATUS,
    SUMMARY,
    COVERAGE,
    BUILD_OUTPUT,
    OUTPUT,
})


@dataclass
class Event:
    """A single test lifecycle event.

    Only the fields relevant to ``type`` are meaningful; the rest keep
    their defaults.  ``indent`` is the nesting level reported with an
    ``end_test`` event and ``data`` holds output text or summary data.
    """

    type: str
    name: str = ""
    result: str = ""
    duration: float = 0.0
    indent: int = 0
    iterations: int = 0
    ns_per_op: float = 0.0
    mb_per_sec: float = 0.0
    bytes_per_op: int = 0
    allocs_per_op: int = 0
    cov_pct: float = 0.0
    cov_packages: list[str] = field(default_factory=list)
    data: str = ""

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> Event:
        """Create an event from a mapping such as a decoded JSON object.

        Keys that are not event fields are ignored.  ``None`` values keep
        the field default.

        Raises:
            ValueError: If *entry* has no ``type``.
        """
        if not entry.get("type"):
            raise ValueError(f"event without type: {entry!r}")
        known = {f.name for f in fields(cls)}
        kwargs = {
            k: v for k, v in entry.items()
            if k in known and v is not None
        }
        pkgs = kwargs.get("cov_packages")
        if isinstance(pkgs, str):
            kwargs["cov_packages"] = [pkgs]
        elif pkgs is not None:
            kwargs["cov_packages"] = list(pkgs)
        return cls(**kwargs)


def dispatch(builder: ReportBuilder, ev: Event) -> None:
    """Apply a single event to *builder*."""
    if ev.type == RUN_TEST:
        builder.create_test(ev.name)
    elif ev.type == PAUSE_TEST:
        builder.pause_test(ev.name)
    elif ev.type == CONT_TEST:
        builder.continue_test(ev.name)
    elif ev.type == END_TEST:
        builder.end_test(ev.name, ev.result, ev.duration, ev.indent)
    elif ev.type == BENCHMARK:
        builder.benchmark(
            ev.name,
            ev.iterations,
            ev.ns_per_op,
            ev.mb_per_sec,
            ev.bytes_per_op,
            ev.allocs_per_op,
        )
    elif ev.type == STATUS:
        builder.end()
    elif ev.type == SUMMARY:
        builder.create_package(ev.name, ev.result, ev.duration, ev.data)
    elif ev.type == COVERAGE:
        builder.coverage(ev.cov_pct, ev.cov_packages)
    elif ev.type == BUILD_OUTPUT:
        builder.create_build_error(ev.name)
    elif ev.type == OUTPUT:
        builder.append_output(ev.data)
    else:
        builder.warn(f"unhandled event type: {ev.type}")


def from_events(
    events: Iterable[Event],
    config: BuilderConfig | None = None,
) -> Report:
    """Create a report from an ordered sequence of events.

    Args:
        events: Events in the order they were observed.
        config: Builder configuration (default package name, properties).

    Returns:
        The finished :class:`Report`.
    """
    builder = ReportBuilder(config)
    for ev in events:
        dispatch(builder, ev)
    return builder.build()
