"""Report summaries and serialisation.

Turns a built :class:`Report` into plain dicts, counts tests and
benchmarks by result, and writes the result as JSON or YAML.
"""

from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Any

import yaml

from testreport.reporting.models import (
    FAIL,
    PASS,
    SKIP,
    UNKNOWN,
    Benchmark,
    Error,
    Package,
    Report,
    Test,
)


class Reporter:
    """Generates summary and full report dicts for a built report."""

    def __init__(self, report: Report) -> None:
        self.report = report

    def summary(self) -> dict[str, Any]:
        """Count packages, tests and benchmarks by outcome."""
        counts = {PASS: 0, FAIL: 0, SKIP: 0, UNKNOWN: 0}
        benchmarks = 0
        build_errors = 0
        run_errors = 0
        for pkg in self.report.packages:
            for test in pkg.tests:
                counts[test.result] = counts.get(test.result, 0) + 1
            benchmarks += len(pkg.benchmarks)
            if pkg.build_error is not None:
                build_errors += 1
            if pkg.run_error is not None:
                run_errors += 1

        return {
            "packages": len(self.report.packages),
            "tests": sum(counts.values()),
            "passed": counts[PASS],
            "failed": counts[FAIL],
            "skipped": counts[SKIP],
            "unknown": counts[UNKNOWN],
            "benchmarks": benchmarks,
            "build_errors": build_errors,
            "run_errors": run_errors,
            "successful": self.report.is_successful,
        }

    def generate_report(self) -> dict[str, Any]:
        """Generate the full report as a dict.

        Returns:
            Report dictionary ready for JSON or YAML serialisation.
        """
        return {
            "report": {
                "generated_at": datetime.datetime.now(
                    datetime.timezone.utc
                ).isoformat(),
                "summary": self.summary(),
                "packages": [
                    self._format_package(pkg) for pkg in self.report.packages
                ],
                "warnings": list(self.report.warnings),
            }
        }

    def write_report(self, path: Path) -> None:
        """Write the report as a JSON file.

        Args:
            path: File path to write the JSON report to.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report, f, indent=2)

    def write_yaml(self, path: Path) -> None:
        """Write the report as a YAML file.

        Args:
            path: File path to write the YAML report to.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(
                report,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    def _format_package(self, pkg: Package) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "name": pkg.name,
            "duration_seconds": round(pkg.duration, 3),
        }
        if pkg.coverage is not None:
            entry["coverage"] = pkg.coverage
        if pkg.properties:
            entry["properties"] = dict(pkg.properties)
        if pkg.output:
            entry["output"] = list(pkg.output)
        entry["tests"] = [self._format_test(t) for t in pkg.tests]
        if pkg.benchmarks:
            entry["benchmarks"] = [
                self._format_benchmark(b) for b in pkg.benchmarks
            ]
        if pkg.build_error is not None:
            entry["build_error"] = self._format_error(pkg.build_error)
        if pkg.run_error is not None:
            entry["run_error"] = self._format_error(pkg.run_error)
        return entry

    def _format_test(self, test: Test) -> dict[str, Any]:
        return {
            "name": test.name,
            "result": test.result,
            "level": test.level,
            "duration_seconds": round(test.duration, 3),
            "output": list(test.output),
        }

    def _format_benchmark(self, bench: Benchmark) -> dict[str, Any]:
        return {
            "name": bench.name,
            "result": bench.result,
            "iterations": bench.iterations,
            "ns_per_op": bench.ns_per_op,
            "mb_per_sec": bench.mb_per_sec,
            "bytes_per_op": bench.bytes_per_op,
            "allocs_per_op": bench.allocs_per_op,
        }

    def _format_error(self, err: Error) -> dict[str, Any]:
        return {
            "name": err.name,
            "duration_seconds": round(err.duration, 3),
            "cause": err.cause,
            "output": list(err.output),
        }
