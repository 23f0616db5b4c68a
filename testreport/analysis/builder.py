"""Incremental report construction from test lifecycle events.

``ReportBuilder`` receives one operation per event and mutates the state of
the package currently under construction.  In a ``go test`` stream the
tests of a package are seen before the summary line naming the package,
so the in-progress package accumulates anonymously until
``create_package`` seals it under its name.

Per test name the states are ``unseen -> running -> (paused <-> running)*
-> ended``; per package ``unseen -> open -> sealed``.  Nothing moves
backwards.  Malformed sequences never raise: they are either tolerated
silently or recorded in ``warnings``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from types import MappingProxyType

from testreport.analysis.tracker import TestNode, TestNodeTracker
from testreport.config import BuilderConfig
from testreport.reporting.models import (
    FAIL,
    PASS,
    Benchmark,
    Error,
    Package,
    Report,
    parse_result,
)

# Property holding the free-form data of a package summary event
SUMMARY_PROPERTY = "summary"

# Property listing the other packages a coverage figure was measured over
COVERAGE_PACKAGES_PROPERTY = "coverage.packages"


@dataclass
class _ErrorState:
    name: str
    duration: float = 0.0
    cause: str = ""
    output: list[str] = field(default_factory=list)

    def freeze(self) -> Error:
        return Error(
            name=self.name,
            duration=self.duration,
            cause=self.cause,
            output=tuple(self.output),
        )


@dataclass
class _PackageState:
    """Mutable state of the package under construction."""

    name: str = ""
    duration: float = 0.0
    coverage: float | None = None
    coverage_packages: list[str] = field(default_factory=list)
    output: list[str] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)
    tests: TestNodeTracker = field(default_factory=TestNodeTracker)
    benchmarks: list[Benchmark] = field(default_factory=list)
    build_error: _ErrorState | None = None
    run_error: _ErrorState | None = None

    def set_property(self, key: str, value: str) -> None:
        """Store a property, overwriting any previous value for *key*."""
        self.properties[key] = value

    def is_empty(self) -> bool:
        return not (
            len(self.tests)
            or self.benchmarks
            or self.output
            or self.coverage is not None
            or self.coverage_packages
            or self.properties
            or self.build_error
            or self.run_error
        )

    def freeze(self, base_properties: dict[str, str]) -> Package:
        return Package(
            name=self.name,
            duration=self.duration,
            coverage=self.coverage,
            output=tuple(self.output),
            properties=MappingProxyType({**base_properties, **self.properties}),
            tests=self.tests.freeze(),
            benchmarks=tuple(self.benchmarks),
            build_error=self.build_error.freeze() if self.build_error else None,
            run_error=self.run_error.freeze() if self.run_error else None,
        )


def assemble_report(
    packages: list[_PackageState],
    warnings: list[str],
    base_properties: dict[str, str] | None = None,
) -> Report:
    """Snapshot sealed package states into an immutable ``Report``.

    Packages keep the order in which they were sealed, tests the order in
    which they were first seen and benchmarks the order received.
    """
    props = dict(base_properties or {})
    return Report(
        packages=tuple(pkg.freeze(props) for pkg in packages),
        warnings=tuple(warnings),
    )


class ReportBuilder:
    """Builds a ``Report`` from test lifecycle operations.

    Output lines are routed to the active test (the one most recently
    started or continued and not since paused or ended), otherwise to a
    build error that is collecting output, otherwise to the package's own
    output.
    """

    def __init__(self, config: BuilderConfig | None = None) -> None:
        self.config = config if config is not None else BuilderConfig()
        self.warnings: list[str] = []
        self._packages: list[_PackageState] = []
        self._current: _PackageState | None = None
        self._build_errors: dict[str, _ErrorState] = {}
        self._active_test: TestNode | None = None
        self._active_build_error: _ErrorState | None = None

    def warn(self, message: str) -> None:
        """Record a non-fatal diagnostic."""
        self.warnings.append(message)
        print(f"report builder: {message}", file=sys.stderr)

    def _package(self) -> _PackageState:
        if self._current is None:
            self._current = _PackageState()
        return self._current

    def _release(self) -> None:
        self._active_test = None
        self._active_build_error = None

    # -- tests --------------------------------------------------------------

    def create_test(self, name: str) -> None:
        """Start test *name*, or resume it if it is already known."""
        tests = self._package().tests
        node = tests.get(name)
        if node is not None and node.sealed:
            self.warn(f"run_test for ended test {name!r} ignored")
            return
        tests.create(name)
        self._active_test = tests.cont(name)
        self._active_build_error = None

    def pause_test(self, name: str) -> None:
        node = self._package().tests.pause(name)
        if node is not None and node is self._active_test:
            self._active_test = None

    def continue_test(self, name: str) -> None:
        node = self._package().tests.get(name)
        if node is None:
            return
        if node.sealed:
            self.warn(f"cont_test for ended test {name!r} ignored")
            return
        self._package().tests.cont(name)
        self._active_test = node
        self._active_build_error = None

    def end_test(
        self,
        name: str,
        result: str,
        duration: float,
        level: int,
    ) -> None:
        """Seal test *name*.  A test that was never started is created."""
        tests = self._package().tests
        node = tests.get(name)
        if node is not None and node.sealed:
            self.warn(f"end_test for ended test {name!r} ignored")
            return
        node = tests.end(name, parse_result(result), duration, level)
        if node is self._active_test:
            self._active_test = None

    def benchmark(
        self,
        name: str,
        iterations: int,
        ns_per_op: float,
        mb_per_sec: float,
        bytes_per_op: int,
        allocs_per_op: int,
    ) -> None:
        self._package().benchmarks.append(Benchmark(
            name=name,
            result=PASS,
            iterations=iterations,
            ns_per_op=ns_per_op,
            mb_per_sec=mb_per_sec,
            bytes_per_op=bytes_per_op,
            allocs_per_op=allocs_per_op,
        ))

    # -- packages -----------------------------------------------------------

    def end(self) -> None:
        """Close the test-run phase of the current package.

        No test stays active and no build error keeps collecting output;
        anything printed afterwards belongs to the package itself.
        """
        self._release()

    def create_package(
        self,
        name: str,
        result: str,
        duration: float,
        data: str | None,
    ) -> None:
        """Seal everything accumulated so far as package *name*.

        A pending build error for *name* becomes the package's build error.
        Otherwise a failed summary without any failed test is recorded as a
        run error carrying the package output.  Repeating the call for the
        package just sealed, with nothing accumulated in between, updates
        that package instead of adding another one.
        """
        data = data or ""
        current = self._current
        last = self._packages[-1] if self._packages else None
        if (
            (current is None or current.is_empty())
            and name not in self._build_errors
            and last is not None
            and last.name == name
        ):
            if duration:
                last.duration = duration
            if (
                parse_result(result) == FAIL
                and last.build_error is None
                and last.run_error is None
                and not last.tests.has_failures()
            ):
                last.run_error = _ErrorState(name=name, duration=duration)
            if data:
                last.set_property(SUMMARY_PROPERTY, data)
            self._current = None
            self._release()
            return

        pkg = self._package()
        pkg.name = name
        pkg.duration = duration

        build_error = self._build_errors.pop(name, None)
        if build_error is not None:
            build_error.duration = duration
            build_error.cause = data
            pkg.build_error = build_error
        elif parse_result(result) == FAIL and not pkg.tests.has_failures():
            pkg.run_error = _ErrorState(
                name=name, duration=duration, output=pkg.output,
            )
            pkg.output = []

        if data:
            pkg.set_property(SUMMARY_PROPERTY, data)
        self._seal(pkg)

    def _seal(self, pkg: _PackageState) -> None:
        others = [p for p in pkg.coverage_packages if p != pkg.name]
        if others:
            pkg.set_property(COVERAGE_PACKAGES_PROPERTY, ", ".join(others))
        self._packages.append(pkg)
        self._current = None
        self._release()

    def coverage(self, percentage: float, packages: list[str] | None) -> None:
        pkg = self._package()
        pkg.coverage = percentage
        pkg.coverage_packages = list(packages or [])

    def create_build_error(self, name: str) -> None:
        """Start collecting build output for package *name*.

        Output already printed for a package that has no tests or
        benchmarks yet is moved into the error.
        """
        err = _ErrorState(name=name)
        current = self._current
        if current is not None and not len(current.tests) and not current.benchmarks:
            err.output.extend(current.output)
            current.output.clear()
        self._build_errors[name] = err
        self._active_build_error = err
        self._active_test = None

    def append_output(self, line: str) -> None:
        if self._active_test is not None:
            self._active_test.output.append(line)
        elif self._active_build_error is not None:
            self._active_build_error.output.append(line)
        else:
            self._package().output.append(line)

    # -- assembly -----------------------------------------------------------

    def build(self) -> Report:
        """Seal whatever is still open and return the finished report.

        Pending build errors are sealed under their own package names,
        then any remaining accumulated state under the configured package
        name.  Safe to call before the stream has ended.
        """
        for name in list(self._build_errors):
            self.create_package(name, "", 0.0, "")
        if self._current is not None and not self._current.is_empty():
            self.create_package(self.config.package_name, "", 0.0, "")
        return assemble_report(
            self._packages,
            self.warnings,
            self.config.package_properties,
        )
