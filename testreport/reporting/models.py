"""Report data models.

A ``Report`` is the immutable result of replaying a stream of test events:
an ordered collection of packages, each holding its tests, benchmarks,
unattributed output, properties and optional build/run errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# Result values
PASS = "pass"
FAIL = "fail"
SKIP = "skip"
UNKNOWN = "unknown"

VALID_RESULTS = frozenset({PASS, FAIL, SKIP, UNKNOWN})

# Result tokens as they appear in test tool output
_RESULT_TOKENS = {
    "PASS": PASS,
    "OK": PASS,
    "BENCH": PASS,
    "FAIL": FAIL,
    "SKIP": SKIP,
}


def parse_result(token: str | None) -> str:
    """Map a result token such as ``"PASS"`` or ``"ok"`` to a result value.

    Values that are already canonical are returned unchanged.  Anything
    unrecognised maps to ``UNKNOWN``.
    """
    if not token:
        return UNKNOWN
    token = token.strip()
    if token in VALID_RESULTS:
        return token
    return _RESULT_TOKENS.get(token.upper(), UNKNOWN)


@dataclass(frozen=True)
class Error:
    """Details of a build or run error."""

    name: str
    duration: float = 0.0
    cause: str = ""
    output: tuple[str, ...] = ()


@dataclass(frozen=True)
class Test:
    """Result of a single test or subtest.

    ``level`` is 0 for a top-level test and N for an Nth-level subtest.
    """

    name: str
    duration: float = 0.0
    result: str = UNKNOWN
    level: int = 0
    output: tuple[str, ...] = ()


@dataclass(frozen=True)
class Benchmark:
    """Result of a single benchmark."""

    name: str
    result: str = PASS
    output: tuple[str, ...] = ()
    iterations: int = 0
    ns_per_op: float = 0.0
    mb_per_sec: float = 0.0
    bytes_per_op: int = 0
    allocs_per_op: int = 0


@dataclass(frozen=True)
class Package:
    """Build, test and benchmark results for a single package."""

    name: str
    duration: float = 0.0
    coverage: float | None = None
    output: tuple[str, ...] = ()
    properties: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    tests: tuple[Test, ...] = ()
    benchmarks: tuple[Benchmark, ...] = ()
    build_error: Error | None = None
    run_error: Error | None = None

    @property
    def has_errors(self) -> bool:
        """True if the package failed to build or to run."""
        return self.build_error is not None or self.run_error is not None


@dataclass(frozen=True)
class Report:
    """Build, test and benchmark results for a collection of packages."""

    packages: tuple[Package, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_successful(self) -> bool:
        """True if no package has a build or run error and every test
        passed or was skipped.

        Tests that never finished have result ``UNKNOWN`` and count as
        failures.
        """
        for pkg in self.packages:
            if pkg.has_errors:
                return False
            for test in pkg.tests:
                if test.result not in (PASS, SKIP):
                    return False
        return True

    def find_package(self, name: str) -> Package | None:
        """Return the first package named *name*, or ``None``."""
        for pkg in self.packages:
            if pkg.name == name:
                return pkg
        return None
