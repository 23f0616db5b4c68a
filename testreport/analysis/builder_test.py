"""Tests for the report builder state machine."""

from __future__ import annotations

import pytest

from testreport.analysis.builder import (
    COVERAGE_PACKAGES_PROPERTY,
    SUMMARY_PROPERTY,
    ReportBuilder,
)
from testreport.config import BuilderConfig
from testreport.reporting import models


@pytest.fixture
def builder():
    return ReportBuilder()


class TestTestLifecycle:
    """Tests for creating, pausing, continuing and ending tests."""

    def test_single_passing_test(self, builder):
        """Output of a level-0 test is stripped of the tool indent."""
        builder.create_test("TestA")
        builder.append_output("    hello\n")
        builder.end_test("TestA", "PASS", 0.001, 0)
        builder.end()
        builder.create_package("pkg", "ok", 0.001, None)
        report = builder.build()

        assert len(report.packages) == 1
        pkg = report.packages[0]
        assert pkg.name == "pkg"
        assert len(pkg.tests) == 1
        test = pkg.tests[0]
        assert test.name == "TestA"
        assert test.result == models.PASS
        assert test.output == ("hello\n",)
        assert report.is_successful

    def test_end_without_create(self, builder):
        """Ending an unseen test yields exactly one test entry."""
        builder.end_test("TestA", "FAIL", 0.2, 0)
        builder.create_package("pkg", "FAIL", 0.3, "")
        report = builder.build()
        tests = report.packages[0].tests
        assert [t.name for t in tests] == ["TestA"]
        assert tests[0].result == models.FAIL
        assert tests[0].duration == 0.2

    def test_subtest_level(self, builder):
        """The level comes from the end event, not the name."""
        builder.create_test("TestA")
        builder.create_test("TestA/sub")
        builder.append_output("        sub output")
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.end_test("TestA/sub", "PASS", 0.0, 1)
        builder.create_package("pkg", "ok", 0.0, "")
        tests = builder.build().packages[0].tests
        assert [(t.name, t.level) for t in tests] == [
            ("TestA", 0),
            ("TestA/sub", 1),
        ]
        assert tests[1].output == ("sub output",)
        assert tests[0].output == ()

    def test_paused_test_output_goes_to_package(self, builder):
        """Output while no test is running belongs to the package."""
        builder.create_test("TestA")
        builder.pause_test("TestA")
        builder.append_output("between tests")
        builder.continue_test("TestA")
        builder.append_output("    resumed")
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg", "ok", 0.0, "")
        pkg = builder.build().packages[0]
        assert pkg.output == ("between tests",)
        assert pkg.tests[0].output == ("resumed",)

    def test_interleaved_parallel_tests(self, builder):
        """Output follows whichever test was last continued."""
        builder.create_test("TestA")
        builder.pause_test("TestA")
        builder.create_test("TestB")
        builder.pause_test("TestB")
        builder.continue_test("TestA")
        builder.append_output("    a1")
        builder.continue_test("TestB")
        builder.append_output("    b1")
        builder.end_test("TestB", "PASS", 0.0, 0)
        builder.continue_test("TestA")
        builder.append_output("    a2")
        builder.end_test("TestA", "FAIL", 0.0, 0)
        builder.create_package("pkg", "FAIL", 0.0, "")
        pkg = builder.build().packages[0]
        outputs = {t.name: t.output for t in pkg.tests}
        assert outputs == {"TestA": ("a1", "a2"), "TestB": ("b1",)}
        assert pkg.run_error is None

    def test_pause_unknown_test(self, builder):
        """Pausing an unknown test is silently tolerated."""
        builder.pause_test("TestMissing")
        assert builder.warnings == []
        assert builder.build().packages == ()

    def test_output_after_end_goes_to_package(self, builder):
        """A sealed test receives no further output."""
        builder.create_test("TestA")
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.append_output("trailing")
        builder.create_package("pkg", "ok", 0.0, "")
        pkg = builder.build().packages[0]
        assert pkg.tests[0].output == ()
        assert pkg.output == ("trailing",)

    def test_ended_test_is_not_reopened(self, builder, capsys):
        """Restarting or re-ending a sealed test is only a warning."""
        builder.create_test("TestA")
        builder.end_test("TestA", "PASS", 0.1, 0)
        builder.create_test("TestA")
        builder.continue_test("TestA")
        builder.end_test("TestA", "FAIL", 0.2, 0)
        builder.create_package("pkg", "ok", 0.0, "")
        report = builder.build()
        (test,) = report.packages[0].tests
        assert test.result == models.PASS
        assert len(report.warnings) == 3
        assert "TestA" in capsys.readouterr().err

    def test_unfinished_test_is_unknown(self, builder):
        """A test cut off mid-stream stays incomplete."""
        builder.create_test("TestA")
        builder.append_output("    panic: boom")
        report = builder.build()
        (test,) = report.packages[0].tests
        assert test.result == models.UNKNOWN
        assert test.output == ("panic: boom",)
        assert not report.is_successful


class TestPackages:
    """Tests for package sealing."""

    def test_packages_in_seal_order(self, builder):
        """Packages appear in the order they were sealed."""
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg/b", "ok", 0.1, "")
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg/a", "ok", 0.2, "")
        report = builder.build()
        assert [p.name for p in report.packages] == ["pkg/b", "pkg/a"]
        assert report.packages[1].duration == 0.2

    def test_tests_reset_between_packages(self, builder):
        """Test names are scoped to their package."""
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg/a", "ok", 0.0, "")
        builder.end_test("TestA", "FAIL", 0.0, 0)
        builder.create_package("pkg/b", "FAIL", 0.0, "")
        report = builder.build()
        assert report.packages[0].tests[0].result == models.PASS
        assert report.packages[1].tests[0].result == models.FAIL
        assert builder.warnings == []

    def test_create_package_twice(self, builder):
        """Sealing the same package twice yields one entry."""
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.end()
        builder.create_package("pkg", "ok", 0.5, "")
        builder.end()
        builder.create_package("pkg", "ok", 0.7, "")
        report = builder.build()
        assert len(report.packages) == 1
        assert report.packages[0].duration == 0.7
        assert len(report.packages[0].tests) == 1

    def test_repeated_summary_keeps_data(self, builder):
        """Summary data on a repeated summary is still stored."""
        builder.create_test("TestA")
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg", "ok", 1.0, None)
        builder.create_package("pkg", "ok", 1.0, "seed")
        report = builder.build()
        assert len(report.packages) == 1
        assert report.packages[0].properties.get(SUMMARY_PROPERTY) == "seed"

    def test_repeated_failing_summary_records_run_error(self, builder):
        """A later failing summary without failed tests is a run error."""
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg", "ok", 0.1, "")
        builder.create_package("pkg", "FAIL", 0.2, "")
        report = builder.build()
        (pkg,) = report.packages
        assert pkg.run_error is not None
        assert pkg.run_error.name == "pkg"
        assert not report.is_successful

    def test_same_property_key_last_write_wins(self, builder):
        """Setting a property twice keeps only the latest value."""
        builder.create_package("pkg", "ok", 0.0, "(cached)")
        builder.create_package("pkg", "ok", 0.0, "[no tests to run]")
        pkg = builder.build().packages[0]
        assert dict(pkg.properties) == {SUMMARY_PROPERTY: "[no tests to run]"}

    def test_event_property_overrides_config(self):
        """Properties from events win over configured ones."""
        config = BuilderConfig()
        config.set_config(properties={SUMMARY_PROPERTY: "cfg", "env": "ci"})
        builder = ReportBuilder(config)
        builder.create_package("pkg", "ok", 0.0, "evt")
        pkg = builder.build().packages[0]
        assert pkg.properties[SUMMARY_PROPERTY] == "evt"
        assert pkg.properties["env"] == "ci"

    def test_summary_data_stored_as_property(self, builder):
        builder.create_package("pkg", "ok", 0.0, "[no test files]")
        pkg = builder.build().packages[0]
        assert pkg.properties[SUMMARY_PROPERTY] == "[no test files]"

    def test_build_seals_open_package(self, builder):
        """Build seals accumulated state under the configured name."""
        config = BuilderConfig()
        config.set_config(package_name="default/pkg")
        builder = ReportBuilder(config)
        builder.create_test("TestA")
        builder.end_test("TestA", "PASS", 0.0, 0)
        report = builder.build()
        assert [p.name for p in report.packages] == ["default/pkg"]

    def test_empty_stream(self, builder):
        report = builder.build()
        assert report.packages == ()
        assert report.is_successful

    def test_config_properties_applied(self):
        """Configured properties are stamped on every package."""
        config = BuilderConfig()
        config.set_config(go_version="go1.22", properties={"env": "ci"})
        builder = ReportBuilder(config)
        builder.create_package("pkg", "ok", 0.0, "(cached)")
        pkg = builder.build().packages[0]
        assert dict(pkg.properties) == {
            "env": "ci",
            "go.version": "go1.22",
            SUMMARY_PROPERTY: "(cached)",
        }


class TestRunErrors:
    """Tests for run error detection."""

    def test_failed_summary_without_failed_tests(self, builder):
        """A failing package with no failing test records a run error."""
        builder.create_test("TestA")
        builder.append_output("    panic: runtime error")
        builder.end()
        builder.append_output("exit status 2")
        builder.create_package("pkg", "FAIL", 0.4, "")
        report = builder.build()
        pkg = report.packages[0]
        assert pkg.run_error is not None
        assert pkg.run_error.name == "pkg"
        assert pkg.run_error.output == ("exit status 2",)
        assert pkg.output == ()
        assert not report.is_successful

    def test_failed_summary_with_failed_test(self, builder):
        """A failing test explains the failed summary."""
        builder.end_test("TestA", "FAIL", 0.0, 0)
        builder.append_output("FAIL")
        builder.create_package("pkg", "FAIL", 0.0, "")
        pkg = builder.build().packages[0]
        assert pkg.run_error is None
        assert pkg.output == ("FAIL",)


class TestBuildErrors:
    """Tests for build error recording."""

    def test_build_error_collects_output(self, builder):
        """Output after a build error notice belongs to the error."""
        builder.create_build_error("pkg")
        builder.append_output("undefined: Foo\n")
        builder.end()
        report = builder.build()
        assert len(report.packages) == 1
        pkg = report.packages[0]
        assert pkg.name == "pkg"
        assert pkg.tests == ()
        assert pkg.build_error is not None
        assert pkg.build_error.output == ("undefined: Foo\n",)
        assert not report.is_successful

    def test_build_error_claimed_by_summary(self, builder):
        """The summary for the package supplies duration and cause."""
        builder.create_build_error("pkg/broken")
        builder.append_output("x.go:3: syntax error")
        builder.create_package("pkg/broken", "FAIL", 0.0, "[build failed]")
        pkg = builder.build().packages[0]
        assert pkg.build_error.cause == "[build failed]"
        assert pkg.run_error is None

    def test_later_build_error_overwrites(self, builder):
        builder.create_build_error("pkg")
        builder.append_output("first")
        builder.create_build_error("pkg")
        builder.append_output("second")
        report = builder.build()
        assert len(report.packages) == 1
        assert report.packages[0].build_error.output == ("second",)

    def test_prior_package_output_moves_to_error(self, builder):
        """Output printed before the build error is attached to it."""
        builder.append_output("# pkg")
        builder.create_build_error("pkg")
        builder.append_output("undefined: Bar")
        report = builder.build()
        pkg = report.packages[0]
        assert pkg.build_error.output == ("# pkg", "undefined: Bar")
        assert pkg.output == ()

    def test_build_error_and_tests_coexist(self, builder):
        """Tests seen alongside a build error are kept."""
        builder.create_build_error("pkg")
        builder.append_output("oops")
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg", "FAIL", 0.0, "")
        report = builder.build()
        pkg = report.packages[0]
        assert pkg.build_error is not None
        assert len(pkg.tests) == 1
        assert not report.is_successful


class TestBenchmarksAndCoverage:
    """Tests for benchmarks and coverage."""

    def test_benchmark_recorded(self, builder):
        builder.benchmark("BenchmarkA", 1000, 1234.5, 10.0, 64, 2)
        builder.benchmark("BenchmarkB", 10, 1.0, 0.0, 0, 0)
        builder.create_package("pkg", "ok", 1.0, "")
        pkg = builder.build().packages[0]
        assert [b.name for b in pkg.benchmarks] == ["BenchmarkA", "BenchmarkB"]
        bench = pkg.benchmarks[0]
        assert bench.result == models.PASS
        assert bench.iterations == 1000
        assert bench.ns_per_op == 1234.5
        assert bench.mb_per_sec == 10.0
        assert bench.bytes_per_op == 64
        assert bench.allocs_per_op == 2

    def test_coverage_attached(self, builder):
        builder.coverage(75.5, [])
        builder.create_package("pkg", "ok", 0.0, "")
        pkg = builder.build().packages[0]
        assert pkg.coverage == 75.5
        assert COVERAGE_PACKAGES_PROPERTY not in pkg.properties

    def test_coverage_defaults_to_unset(self, builder):
        builder.end_test("TestA", "PASS", 0.0, 0)
        builder.create_package("pkg", "ok", 0.0, "")
        assert builder.build().packages[0].coverage is None

    def test_cross_package_coverage_recorded(self, builder):
        """Other covered packages are recorded as a property."""
        builder.coverage(40.0, ["pkg", "pkg/util", "pkg/db"])
        builder.create_package("pkg", "ok", 0.0, "")
        pkg = builder.build().packages[0]
        assert pkg.properties[COVERAGE_PACKAGES_PROPERTY] == "pkg/util, pkg/db"
