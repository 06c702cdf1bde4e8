"""Tests for the reporter."""

import io

import pytest
from rich.console import Console

from conformance_harness.models.outcome import (
    Diagnostic,
    IncorrectlyErrored,
    IncorrectlyPassed,
    ParserCrash,
    ParserCrashed,
    Verdict,
)
from conformance_harness.reporter import (
    Report,
    aggregate,
    build_table,
    display_path,
    exit_code,
    failure_reason,
    format_diagnostic,
    format_failure_detail,
    format_failure_line,
    format_output,
)
from conformance_harness.testing.factories import (
    DiagnosticFactory,
    ParserCrashFactory,
    VerdictFactory,
)


def mixed_verdicts() -> list[Verdict]:
    """Two passes, one of each failure kind."""
    return [
        VerdictFactory.build(path="a.js"),
        VerdictFactory.build(path="b.js"),
        VerdictFactory.build(path="c.js", failure=IncorrectlyPassed()),
        VerdictFactory.build(
            path="d.js",
            failure=IncorrectlyErrored((DiagnosticFactory.build(),)),
        ),
        VerdictFactory.build(
            path="e.js", failure=ParserCrashed(ParserCrashFactory.build())
        ),
    ]


class TestAggregate:
    """Tests for aggregate."""

    def test_counts_each_kind(self) -> None:
        """Incorrect passes and errors count as failed, crashes separately."""
        report = aggregate(mixed_verdicts())

        assert report == Report(ran=5, passed=2, failed=2, crashed=1)

    def test_coverage_two_decimals(self) -> None:
        """Coverage is rendered with two decimals."""
        verdicts = [VerdictFactory.build()] + [
            VerdictFactory.build(failure=IncorrectlyPassed()) for _ in range(2)
        ]

        report = aggregate(verdicts)

        assert report.coverage == pytest.approx(100 / 3)
        assert report.coverage_text == "33.33"

    def test_full_coverage(self) -> None:
        """All passing tests give 100.00."""
        report = aggregate([VerdictFactory.build() for _ in range(4)])

        assert report.coverage_text == "100.00"

    def test_empty_run(self) -> None:
        """No verdicts give zero counts and zero coverage."""
        report = aggregate([])

        assert report == Report(ran=0, passed=0, failed=0, crashed=0)
        assert report.coverage_text == "0.00"


@pytest.mark.parametrize(
    ("report", "policy", "expected"),
    [
        (Report(ran=3, passed=3, failed=0, crashed=0), "conventional", 0),
        (Report(ran=3, passed=2, failed=1, crashed=0), "conventional", 1),
        (Report(ran=3, passed=2, failed=0, crashed=1), "conventional", 1),
        (Report(ran=0, passed=0, failed=0, crashed=0), "conventional", 0),
        (Report(ran=3, passed=3, failed=0, crashed=0), "legacy", 1),
        (Report(ran=3, passed=1, failed=2, crashed=0), "legacy", 1),
        (Report(ran=3, passed=0, failed=2, crashed=1), "legacy", 0),
    ],
)
def test_exit_code(report: Report, policy: str, expected: int) -> None:
    """Exit code follows the selected policy."""
    assert exit_code(report, policy) == expected  # type: ignore[arg-type]


def test_display_path_strips_prefix() -> None:
    """Configured prefix is removed from displayed paths."""
    prefix = "test262/test/"
    assert display_path("test262/test/language/a.js", prefix) == "language/a.js"
    assert display_path("other/a.js", prefix) == "other/a.js"
    assert display_path("language/a.js") == "language/a.js"


@pytest.mark.parametrize(
    ("failure", "reason"),
    [
        (IncorrectlyPassed(), "incorrectly passed parsing"),
        (IncorrectlyErrored(()), "incorrectly threw an error"),
        (ParserCrashed(ParserCrash(error_type="IndexError")), "crashed while parsing"),
    ],
)
def test_failure_reason(failure: object, reason: str) -> None:
    """Each failure kind has a short label."""
    assert failure_reason(failure) == reason  # type: ignore[arg-type]


def test_format_failure_line() -> None:
    """Failure line names the test and the reason."""
    verdict = Verdict(path="t/language/a.js", code="", failure=IncorrectlyPassed())

    assert (
        format_failure_line(verdict, "t/")
        == "Test 'language/a.js' incorrectly passed parsing"
    )


@pytest.mark.parametrize("formatter", [format_failure_line, format_failure_detail])
def test_formatting_passing_verdict_raises(formatter: object) -> None:
    """Passing verdicts have no failure to describe."""
    verdict = Verdict(path="a.js", code="", failure=None)

    with pytest.raises(ValueError, match="a.js"):
        formatter(verdict)  # type: ignore[operator]


class TestFormatDiagnostic:
    """Tests for format_diagnostic."""

    def test_points_at_source_line(self) -> None:
        """Renders the offending line with a caret under the column."""
        diagnostic = Diagnostic(message="Unexpected token", line=2, column=5)

        rendered = format_diagnostic(diagnostic, "a.js", "var a;\nvar = 1;\n")

        assert rendered == "a.js:2:5: Unexpected token\n    var = 1;\n        ^"

    def test_without_location(self) -> None:
        """Diagnostics without a line only show the message."""
        rendered = format_diagnostic(Diagnostic(message="Bad"), "a.js", "x")

        assert rendered == "a.js: Bad"

    def test_line_out_of_range(self) -> None:
        """Lines past the end of the code skip the snippet."""
        diagnostic = Diagnostic(message="Unexpected end", line=9, column=1)

        assert format_diagnostic(diagnostic, "a.js", "x") == "a.js:9:1: Unexpected end"


class TestFormatFailureDetail:
    """Tests for format_failure_detail."""

    def test_incorrectly_passed(self) -> None:
        """Explains the test was expected to fail."""
        verdict = Verdict(path="a.js", code="", failure=IncorrectlyPassed())

        detail = format_failure_detail(verdict)

        assert detail.startswith("Test 'a.js' failed")
        assert "Expected this test to fail" in detail

    def test_incorrectly_errored_renders_diagnostics(self) -> None:
        """Lists every diagnostic against the parsed code."""
        code = '"use strict";\nwith (a) {}\n'
        verdict = Verdict(
            path="a.js",
            code=code,
            failure=IncorrectlyErrored(
                (
                    Diagnostic(
                        message="Strict mode code may not include a with statement",
                        line=2,
                        column=1,
                    ),
                )
            ),
        )

        detail = format_failure_detail(verdict)

        assert "expected to pass parsing without errors" in detail
        assert "a.js:2:1: Strict mode code may not include a with statement" in detail
        assert "with (a) {}" in detail

    def test_crash_with_message(self) -> None:
        """Shows the crash message and how to investigate."""
        verdict = Verdict(
            path="a.js",
            code="",
            failure=ParserCrashed(
                ParserCrash(error_type="AssertionError", message="bad state")
            ),
        )

        detail = format_failure_detail(verdict)

        assert "AssertionError: bad state" in detail
        assert "run the file manually" in detail

    def test_crash_without_message(self) -> None:
        """Reports an unknown crash when no message was captured."""
        verdict = Verdict(
            path="a.js",
            code="",
            failure=ParserCrashed(ParserCrash(error_type="SilentFault")),
        )

        detail = format_failure_detail(verdict)

        assert "unknown crash" in detail
        assert "SilentFault" in detail


def test_build_table() -> None:
    """Table has one column per count and a single row of values."""
    table = build_table(Report(ran=5, passed=2, failed=2, crashed=1))
    output = io.StringIO()

    Console(file=output, width=100).print(table)
    rendered = output.getvalue()

    assert [column.header for column in table.columns] == [
        "Tests ran",
        "Passed",
        "Failed",
        "Crashes",
        "Coverage",
    ]
    assert table.row_count == 1
    assert "Conformance results" in rendered
    assert "Tests ran" in rendered
    value_line = next(line for line in rendered.splitlines() if "40.00" in line)
    assert [token for token in value_line.split() if token[0].isdigit()] == [
        "5",
        "2",
        "2",
        "1",
        "40.00",
    ]


def test_format_output() -> None:
    """JSON summary carries counts and failing tests only."""
    verdicts = mixed_verdicts()

    output = format_output(aggregate(verdicts), verdicts)

    assert output["ran"] == 5
    assert output["passed"] == 2
    assert output["failed"] == 2
    assert output["crashed"] == 1
    assert output["coverage"] == "40.00"
    assert output["failures"] == [
        {"path": "c.js", "reason": "incorrectly passed parsing"},
        {"path": "d.js", "reason": "incorrectly threw an error"},
        {"path": "e.js", "reason": "crashed while parsing"},
    ]
