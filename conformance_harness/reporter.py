"""Aggregation and formatting of test verdicts."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from rich.table import Table

from conformance_harness.config import ExitPolicy
from conformance_harness.models.outcome import (
    Diagnostic,
    FailureKind,
    IncorrectlyErrored,
    IncorrectlyPassed,
    ParserCrashed,
    Verdict,
)


@dataclass(frozen=True, kw_only=True)
class Report:
    """Aggregate counts over all verdicts of a run."""

    ran: int
    passed: int
    failed: int
    crashed: int

    @property
    def coverage(self) -> float:
        """Percentage of tests that passed (0 when nothing ran)."""
        if not self.ran:
            return 0.0
        return self.passed / self.ran * 100

    @property
    def coverage_text(self) -> str:
        """Coverage rendered with two decimals."""
        return f"{self.coverage:.2f}"


def aggregate(verdicts: Sequence[Verdict]) -> Report:
    """Count passed, failed and crashed verdicts."""
    passed = failed = crashed = 0
    for verdict in verdicts:
        match verdict.failure:
            case None:
                passed += 1
            case ParserCrashed():
                crashed += 1
            case IncorrectlyPassed() | IncorrectlyErrored():
                failed += 1

    return Report(ran=len(verdicts), passed=passed, failed=failed, crashed=crashed)


def exit_code(report: Report, policy: ExitPolicy = "conventional") -> int:
    """Compute the process exit status for a report.

    The legacy policy exits with 1 as soon as any test passed and with 0
    when none did, for automation written against that convention.
    """
    if policy == "legacy":
        return 1 if report.passed > 0 else 0
    return 1 if report.failed or report.crashed else 0


def display_path(path: str, prefix: str = "") -> str:
    """Strip the configured prefix from a test path."""
    if prefix and path.startswith(prefix):
        return path[len(prefix) :]
    return path


def failure_reason(failure: FailureKind) -> str:
    """Short label describing a failure."""
    match failure:
        case IncorrectlyPassed():
            return "incorrectly passed parsing"
        case IncorrectlyErrored():
            return "incorrectly threw an error"
        case ParserCrashed():
            return "crashed while parsing"


def format_failure_line(verdict: Verdict, path_prefix: str = "") -> str:
    """One-line summary of a failing verdict."""
    if verdict.failure is None:
        raise ValueError(f"Verdict for '{verdict.path}' is not a failure")
    path = display_path(verdict.path, path_prefix)
    return f"Test '{path}' {failure_reason(verdict.failure)}"


def format_diagnostic(diagnostic: Diagnostic, path: str, code: str) -> str:
    """Render a diagnostic with the source line it points at."""
    if diagnostic.line is None:
        return f"{path}: {diagnostic.message}"

    location = f"{path}:{diagnostic.line}:{diagnostic.column or 0}"
    lines = code.splitlines()
    if not 0 < diagnostic.line <= len(lines):
        return f"{location}: {diagnostic.message}"

    source_line = lines[diagnostic.line - 1]
    caret = " " * max((diagnostic.column or 1) - 1, 0) + "^"
    return f"{location}: {diagnostic.message}\n    {source_line}\n    {caret}"


def format_failure_detail(verdict: Verdict, path_prefix: str = "") -> str:
    """Multi-line explanation of a failing verdict."""
    if verdict.failure is None:
        raise ValueError(f"Verdict for '{verdict.path}' is not a failure")
    path = display_path(verdict.path, path_prefix)
    header = f"Test '{path}' failed"

    match verdict.failure:
        case IncorrectlyPassed():
            body = (
                "    Expected this test to fail, "
                "but instead it passed without errors."
            )
        case IncorrectlyErrored(diagnostics=diagnostics):
            rendered = "\n".join(
                format_diagnostic(diagnostic, path, verdict.code)
                for diagnostic in diagnostics
            )
            body = (
                "    This test threw errors but expected to pass parsing "
                f"without errors:\n\n{rendered}"
            )
        case ParserCrashed(crash=crash):
            if crash.message is None:
                body = (
                    "    This test caused an unknown crash inside the parser "
                    f"({crash.error_type})"
                )
            else:
                body = (
                    "    This test caused a crash inside the parser:\n"
                    f"    {crash.error_type}: {crash.message}\n\n"
                    "    For more information about the crash run the file manually"
                )

    return f"{header}\n{body}"


def build_table(report: Report) -> Table:
    """Build the coverage table for a report."""
    table = Table(title="Conformance results")
    table.add_column("Tests ran", style="cyan", justify="center")
    table.add_column("Passed", style="green", justify="center")
    table.add_column("Failed", style="red", justify="center")
    table.add_column("Crashes", style="magenta", justify="center")
    table.add_column("Coverage", style="bold", justify="center")
    table.add_row(
        str(report.ran),
        str(report.passed),
        str(report.failed),
        str(report.crashed),
        report.coverage_text,
    )
    return table


def format_output(
    report: Report, verdicts: Sequence[Verdict], path_prefix: str = ""
) -> dict[str, Any]:
    """Format a report and its failing verdicts for JSON output."""
    failures: list[dict[str, Any]] = []
    for verdict in verdicts:
        if verdict.failure is None:
            continue
        failures.append(
            {
                "path": display_path(verdict.path, path_prefix),
                "reason": failure_reason(verdict.failure),
            }
        )

    return {
        "ran": report.ran,
        "passed": report.passed,
        "failed": report.failed,
        "crashed": report.crashed,
        "coverage": report.coverage_text,
        "failures": failures,
    }
