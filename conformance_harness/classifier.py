"""Classification of parse outcomes against declared expectations."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from conformance_harness.executor import execute
from conformance_harness.models.outcome import (
    Crashed,
    ExecutionOutcome,
    FailureKind,
    IncorrectlyErrored,
    IncorrectlyPassed,
    ParsedSuccessfully,
    ParsedWithDiagnostics,
    ParserCrashed,
    Verdict,
)
from conformance_harness.models.record import TestFlag, TestRecord
from conformance_harness.parsers.base import SourceParser


@dataclass(frozen=True, kw_only=True)
class ExecutionMode:
    """Grammar and strictness used for one parse of a test."""

    strict: bool
    module: bool


SLOPPY = ExecutionMode(strict=False, module=False)
STRICT = ExecutionMode(strict=True, module=False)
MODULE = ExecutionMode(strict=False, module=True)


@dataclass(frozen=True, kw_only=True)
class ModeRun:
    """Classified result of parsing a test under one mode."""

    code: str
    failure: FailureKind | None


def classify(
    outcome: ExecutionOutcome, *, expects_parse_failure: bool
) -> FailureKind | None:
    """Decide whether a parse outcome meets the test's expectation.

    Returns:
        None when the outcome matches, otherwise the kind of failure

    """
    match outcome:
        case Crashed(crash=crash):
            return ParserCrashed(crash)
        case ParsedSuccessfully():
            return IncorrectlyPassed() if expects_parse_failure else None
        case ParsedWithDiagnostics(diagnostics=diagnostics):
            return None if expects_parse_failure else IncorrectlyErrored(diagnostics)


def select_modes(flags: Iterable[TestFlag]) -> Sequence[ExecutionMode]:
    """Select the modes a test must be parsed under.

    Flags are checked in priority order: onlyStrict, noStrict/raw, module.
    A test with none of them must parse both without and with the
    strict-mode directive, in that order.
    """
    flags = frozenset(flags)
    if TestFlag.ONLY_STRICT in flags:
        return (STRICT,)
    if TestFlag.NO_STRICT in flags or TestFlag.RAW in flags:
        return (SLOPPY,)
    if TestFlag.MODULE in flags:
        return (MODULE,)
    return (SLOPPY, STRICT)


def merge_runs(runs: Sequence[ModeRun]) -> ModeRun:
    """Combine per-mode runs into the run that decides the verdict.

    The first failing run wins; if every run passed, the last one is kept.
    """
    for run in runs:
        if run.failure is not None:
            return run
    return runs[-1]


def run_test_record(parser: SourceParser, record: TestRecord) -> Verdict:
    """Parse a test under each of its modes and produce its verdict."""
    expects_parse_failure = record.metadata.expects_parse_failure

    runs: list[ModeRun] = []
    for mode in select_modes(record.metadata.flags):
        code, outcome = execute(
            parser, record.code, strict=mode.strict, module=mode.module
        )
        failure = classify(outcome, expects_parse_failure=expects_parse_failure)
        runs.append(ModeRun(code=code, failure=failure))

    decisive = merge_runs(runs)
    return Verdict(path=record.path, code=decisive.code, failure=decisive.failure)
