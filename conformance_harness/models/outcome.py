"""Models for parse outcomes and test verdicts."""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class Diagnostic:
    """Error reported by a parser for a code sample."""

    message: str
    line: int | None = None
    column: int | None = None
    index: int | None = None


@dataclass(frozen=True, kw_only=True)
class ParserCrash:
    """Captured unrecoverable parser fault.

    ``message`` is None when the fault carried no text.
    """

    error_type: str
    message: str | None = None
    traceback: str = ""


@dataclass(frozen=True)
class ParsedSuccessfully:
    """The parser accepted the code without diagnostics."""


@dataclass(frozen=True)
class ParsedWithDiagnostics:
    """The parser returned one or more diagnostics."""

    diagnostics: Sequence[Diagnostic]


@dataclass(frozen=True)
class Crashed:
    """The parser raised instead of returning."""

    crash: ParserCrash


ExecutionOutcome = ParsedSuccessfully | ParsedWithDiagnostics | Crashed


@dataclass(frozen=True)
class IncorrectlyPassed:
    """Parsing succeeded where the test expects a parse failure."""


@dataclass(frozen=True)
class IncorrectlyErrored:
    """Parsing reported diagnostics where the test expects success."""

    diagnostics: Sequence[Diagnostic]


@dataclass(frozen=True)
class ParserCrashed:
    """Parsing crashed, regardless of the test's expectations."""

    crash: ParserCrash


FailureKind = IncorrectlyPassed | IncorrectlyErrored | ParserCrashed


@dataclass(frozen=True, kw_only=True)
class Verdict:
    """Classified result of a single test record.

    ``code`` is the text handed to the parser by the run that decided the
    verdict, so it may carry an injected strict-mode directive.
    """

    path: str
    code: str
    failure: FailureKind | None = None

    @property
    def passed(self) -> bool:
        """Whether the test passed."""
        return self.failure is None
