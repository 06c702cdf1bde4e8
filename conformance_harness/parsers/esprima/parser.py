"""Parser backed by the esprima ECMAScript parser."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import esprima
from esprima.error_handler import Error as EsprimaError

from conformance_harness.models.outcome import Diagnostic
from conformance_harness.parsers.base import SourceParser
from conformance_harness.parsers.esprima.config import EsprimaConfig


def to_diagnostic(error: EsprimaError) -> Diagnostic:
    """Convert an esprima error into a diagnostic."""
    return Diagnostic(
        message=getattr(error, "description", None) or str(error),
        line=error.lineNumber,
        column=error.column,
        index=error.index,
    )


@dataclass(frozen=True, kw_only=True)
class EsprimaParser(SourceParser):
    """Parser that delegates to esprima.

    Syntax errors raised by esprima become diagnostics. Any other
    exception is left to propagate and is reported as a crash.
    """

    config: EsprimaConfig

    @classmethod
    def from_config(cls, config: EsprimaConfig) -> "EsprimaParser":
        """Create parser from its configuration."""
        return cls(config=config)

    def parse_script(self, text: str) -> Sequence[Diagnostic]:
        """Parse text as a script."""
        return self._parse(esprima.parseScript, text)

    def parse_module(self, text: str) -> Sequence[Diagnostic]:
        """Parse text as a module."""
        return self._parse(esprima.parseModule, text)

    def _parse(self, parse: Any, text: str) -> Sequence[Diagnostic]:
        options = {"tolerant": True} if self.config.tolerant else None
        try:
            program = parse(text, options)
        except EsprimaError as error:
            return [to_diagnostic(error)]

        recovered = getattr(program, "errors", None) or ()
        return [to_diagnostic(error) for error in recovered]
