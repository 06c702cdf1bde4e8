"""Fault-isolated execution of a parser on one code sample."""

import sys
import threading
import traceback
from collections.abc import Iterator
from contextlib import contextmanager

from conformance_harness.models.outcome import (
    Crashed,
    ExecutionOutcome,
    ParsedSuccessfully,
    ParsedWithDiagnostics,
    ParserCrash,
)
from conformance_harness.parsers.base import SourceParser

STRICT_DIRECTIVE = '"use strict";\n'


def execute(
    parser: SourceParser,
    code: str,
    *,
    strict: bool,
    module: bool,
) -> tuple[str, ExecutionOutcome]:
    """Run the parser once and normalize its outcome.

    Any exception raised by the parser is captured as a crash so that the
    calling worker and its siblings keep running.

    Args:
        parser: Parser under test
        code: Source text of the test
        strict: Prepend a strict-mode directive before parsing
        module: Parse with the module grammar instead of the script grammar

    Returns:
        The code actually parsed and the outcome of the parse

    """
    if strict:
        code = STRICT_DIRECTIVE + code

    try:
        if module:
            diagnostics = parser.parse_module(code)
        else:
            diagnostics = parser.parse_script(code)
    except Exception as exc:
        return code, Crashed(capture_crash(exc))

    if diagnostics:
        return code, ParsedWithDiagnostics(tuple(diagnostics))
    return code, ParsedSuccessfully()


def capture_crash(exc: BaseException) -> ParserCrash:
    """Capture an exception as plain text so it survives pickling."""
    return ParserCrash(
        error_type=type(exc).__qualname__,
        message=str(exc) or None,
        traceback="".join(traceback.format_exception(exc)),
    )


def _ignore_exception(*args: object) -> None:
    pass


def silence_fault_reporting() -> None:
    """Install silent global fault hooks for the rest of the process.

    Used as the initializer of pool worker processes, which exit with the
    pool and have nothing to restore.
    """
    sys.excepthook = _ignore_exception
    sys.unraisablehook = _ignore_exception
    threading.excepthook = _ignore_exception


@contextmanager
def suppress_fault_reporting() -> Iterator[None]:
    """Silence global fault hooks while concurrent parses are running.

    The previous hooks are restored on every exit path.
    """
    saved = (sys.excepthook, sys.unraisablehook, threading.excepthook)
    silence_fault_reporting()
    try:
        yield
    finally:
        sys.excepthook, sys.unraisablehook, threading.excepthook = saved
