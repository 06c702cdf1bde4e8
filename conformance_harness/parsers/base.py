"""Abstract base class for source parsers under test."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from conformance_harness.models.outcome import Diagnostic


@dataclass(frozen=True, kw_only=True)
class SourceParser(ABC):
    """Abstract base for parsers exercised by the harness.

    Implementations must be picklable so they can be shipped to process
    pool workers. Both entry points return the diagnostics found in the
    text, an empty sequence meaning the text parsed cleanly. Any exception
    they raise is treated as a parser crash.
    """

    @abstractmethod
    def parse_script(self, text: str) -> Sequence[Diagnostic]:
        """Parse text with the script grammar.

        Args:
            text: Source text to parse

        Returns:
            Diagnostics reported by the parser (empty on success)

        """

    @abstractmethod
    def parse_module(self, text: str) -> Sequence[Diagnostic]:
        """Parse text with the module grammar.

        Args:
            text: Source text to parse

        Returns:
            Diagnostics reported by the parser (empty on success)

        """
