"""Loading of parser plugins from entry points.

A plugin registers a `ParserManifest` under the ``conformance_harness.parsers``
entry-point group. The harness validates the ``--parser-config`` JSON with the
manifest's ``config_cls`` and hands the result to ``parser_factory``.

Parsers built by a factory run inside worker processes by default, so they
must be picklable: keep them free of open handles, locks and lambdas, or run
with ``--executor thread``.
"""

from importlib.metadata import entry_points
from typing import Any

from conformance_harness.parsers.manifest import ParserManifest

ENTRY_POINT_GROUP = "conformance_harness.parsers"


class ParserNotFoundError(Exception):
    """Raised when no parser plugin is registered under a key."""


def load_parser_manifest(key: str) -> ParserManifest[Any]:
    """Load a parser plugin's manifest by key.

    The manifest is only loaded, no parser is built yet. Building one
    with ``manifest.parser_factory(manifest.config_cls(**options))`` must
    yield a `SourceParser` that survives pickling for process workers.

    Args:
        key: The parser key as registered in pyproject.toml (e.g., "esprima")

    Returns:
        The parser manifest registered under ``key``

    Raises:
        ParserNotFoundError: If no parser with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest: ParserManifest[Any] = entry.load()
            return manifest

    available = sorted(e.name for e in entries)
    raise ParserNotFoundError(
        f"Parser '{key}' not found. Available parsers: {available}"
    )
