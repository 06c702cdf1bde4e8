"""Esprima parser manifest."""

from conformance_harness.parsers.esprima.config import EsprimaConfig
from conformance_harness.parsers.esprima.parser import EsprimaParser
from conformance_harness.parsers.manifest import ParserManifest

esprima_manifest = ParserManifest(
    config_cls=EsprimaConfig,
    parser_factory=EsprimaParser.from_config,
)
