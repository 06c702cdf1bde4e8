"""Esprima parser module."""

from conformance_harness.parsers.esprima.config import EsprimaConfig
from conformance_harness.parsers.esprima.manifest import esprima_manifest
from conformance_harness.parsers.esprima.parser import EsprimaParser

__all__ = ["EsprimaConfig", "EsprimaParser", "esprima_manifest"]
