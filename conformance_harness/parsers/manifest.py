"""Parser manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from conformance_harness.parsers.base import SourceParser

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class ParserManifest(Generic[ConfigT]):
    """Manifest describing a parser plugin.

    The manifest contains references to the configuration class and the
    parser factory so parsers can be loaded lazily by key.
    """

    config_cls: type[ConfigT]
    parser_factory: Callable[[ConfigT], SourceParser]
