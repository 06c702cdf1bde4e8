"""Models for test records and their declared expectations."""

from collections.abc import Sequence
from enum import StrEnum

from pydantic import Field

from conformance_harness.models.base import Model


class TestFlag(StrEnum):
    """Corpus flags attached to a test case."""

    __test__ = False

    ONLY_STRICT = "onlyStrict"
    NO_STRICT = "noStrict"
    RAW = "raw"
    MODULE = "module"
    ASYNC = "async"
    GENERATED = "generated"
    CAN_BLOCK_IS_FALSE = "CanBlockIsFalse"
    CAN_BLOCK_IS_TRUE = "CanBlockIsTrue"
    NON_DETERMINISTIC = "non-deterministic"


class Phase(StrEnum):
    """Phase at which a negative test is expected to fail."""

    PARSE = "parse"
    EARLY = "early"
    RESOLUTION = "resolution"
    RUNTIME = "runtime"


class NegativeExpectation(Model):
    """Declaration that a test must fail."""

    phase: Phase = Field(..., description="Phase the failure is expected in")
    type: str = Field(..., description="Expected error constructor name")


class TestMetadata(Model):
    """Declared expectations of a test case."""

    __test__ = False

    flags: frozenset[TestFlag] = Field(
        default_factory=frozenset, description="Execution-mode hints"
    )
    negative: NegativeExpectation | None = Field(
        default=None, description="Expected failure, if any"
    )

    @property
    def expects_parse_failure(self) -> bool:
        """Whether parsing this test must produce diagnostics.

        Negatives for later phases still require the code to parse.
        """
        return self.negative is not None and self.negative.phase is Phase.PARSE


class TestRecord(Model):
    """One test case of the corpus."""

    __test__ = False

    path: str = Field(..., description="Test identifier, used for reporting")
    code: str = Field(..., description="Source text of the test")
    metadata: TestMetadata = Field(default_factory=TestMetadata)


class ManifestEntry(Model):
    """Test entry as written in a corpus manifest.

    ``code`` may be omitted, in which case it is read from ``path``
    relative to the manifest.
    """

    path: str = Field(..., description="Test file path")
    code: str | None = Field(default=None, description="Inline source text")
    metadata: TestMetadata = Field(default_factory=TestMetadata)


class CorpusManifest(Model):
    """Pre-extracted corpus loaded from a manifest file."""

    version: str = Field(..., description="Manifest schema version")
    tests: Sequence[ManifestEntry] = Field(
        default_factory=list, description="List of test entries"
    )
