"""Configuration for a harness run."""

from typing import Literal

from pydantic import BaseModel, NonNegativeInt, PositiveInt

ExecutorKind = Literal["process", "thread"]
ExitPolicy = Literal["conventional", "legacy"]


class HarnessConfig(BaseModel):
    """Configuration for a harness run."""

    # None sizes the pool to the number of CPUs
    workers: PositiveInt | None = None
    executor: ExecutorKind = "process"
    exit_policy: ExitPolicy = "conventional"
    # Below this many tests, failures are reported in full
    detail_threshold: NonNegativeInt = 10
    # Stripped from test paths when they are displayed
    path_prefix: str = ""
    progress_interval: PositiveInt = 500
    # Live progress bar on stderr
    progress_bar: bool = True
