"""Scheduler fanning test records out across a worker pool."""

import asyncio
import logging
import os
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from conformance_harness.classifier import run_test_record
from conformance_harness.config import ExecutorKind
from conformance_harness.executor import (
    capture_crash,
    silence_fault_reporting,
    suppress_fault_reporting,
)
from conformance_harness.models.outcome import ParserCrashed, Verdict
from conformance_harness.models.record import TestRecord
from conformance_harness.parsers.base import SourceParser

log = logging.getLogger(__name__)

VerdictCallback = Callable[[Verdict], None]


@dataclass(kw_only=True)
class ProgressCounter:
    """Count of completed tests, mirrored on an optional progress bar.

    Only advanced from the event loop thread.
    """

    total: int
    interval: int = 500
    completed: int = 0
    bar: Progress | None = None
    task: TaskID | None = None

    def advance(self) -> None:
        """Record one completed test, logging at every interval."""
        self.completed += 1
        if self.bar is not None and self.task is not None:
            self.bar.advance(self.task)
        if self.completed % self.interval == 0 or self.completed == self.total:
            log.info("Progress: %d/%d tests", self.completed, self.total)


@dataclass(frozen=True, kw_only=True)
class TestScheduler:
    """Runs every test record on a pool of workers.

    With a process pool, a worker dying outright (``os._exit`` or a segfault
    in an extension module) breaks the whole pool. Records left unfinished
    are then re-run on a fresh pool, and in isolation once a retry makes no
    progress, so only the record that kills a worker of its own is reported
    as crashed.
    """

    __test__ = False

    parser: SourceParser
    workers: int | None = None
    executor_kind: ExecutorKind = "process"
    progress_interval: int = 500
    # Renders a live progress bar when set
    console: Console | None = None

    @property
    def pool_size(self) -> int:
        """Number of workers in the pool."""
        return self.workers or os.cpu_count() or 1

    async def run_tests(
        self,
        records: Sequence[TestRecord],
        on_verdict: VerdictCallback | None = None,
    ) -> Sequence[Verdict]:
        """Run all test records and collect one verdict per record.

        Args:
            records: Test records to run
            on_verdict: Called with each verdict as soon as it is available

        Returns:
            Verdicts, one per record, in submission order

        """
        if not records:
            log.info("No test records provided")
            return []

        log.info(
            "Running %d test(s) on %d %s worker(s)...",
            len(records),
            self.pool_size,
            self.executor_kind,
        )
        verdicts: dict[int, Verdict] = {}

        with suppress_fault_reporting(), self._progress_bar() as bar:
            progress = ProgressCounter(
                total=len(records), interval=self.progress_interval, bar=bar
            )
            if bar is not None:
                progress.task = bar.add_task("tests", total=len(records))

            def complete(index: int, verdict: Verdict) -> None:
                verdicts[index] = verdict
                progress.advance()
                if on_verdict is None:
                    return
                try:
                    on_verdict(verdict)
                except Exception as exc:
                    log.error(
                        "Verdict callback failed for %s: %s",
                        verdict.path,
                        exc,
                        exc_info=exc,
                    )

            await self._run_batch(dict(enumerate(records)), self.pool_size, complete)

        log.info("Test execution completed")
        return [verdicts[index] for index in range(len(records))]

    def _progress_bar(self) -> AbstractContextManager[Progress | None]:
        if self.console is None:
            return nullcontext()
        return Progress(
            TextColumn("[bold cyan]Running[/]"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    def _create_executor(self, pool_size: int) -> Executor:
        if self.executor_kind == "thread":
            return ThreadPoolExecutor(
                max_workers=pool_size, thread_name_prefix="conformance"
            )
        return ProcessPoolExecutor(
            max_workers=pool_size, initializer=silence_fault_reporting
        )

    async def _run_batch(
        self,
        batch: Mapping[int, TestRecord],
        pool_size: int,
        complete: Callable[[int, Verdict], None],
    ) -> None:
        """Run a batch on a fresh pool, retrying records a broken pool lost."""
        isolated = len(batch) == 1
        with self._create_executor(pool_size) as pool:
            results = await asyncio.gather(
                *(
                    self._run_record(pool, index, record, complete, isolated=isolated)
                    for index, record in batch.items()
                )
            )

        unfinished = {
            index: record
            for (index, record), finished in zip(batch.items(), results)
            if not finished
        }
        if not unfinished:
            return

        log.warning(
            "Worker pool broke, retrying %d unfinished test(s)", len(unfinished)
        )
        if len(unfinished) < len(batch):
            await self._run_batch(unfinished, pool_size, complete)
            return
        for index, record in unfinished.items():
            await self._run_batch({index: record}, 1, complete)

    async def _run_record(
        self,
        pool: Executor,
        index: int,
        record: TestRecord,
        complete: Callable[[int, Verdict], None],
        *,
        isolated: bool,
    ) -> bool:
        """Run one record, turning worker failures into a crash verdict.

        Returns:
            False when a broken pool lost the record and it must be retried

        """
        loop = asyncio.get_running_loop()
        try:
            verdict = await loop.run_in_executor(
                pool, run_test_record, self.parser, record
            )
        except BrokenProcessPool as exc:
            if not isolated:
                return False
            log.error("Worker died running %s", record.path)
            verdict = self._crash_verdict(record, exc)
        except Exception as exc:
            log.error("Test execution failed: %s: %s", record.path, exc, exc_info=exc)
            verdict = self._crash_verdict(record, exc)

        complete(index, verdict)
        return True

    @staticmethod
    def _crash_verdict(record: TestRecord, exc: Exception) -> Verdict:
        return Verdict(
            path=record.path,
            code=record.code,
            failure=ParserCrashed(capture_crash(exc)),
        )
