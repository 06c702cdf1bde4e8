"""CLI entry point for the conformance harness."""

import argparse
import asyncio
import json
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from conformance_harness.config import HarnessConfig
from conformance_harness.corpus_loader import load_corpus
from conformance_harness.models.outcome import Verdict
from conformance_harness.parsers.loading import load_parser_manifest
from conformance_harness.reporter import (
    Report,
    aggregate,
    build_table,
    exit_code,
    format_failure_detail,
    format_failure_line,
    format_output,
)
from conformance_harness.scheduler import TestScheduler, VerdictCallback

# Results go to stdout, logs and the progress bar to stderr
console = Console()
err_console = Console(stderr=True)


def log_results_summary(log: logging.Logger, report: Report, elapsed: float) -> None:
    """Log a one-line summary of the run."""
    log.info("=" * 80)
    log.info("Ran %d tests in %.2fs", report.ran, elapsed)
    log.info(
        "Passed: %d, Failed: %d, Crashes: %d, Coverage: %s%%",
        report.passed,
        report.failed,
        report.crashed,
        report.coverage_text,
    )
    log.info("=" * 80)


def failure_logger(
    log: logging.Logger, *, detailed: bool, path_prefix: str = ""
) -> VerdictCallback:
    """Build a callback logging each failing verdict as it completes."""

    def on_verdict(verdict: Verdict) -> None:
        if verdict.passed:
            return
        if detailed:
            log.warning("%s", format_failure_detail(verdict, path_prefix))
        else:
            log.warning("%s", format_failure_line(verdict, path_prefix))

    return on_verdict


async def run(
    parser_key: str,
    parser_config_json: str,
    corpus_path: Path,
    query: str | None = None,
    config: HarnessConfig | None = None,
    json_output: bool = False,
) -> int:
    """Run the corpus against the parser and return exit code."""
    log = logging.getLogger("conformance_harness")
    config = config or HarnessConfig()

    log.info("Loading parser: %s", parser_key)
    manifest = load_parser_manifest(parser_key)

    config_dict = json.loads(parser_config_json)
    parser_config = manifest.config_cls(**config_dict)
    parser = manifest.parser_factory(parser_config)

    log.info("Loading corpus: %s", corpus_path)
    records = await load_corpus(corpus_path, query)

    scheduler = TestScheduler(
        parser=parser,
        workers=config.workers,
        executor_kind=config.executor,
        progress_interval=config.progress_interval,
        console=err_console if config.progress_bar else None,
    )
    on_verdict = failure_logger(
        log,
        detailed=len(records) < config.detail_threshold,
        path_prefix=config.path_prefix,
    )

    started = time.perf_counter()
    verdicts = await scheduler.run_tests(records, on_verdict=on_verdict)
    elapsed = time.perf_counter() - started

    report = aggregate(verdicts)
    log_results_summary(log, report, elapsed)

    console.print(build_table(report))
    if json_output:
        print(json.dumps(format_output(report, verdicts, config.path_prefix), indent=2))

    return exit_code(report, config.exit_policy)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Run a conformance corpus against a parser"
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Only run tests whose path contains this string",
    )
    parser.add_argument(
        "--corpus",
        type=Path,
        required=True,
        help="Path to the corpus manifest (YAML)",
    )
    parser.add_argument(
        "--parser",
        default="esprima",
        help="Parser key (default: esprima)",
    )
    parser.add_argument(
        "--parser-config",
        default="{}",
        help="JSON configuration for the parser",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of workers (default: number of CPUs)",
    )
    parser.add_argument(
        "--executor",
        choices=("process", "thread"),
        default="process",
        help="Worker pool kind",
    )
    parser.add_argument(
        "--exit-policy",
        choices=("conventional", "legacy"),
        default="conventional",
        help="conventional fails on any failing test; "
        "legacy fails when any test passed",
    )
    parser.add_argument(
        "--detail-threshold",
        type=int,
        default=10,
        help="Report failures in full when fewer tests than this are run",
    )
    parser.add_argument(
        "--path-prefix",
        default="",
        help="Prefix stripped from displayed test paths",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Also print a JSON summary",
    )
    parser.add_argument(
        "--no-progress",
        dest="progress_bar",
        action="store_false",
        help="Do not render a live progress bar",
    )
    return parser.parse_args(argv)


def main() -> None:
    """CLI entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s - %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )

    config = HarnessConfig(
        workers=args.workers,
        executor=args.executor,
        exit_policy=args.exit_policy,
        detail_threshold=args.detail_threshold,
        path_prefix=args.path_prefix,
        progress_bar=args.progress_bar,
    )

    status = asyncio.run(
        run(
            parser_key=args.parser,
            parser_config_json=args.parser_config,
            corpus_path=args.corpus,
            query=args.query,
            config=config,
            json_output=args.json,
        )
    )
    sys.exit(status)


if __name__ == "__main__":  # pragma: no cover
    main()
