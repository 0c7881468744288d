"""Command-line entrypoint comparing a source tree against a destination tree."""

from __future__ import annotations

import argparse
import json
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from cda.config import CliOverrides, RunConfig, load_effective_config
from cda.discovery import discover_sources
from cda.engine import (
    ConfigurationInvalidError,
    DetectionCancelledError,
    DetectionResult,
    Diagnostic,
    DuplicateDetector,
    EmptyTreeError,
    NormalizationLevel,
    Side,
)
from cda.languages import BUILTIN_LANGUAGE_NAMES, build_language_registry
from cda.logging import (
    EVENTS_FILE_NAME,
    JsonlEventLogger,
    RunEvent,
    diagnostic_metadata,
    new_run_id,
    stats_metadata,
    utc_timestamp,
)
from cda.paths import TreePathError, resolve_tree_path
from cda.report import count_code_lines, render_json_report, render_text_report, write_report

EXIT_OK = 0
EXIT_USAGE = 2


@dataclass(slots=True, frozen=True)
class ComparisonOutcome:
    """Detection result plus the rendered report and where it was written."""

    result: DetectionResult
    diagnostics: tuple[Diagnostic, ...]
    report: str
    report_path: Path


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for a comparison run."""
    parser = argparse.ArgumentParser(
        prog="cda",
        description="Find code in the source tree duplicated from the destination tree.",
    )
    parser.add_argument("-r", "--root", required=True, help="Directory containing both trees.")
    parser.add_argument("-s", "--source", default=None, help="Tree to check, relative to --root.")
    parser.add_argument(
        "-d", "--destination", default=None, help="Tree to compare against, relative to --root."
    )
    parser.add_argument(
        "-l",
        "--language",
        action="append",
        default=None,
        choices=BUILTIN_LANGUAGE_NAMES,
        help="Language to scan; repeat for several. Defaults to all built-ins.",
    )
    parser.add_argument("--minimum-tokens", type=int, required=False, default=None)
    parser.add_argument("--window", type=int, required=False, default=None)
    parser.add_argument("--guarantee", type=int, required=False, default=None)
    parser.add_argument("--merge-gap", type=int, required=False, default=None)
    parser.add_argument(
        "--normalization",
        choices=tuple(level.value for level in NormalizationLevel),
        required=False,
        default=None,
    )
    parser.add_argument("--workers", type=int, required=False, default=None)
    parser.add_argument("--max-occurrences", type=int, required=False, default=None)
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Extra glob of paths to skip; repeat for several.",
    )
    parser.add_argument("--output", required=False, default=None)
    parser.add_argument("--format", choices=("text", "json"), required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument(
        "--events",
        action="store_true",
        help="Print recent run events from the data directory instead of comparing.",
    )
    parser.add_argument("--since", default=None, help="With --events: ISO-8601 lower bound.")
    parser.add_argument("--limit", type=int, default=50, help="With --events: newest N events.")
    parser.add_argument("--run-id", default=None, help="With --events: only this run.")
    return parser


def overrides_from_args(args: argparse.Namespace) -> CliOverrides:
    """Map parsed arguments onto config overrides."""
    return CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        output=Path(args.output).resolve() if args.output is not None else None,
        output_format=args.format,
        languages=tuple(args.language) if args.language else None,
        normalization=args.normalization,
        window_size=args.window,
        guarantee_window=args.guarantee,
        merge_gap=args.merge_gap,
        min_span_tokens=args.minimum_tokens,
        workers=args.workers,
        max_hash_occurrences=args.max_occurrences,
        exclude_globs=tuple(args.exclude or ()),
    )


class ComparisonRunner:
    """Runs one logged comparison from a merged configuration."""

    def __init__(self, config: RunConfig) -> None:
        self._config = config
        self._logger = JsonlEventLogger(path=config.data_dir / EVENTS_FILE_NAME)
        self._run_id = new_run_id()

    @property
    def config(self) -> RunConfig:
        return self._config

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def logger(self) -> JsonlEventLogger:
        return self._logger

    def run(self, cancel_event: threading.Event | None = None) -> ComparisonOutcome:
        """Discover both trees, detect duplicates, write the report and log the run.

        Errors propagate to the caller after a ``run_failed`` event is logged.
        """
        self._log("run_started", ok=True, metadata={"config": self._config.to_public_dict()})
        diagnostics: list[Diagnostic] = []
        try:
            outcome = self._run(diagnostics, cancel_event)
        except TreePathError as exc:
            self._log_failure("PATH_INVALID", {"reason": exc.reason, "hint": exc.hint})
            raise
        except EmptyTreeError as exc:
            self._log_skipped(diagnostics)
            self._log_failure("EMPTY_TREE", {"side": exc.side.value})
            raise
        except DetectionCancelledError:
            self._log_skipped(diagnostics)
            self._log_failure("CANCELLED", {"skipped_files": len(diagnostics)})
            raise

        self._log_skipped(diagnostics)
        self._log(
            "run_completed",
            ok=True,
            metadata={
                "results": len(outcome.result.pairs),
                "report_path": str(outcome.report_path),
                "stats": stats_metadata(outcome.result.stats),
            },
        )
        return outcome

    def _run(
        self,
        diagnostics: list[Diagnostic],
        cancel_event: threading.Event | None,
    ) -> ComparisonOutcome:
        config = self._config
        new_root = resolve_tree_path(config.root, config.source)
        old_root = resolve_tree_path(config.root, config.destination)
        registry = build_language_registry(config.scan.languages)
        extensions = registry.include_extensions()

        new_sources = discover_sources(new_root, Side.NEW, config.scan, extensions, diagnostics)
        old_sources = discover_sources(old_root, Side.OLD, config.scan, extensions, diagnostics)
        detector = DuplicateDetector(config=config.detector, registry=registry)
        result = detector.run(
            new_sources, old_sources, diagnostics=diagnostics, cancel_event=cancel_event
        )

        code_lines = {source.path: count_code_lines(source.raw) for source in new_sources}
        if config.output_format == "json":
            report = render_json_report(result, code_lines)
        else:
            report = render_text_report(result, code_lines)
        report_path = write_report(config.output, report)
        return ComparisonOutcome(
            result=result,
            diagnostics=tuple(diagnostics),
            report=report,
            report_path=report_path,
        )

    def _log(self, event: str, *, ok: bool, metadata: dict[str, object]) -> None:
        self._logger.append(
            RunEvent(
                timestamp=utc_timestamp(),
                run_id=self._run_id,
                event=event,
                ok=ok,
                error_code=None,
                metadata=metadata,
            )
        )

    def _log_skipped(self, diagnostics: list[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self._log("file_skipped", ok=True, metadata=diagnostic_metadata(diagnostic))

    def _log_failure(self, error_code: str, metadata: dict[str, object]) -> None:
        self._logger.append(
            RunEvent(
                timestamp=utc_timestamp(),
                run_id=self._run_id,
                event="run_failed",
                ok=False,
                error_code=error_code,
                metadata=metadata,
            )
        )


def create_runner(
    root: str,
    source: str,
    destination: str,
    cli_overrides: CliOverrides | None = None,
) -> ComparisonRunner:
    """Create a configured comparison runner."""
    config = load_effective_config(
        root=Path(root), source=source, destination=destination, overrides=cli_overrides
    )
    return ComparisonRunner(config)


def main(
    argv: list[str] | None = None,
    out_stream: TextIO | None = None,
    err_stream: TextIO | None = None,
) -> int:
    """Entrypoint for the cda command."""
    out = out_stream or sys.stdout
    err = err_stream or sys.stderr
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.events:
        return _print_events(args, out, err)
    if args.source is None or args.destination is None:
        parser.error("the following arguments are required: -s/--source, -d/--destination")
    try:
        runner = create_runner(
            root=args.root,
            source=args.source,
            destination=args.destination,
            cli_overrides=overrides_from_args(args),
        )
        outcome = runner.run()
    except ConfigurationInvalidError as exc:
        err.write(f"cda: configuration error: {exc}\n")
        return EXIT_USAGE
    except TreePathError as exc:
        err.write(f"cda: {exc.reason} {exc.hint}\n")
        return EXIT_USAGE
    except EmptyTreeError as exc:
        err.write(f"cda: {exc}\n")
        return EXIT_USAGE
    out.write(outcome.report)
    out.flush()
    return EXIT_OK


def _print_events(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    try:
        config = load_effective_config(
            root=Path(args.root),
            source=args.source or ".",
            destination=args.destination or ".",
            overrides=overrides_from_args(args),
        )
    except ConfigurationInvalidError as exc:
        err.write(f"cda: configuration error: {exc}\n")
        return EXIT_USAGE
    logger = JsonlEventLogger(path=config.data_dir / EVENTS_FILE_NAME)
    for record in logger.read(since=args.since, limit=args.limit, run_id=args.run_id):
        out.write(json.dumps(record, sort_keys=True))
        out.write("\n")
    out.flush()
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
