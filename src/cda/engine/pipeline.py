"""Single forward pass: scan, index, match, cluster."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TypeVar

from cda.engine.cluster import cluster_hits
from cda.engine.fingerprint import fingerprint_tokens
from cda.engine.index import FingerprintIndex
from cda.engine.matcher import MatchOutcome, match_file
from cda.engine.models import (
    DetectionResult,
    DetectionStats,
    Diagnostic,
    ScannedFile,
    Side,
    SourceFile,
)
from cda.engine.settings import DetectorConfig
from cda.engine.tokenizer import Tokenizer, UnreadableSourceError
from cda.languages import Language, LanguageRegistry, build_language_registry

_T = TypeVar("_T")
_R = TypeVar("_R")


@dataclass(slots=True, frozen=True)
class EmptyTreeError(Exception):
    """Raised when one side of the comparison has no source files."""

    side: Side

    def __str__(self) -> str:
        return f"The {self.side.value} tree contains no source files."


class DetectionCancelledError(Exception):
    """Raised when a run is aborted between files; partial results are discarded."""


def scan_source(source: SourceFile, language: Language, config: DetectorConfig) -> ScannedFile:
    """Tokenize and fingerprint one file, keeping only what matching needs."""
    tokenizer = Tokenizer.for_language(language, config.normalization)
    tokens = tokenizer.tokenize(source.raw, source.path)
    fingerprints = fingerprint_tokens(
        tokens,
        source.path,
        window_size=config.window_size,
        guarantee_window=config.guarantee_window,
    )
    return ScannedFile(
        path=source.path,
        side=source.side,
        language=language.name,
        token_texts=tuple(token.text for token in tokens),
        token_lines=tuple(token.line for token in tokens),
        token_end_lines=tuple(token.end_line for token in tokens),
        fingerprints=fingerprints,
    )


def _scan_task(task: tuple[SourceFile, Language, DetectorConfig]) -> ScannedFile | Diagnostic:
    source, language, config = task
    try:
        return scan_source(source, language, config)
    except UnreadableSourceError as exc:
        return Diagnostic(
            path=source.path,
            side=source.side,
            kind="unreadable_source",
            message=exc.reason,
        )


class DuplicateDetector:
    """Runs the duplicate-detection engine over already-enumerated files."""

    def __init__(
        self,
        config: DetectorConfig | None = None,
        registry: LanguageRegistry | None = None,
    ) -> None:
        self._config = config or DetectorConfig()
        self._config.validate()
        self._registry = registry or build_language_registry()

    @property
    def config(self) -> DetectorConfig:
        return self._config

    def run(
        self,
        new_sources: Sequence[SourceFile],
        old_sources: Sequence[SourceFile],
        diagnostics: list[Diagnostic] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> DetectionResult:
        """Compare the new tree against the old tree.

        Skipped files are appended to ``diagnostics`` as they are found; the
        caller owns that list. Setting ``cancel_event`` aborts between files.
        """
        started = time.perf_counter()
        if not new_sources:
            raise EmptyTreeError(side=Side.NEW)
        if not old_sources:
            raise EmptyTreeError(side=Side.OLD)
        _ensure_unique_paths(new_sources, Side.NEW)
        _ensure_unique_paths(old_sources, Side.OLD)
        sink: list[Diagnostic] = diagnostics if diagnostics is not None else []
        skipped_before = len(sink)

        scan_started = time.perf_counter()
        scanned = self._scan_all([*old_sources, *new_sources], sink, cancel_event)
        old_files = {item.path: item for item in scanned if item.side is Side.OLD}
        new_files = {item.path: item for item in scanned if item.side is Side.NEW}
        scan_seconds = time.perf_counter() - scan_started

        index_started = time.perf_counter()
        index = FingerprintIndex.build(
            (old_files[path] for path in sorted(old_files)),
            max_occurrences=self._config.max_hash_occurrences,
        )
        index_seconds = time.perf_counter() - index_started

        match_started = time.perf_counter()
        outcomes = self._match_all(
            [new_files[path] for path in sorted(new_files)], index, old_files, cancel_event
        )
        hits = [hit for outcome in outcomes for hit in outcome.hits]
        rejected = sum(outcome.rejected_collisions for outcome in outcomes)
        match_seconds = time.perf_counter() - match_started

        cluster_started = time.perf_counter()
        pairs = cluster_hits(
            hits,
            new_files,
            old_files,
            merge_gap=self._config.merge_gap,
            min_span_tokens=self._config.effective_min_span_tokens,
            window_size=self._config.window_size,
        )
        cluster_seconds = time.perf_counter() - cluster_started

        stats = DetectionStats(
            new_files=len(new_files),
            old_files=len(old_files),
            skipped_files=len(sink) - skipped_before,
            new_tokens=sum(item.token_count for item in new_files.values()),
            old_tokens=sum(item.token_count for item in old_files.values()),
            new_fingerprints=sum(len(item.fingerprints) for item in new_files.values()),
            old_fingerprints=index.fingerprint_count,
            index_hashes=len(index),
            hits=len(hits),
            rejected_collisions=rejected,
            spans=sum(len(pair.spans) for pair in pairs),
            stoplisted_hashes=index.stoplisted_count,
            timings={
                "scan_seconds": scan_seconds,
                "index_seconds": index_seconds,
                "match_seconds": match_seconds,
                "cluster_seconds": cluster_seconds,
                "total_seconds": time.perf_counter() - started,
            },
        )
        return DetectionResult(
            pairs=tuple(pairs),
            diagnostics=tuple(sink[skipped_before:]),
            stats=stats,
            new_token_counts={path: new_files[path].token_count for path in sorted(new_files)},
            old_token_counts={path: old_files[path].token_count for path in sorted(old_files)},
        )

    def _scan_all(
        self,
        sources: list[SourceFile],
        sink: list[Diagnostic],
        cancel_event: threading.Event | None,
    ) -> list[ScannedFile]:
        tasks = [(source, self._registry.select(source.path), self._config) for source in sources]
        workers = min(self._config.effective_workers, len(tasks))
        if workers <= 1:
            outputs: list[ScannedFile | Diagnostic] = []
            for task in tasks:
                _check_cancelled(cancel_event)
                outputs.append(_scan_task(task))
        else:
            outputs = _run_in_executor(
                ProcessPoolExecutor(max_workers=workers), _scan_task, tasks, cancel_event
            )

        scanned: list[ScannedFile] = []
        for output in outputs:
            if isinstance(output, Diagnostic):
                sink.append(output)
                continue
            scanned.append(output)
        return scanned

    def _match_all(
        self,
        new_files: list[ScannedFile],
        index: FingerprintIndex,
        old_files: dict[str, ScannedFile],
        cancel_event: threading.Event | None,
    ) -> list[MatchOutcome]:
        workers = min(self._config.effective_workers, len(new_files))
        if workers <= 1:
            outcomes: list[MatchOutcome] = []
            for new_file in new_files:
                _check_cancelled(cancel_event)
                outcomes.append(match_file(new_file, index, old_files))
            return outcomes
        return _run_in_executor(
            ThreadPoolExecutor(max_workers=workers),
            lambda new_file: match_file(new_file, index, old_files),
            new_files,
            cancel_event,
        )


def _run_in_executor(
    executor: Executor,
    fn: Callable[[_T], _R],
    items: Sequence[_T],
    cancel_event: threading.Event | None,
) -> list[_R]:
    """Map ``fn`` over ``items``, collecting results in submission order."""
    futures: list[Future[_R]] = []
    try:
        for item in items:
            _check_cancelled(cancel_event)
            futures.append(executor.submit(fn, item))
        results: list[_R] = []
        for future in futures:
            _check_cancelled(cancel_event)
            results.append(future.result())
        return results
    finally:
        executor.shutdown(wait=True, cancel_futures=True)


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise DetectionCancelledError("Detection run was cancelled.")


def _ensure_unique_paths(sources: Sequence[SourceFile], side: Side) -> None:
    seen: set[str] = set()
    for source in sources:
        if source.side is not side:
            raise ValueError(f"{source.path} is tagged {source.side.value}, expected {side.value}.")
        if source.path in seen:
            raise ValueError(f"Duplicate {side.value} path: {source.path}")
        seen.add(source.path)
