"""Merge verified hits into deterministic duplicate spans.

Per (new file, old file) pair the policy is:

1. extend every hit along its diagonal (``old - new`` offset) to the maximal
   run of equal token texts;
2. resolve overlaps in the new file, longest run first, trimming old and new
   ranges in lock-step; trimmed slivers shorter than a window are dropped;
3. chain runs whose new gap and offset drift are both within ``merge_gap``;
4. drop chained spans covering fewer than ``min_span_tokens`` tokens.

Output never depends on hit arrival order.
"""

from __future__ import annotations

from bisect import insort
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from cda.engine.fingerprint import DEFAULT_WINDOW_SIZE
from cda.engine.models import DuplicateSpan, FilePairResult, Hit, ScannedFile


@dataclass(slots=True, frozen=True)
class DiagonalRun:
    """Maximal run of equal tokens at one fixed offset."""

    new_start: int
    new_end: int
    old_start: int

    @property
    def length(self) -> int:
        return self.new_end - self.new_start

    @property
    def offset(self) -> int:
        return self.old_start - self.new_start

    @property
    def old_end(self) -> int:
        return self.old_start + self.length


def cluster_hits(
    hits: Iterable[Hit],
    new_files: Mapping[str, ScannedFile],
    old_files: Mapping[str, ScannedFile],
    *,
    merge_gap: int = 0,
    min_span_tokens: int = DEFAULT_WINDOW_SIZE,
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> list[FilePairResult]:
    """Group hits by file pair and merge them into ordered file-pair results."""
    if merge_gap < 0:
        raise ValueError("merge_gap must be >= 0")
    if min_span_tokens < 1:
        raise ValueError("min_span_tokens must be >= 1")
    if window_size < 1:
        raise ValueError("window_size must be >= 1")
    min_fragment_tokens = min(window_size, min_span_tokens)

    groups: dict[tuple[str, str], list[Hit]] = {}
    for hit in hits:
        groups.setdefault((hit.new.path, hit.old.path), []).append(hit)

    results: list[FilePairResult] = []
    for new_path, old_path in sorted(groups):
        new_file = new_files[new_path]
        old_file = old_files[old_path]
        runs = extend_hits(groups[(new_path, old_path)], new_file, old_file)
        runs = resolve_overlaps(runs, min_fragment_tokens)
        chains = chain_runs(runs, merge_gap)
        result = _pair_result(new_file, old_file, chains, min_span_tokens)
        if result is not None:
            results.append(result)
    return results


def extend_hits(
    hits: Iterable[Hit],
    new_file: ScannedFile,
    old_file: ScannedFile,
) -> list[DiagonalRun]:
    """Grow each hit to its maximal diagonal run, skipping hits already covered."""
    new_texts = new_file.token_texts
    old_texts = old_file.token_texts
    ordered = sorted(hits, key=lambda hit: (hit.offset, hit.new.start, hit.old.start))
    runs: list[DiagonalRun] = []
    current: DiagonalRun | None = None
    for hit in ordered:
        if (
            current is not None
            and hit.offset == current.offset
            and hit.new.start < current.new_end
        ):
            continue
        new_start, old_start = hit.new.start, hit.old.start
        while (
            new_start > 0
            and old_start > 0
            and new_texts[new_start - 1] == old_texts[old_start - 1]
        ):
            new_start -= 1
            old_start -= 1
        new_end, old_end = hit.new.end, hit.old.end
        while (
            new_end < len(new_texts)
            and old_end < len(old_texts)
            and new_texts[new_end] == old_texts[old_end]
        ):
            new_end += 1
            old_end += 1
        current = DiagonalRun(new_start=new_start, new_end=new_end, old_start=old_start)
        runs.append(current)
    return runs


def resolve_overlaps(
    runs: Iterable[DiagonalRun], min_fragment_tokens: int = 1
) -> list[DiagonalRun]:
    """Keep non-overlapping new ranges, preferring longer runs, then earlier ones.

    Fragments left by trimming are kept only when they still cover
    ``min_fragment_tokens`` tokens; span length is judged after chaining.
    """
    accepted: list[DiagonalRun] = []
    ordered = sorted(set(runs), key=lambda run: (-run.length, run.new_start, run.old_start))
    for run in ordered:
        for fragment in _uncovered_fragments(run, accepted):
            if fragment.length >= min_fragment_tokens:
                insort(accepted, fragment, key=lambda item: item.new_start)
    return accepted


def chain_runs(runs: Iterable[DiagonalRun], merge_gap: int) -> list[list[DiagonalRun]]:
    """Greedily chain runs that advance in lock-step within ``merge_gap``."""
    chains: list[list[DiagonalRun]] = []
    for run in sorted(runs, key=lambda item: (item.new_start, item.old_start)):
        if chains:
            last = chains[-1][-1]
            gap = run.new_start - last.new_end
            drift = abs(run.offset - last.offset)
            if 0 <= gap <= merge_gap and drift <= merge_gap and run.old_start >= last.old_start:
                chains[-1].append(run)
                continue
        chains.append([run])
    return chains


def _uncovered_fragments(run: DiagonalRun, accepted: list[DiagonalRun]) -> list[DiagonalRun]:
    fragments: list[DiagonalRun] = []
    cursor = run.new_start
    for other in accepted:
        if other.new_end <= cursor:
            continue
        if other.new_start >= run.new_end:
            break
        if other.new_start > cursor:
            fragments.append(_slice_run(run, cursor, other.new_start))
        cursor = max(cursor, other.new_end)
    if cursor < run.new_end:
        fragments.append(_slice_run(run, cursor, run.new_end))
    return fragments


def _slice_run(run: DiagonalRun, new_start: int, new_end: int) -> DiagonalRun:
    return DiagonalRun(
        new_start=new_start,
        new_end=new_end,
        old_start=run.old_start + (new_start - run.new_start),
    )


def _pair_result(
    new_file: ScannedFile,
    old_file: ScannedFile,
    chains: list[list[DiagonalRun]],
    min_span_tokens: int,
) -> FilePairResult | None:
    spans: list[DuplicateSpan] = []
    old_intervals: list[tuple[int, int]] = []
    new_lines: set[int] = set()
    covered_new = 0
    for chain in chains:
        covered = sum(run.length for run in chain)
        if covered < min_span_tokens:
            continue
        new_start = chain[0].new_start
        new_end = chain[-1].new_end
        old_start = min(run.old_start for run in chain)
        old_end = max(run.old_end for run in chain)
        longest = max(new_end - new_start, old_end - old_start)
        similarity = min(1.0, max(0.0, covered / longest))
        spans.append(
            DuplicateSpan(
                new_path=new_file.path,
                new_start=new_start,
                new_end=new_end,
                old_path=old_file.path,
                old_start=old_start,
                old_end=old_end,
                covered_tokens=covered,
                similarity=similarity,
                new_lines=new_file.line_range(new_start, new_end),
                old_lines=old_file.line_range(old_start, old_end),
            )
        )
        covered_new += covered
        for run in chain:
            old_intervals.append((run.old_start, run.old_end))
            first, last = new_file.line_range(run.new_start, run.new_end)
            new_lines.update(range(first, last + 1))

    if not spans:
        return None
    return FilePairResult(
        new_path=new_file.path,
        old_path=old_file.path,
        spans=tuple(spans),
        new_token_count=new_file.token_count,
        old_token_count=old_file.token_count,
        new_similarity=_ratio(covered_new, new_file.token_count),
        old_similarity=_ratio(_union_length(old_intervals), old_file.token_count),
        duplicated_lines=len(new_lines),
    )


def _union_length(intervals: list[tuple[int, int]]) -> int:
    total = 0
    cursor = -1
    for start, end in sorted(intervals):
        if end <= cursor:
            continue
        total += end - max(start, cursor)
        cursor = end
    return total


def _ratio(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return min(1.0, part / whole)
