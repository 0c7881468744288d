"""Deterministic source enumeration for one compared tree."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from cda.config import ScanConfig
from cda.engine.models import Diagnostic, Side, SourceFile

_BINARY_SNIFF_BYTES = 4096


@dataclass(slots=True, frozen=True)
class DiscoveryProfile:
    """Deterministic counters for one discovery pass."""

    total_candidates: int
    excluded_by_glob: int
    excluded_by_extension: int
    excluded_by_size: int
    binary_excluded: int
    discovered: int


@dataclass(slots=True, frozen=True)
class _CandidateFile:
    """Prepared candidate record discovered during traversal."""

    relative_path: str
    full_path: Path
    size: int


def discover_sources(
    tree_root: Path,
    side: Side,
    scan_config: ScanConfig,
    include_extensions: tuple[str, ...],
    diagnostics: list[Diagnostic] | None = None,
    profile: dict[str, object] | None = None,
) -> list[SourceFile]:
    """Enumerate and read source files of one tree in sorted relative-path order.

    Oversized, binary and unreadable files are skipped; each skip is appended
    to ``diagnostics`` when a list is given.
    """
    root = tree_root.resolve()
    sink: list[Diagnostic] = diagnostics if diagnostics is not None else []
    counters = {
        "total_candidates": 0,
        "excluded_by_glob": 0,
        "excluded_by_extension": 0,
        "excluded_by_size": 0,
        "binary_excluded": 0,
    }
    candidates = _discover_candidates(
        root=root,
        include_extensions=set(include_extensions),
        exclude_globs=scan_config.exclude_globs,
        excluded_dir_names=_excluded_dir_names(scan_config.exclude_globs),
        counters=counters,
    )
    candidates.sort(key=lambda item: item.relative_path)

    sources: list[SourceFile] = []
    for candidate in candidates:
        rel = candidate.relative_path
        if candidate.size > scan_config.max_file_bytes:
            counters["excluded_by_size"] += 1
            sink.append(
                Diagnostic(
                    path=rel,
                    side=side,
                    kind="file_too_large",
                    message=f"{candidate.size} bytes exceeds max_file_bytes "
                    f"({scan_config.max_file_bytes}).",
                )
            )
            continue
        try:
            raw = candidate.full_path.read_bytes()
        except OSError as exc:
            sink.append(Diagnostic(path=rel, side=side, kind="read_failed", message=str(exc)))
            continue
        if is_binary_sample(raw[:_BINARY_SNIFF_BYTES]):
            counters["binary_excluded"] += 1
            sink.append(
                Diagnostic(path=rel, side=side, kind="binary_file", message="Binary content.")
            )
            continue
        sources.append(SourceFile(path=rel, side=side, raw=raw))

    if profile is not None:
        profile.update(asdict(DiscoveryProfile(discovered=len(sources), **counters)))
    return sources


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured ignore globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def is_binary_sample(sample: bytes) -> bool:
    """Treat a NUL byte or undecodable UTF-8 in the leading sample as binary."""
    if b"\x00" in sample:
        return True
    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte character cut by the sample boundary is not binary.
        return not (exc.reason == "unexpected end of data" and len(sample) >= _BINARY_SNIFF_BYTES)
    return False


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output


def _discover_candidates(
    *,
    root: Path,
    include_extensions: set[str],
    exclude_globs: tuple[str, ...],
    excluded_dir_names: set[str],
    counters: dict[str, int],
) -> list[_CandidateFile]:
    candidates: list[_CandidateFile] = []
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names and should_exclude(
                    f"{relative}/", exclude_globs
                ):
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            counters["total_candidates"] += 1
            if should_exclude(relative, exclude_globs):
                counters["excluded_by_glob"] += 1
                continue
            if Path(relative).suffix.lower() not in include_extensions:
                counters["excluded_by_extension"] += 1
                continue
            try:
                stat = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            candidates.append(
                _CandidateFile(relative_path=relative, full_path=full_path, size=stat.st_size)
            )
    return candidates
