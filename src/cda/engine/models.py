"""Typed models for the duplicate-detection engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Side(StrEnum):
    """Which compared tree a file belongs to."""

    NEW = "new"
    OLD = "old"


class TokenKind(StrEnum):
    """Lexical category of a normalized token."""

    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    PUNCT = "punct"


@dataclass(slots=True, frozen=True)
class SourceFile:
    """One enumerated file handed to the engine by the file walker."""

    path: str
    side: Side
    raw: bytes | str


@dataclass(slots=True, frozen=True)
class Token:
    """Normalized token with 1-based position of its original text."""

    kind: TokenKind
    text: str
    line: int
    column: int
    end_line: int
    end_column: int


@dataclass(slots=True, frozen=True)
class Fingerprint:
    """Selected window hash; ``end - start`` always equals the window size."""

    hash: int
    start: int
    end: int
    path: str


@dataclass(slots=True, frozen=True)
class ScannedFile:
    """Compact post-scan form of a source file.

    Token objects are dropped after fingerprinting; only the normalized texts
    (for literal verification) and line numbers (for reporting) are kept.
    """

    path: str
    side: Side
    language: str
    token_texts: tuple[str, ...]
    token_lines: tuple[int, ...]
    token_end_lines: tuple[int, ...]
    fingerprints: tuple[Fingerprint, ...]

    @property
    def token_count(self) -> int:
        """Return the number of normalized tokens."""
        return len(self.token_texts)

    def line_range(self, start: int, end: int) -> tuple[int, int]:
        """Map a token range ``[start, end)`` to an inclusive 1-based line range."""
        if start < 0 or end > len(self.token_lines) or start >= end:
            raise ValueError(f"Invalid token range [{start}, {end}) for {self.path}.")
        return self.token_lines[start], self.token_end_lines[end - 1]


@dataclass(slots=True, frozen=True)
class Hit:
    """Verified pair of windows sharing a hash and identical token text."""

    new: Fingerprint
    old: Fingerprint

    @property
    def offset(self) -> int:
        """Return the diagonal ``old.start - new.start``."""
        return self.old.start - self.new.start


@dataclass(slots=True, frozen=True)
class DuplicateSpan:
    """Merged duplicated region between one new file and one old file."""

    new_path: str
    new_start: int
    new_end: int
    old_path: str
    old_start: int
    old_end: int
    covered_tokens: int
    similarity: float
    new_lines: tuple[int, int]
    old_lines: tuple[int, int]

    @property
    def new_length(self) -> int:
        return self.new_end - self.new_start

    @property
    def old_length(self) -> int:
        return self.old_end - self.old_start


@dataclass(slots=True, frozen=True)
class FilePairResult:
    """All spans reported for one (new file, old file) pair."""

    new_path: str
    old_path: str
    spans: tuple[DuplicateSpan, ...]
    new_token_count: int
    old_token_count: int
    new_similarity: float
    old_similarity: float
    duplicated_lines: int


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """Record of a file skipped during a run."""

    path: str
    side: Side
    kind: str
    message: str


@dataclass(slots=True, frozen=True)
class DetectionStats:
    """Deterministic counters plus wall-clock timings for one run."""

    new_files: int
    old_files: int
    skipped_files: int
    new_tokens: int
    old_tokens: int
    new_fingerprints: int
    old_fingerprints: int
    index_hashes: int
    hits: int
    rejected_collisions: int
    spans: int
    stoplisted_hashes: int = 0
    timings: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class DetectionResult:
    """Final output of one detection run."""

    pairs: tuple[FilePairResult, ...]
    diagnostics: tuple[Diagnostic, ...]
    stats: DetectionStats
    new_token_counts: dict[str, int] = field(default_factory=dict)
    old_token_counts: dict[str, int] = field(default_factory=dict)

    @property
    def spans(self) -> tuple[DuplicateSpan, ...]:
        """Return every span in report order."""
        return tuple(span for pair in self.pairs for span in pair.spans)
