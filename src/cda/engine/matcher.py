"""Probe the old-tree index with new-tree fingerprints."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from cda.engine.index import FingerprintIndex
from cda.engine.models import Hit, ScannedFile


@dataclass(slots=True, frozen=True)
class MatchOutcome:
    """Verified hits plus the number of hash collisions rejected."""

    hits: tuple[Hit, ...]
    rejected_collisions: int


def match_file(
    new_file: ScannedFile,
    index: FingerprintIndex,
    old_files: Mapping[str, ScannedFile],
) -> MatchOutcome:
    """Emit verified hits for one new file.

    A window whose diagonal (old path, offset) already has a hit overlapping
    it adds nothing clustering would not recover by extension, so only the
    first hit of each contiguous stretch is kept.
    """
    hits: list[Hit] = []
    rejected = 0
    texts = new_file.token_texts
    covered: dict[tuple[str, int], int] = {}
    for fingerprint in sorted(new_file.fingerprints, key=lambda item: item.start):
        occurrences = index.lookup(fingerprint.hash)
        if not occurrences:
            continue
        window = texts[fingerprint.start : fingerprint.end]
        for occurrence in occurrences:
            old_file = old_files.get(occurrence.path)
            if old_file is None:
                raise KeyError(f"Indexed file missing from old tree: {occurrence.path}")
            if old_file.token_texts[occurrence.start : occurrence.end] != window:
                rejected += 1
                continue
            diagonal = (occurrence.path, occurrence.start - fingerprint.start)
            reached = covered.get(diagonal)
            covered[diagonal] = max(reached or 0, fingerprint.end)
            if reached is not None and fingerprint.start < reached:
                continue
            hits.append(Hit(new=fingerprint, old=occurrence))
    return MatchOutcome(hits=tuple(hits), rejected_collisions=rejected)
