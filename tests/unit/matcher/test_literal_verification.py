from __future__ import annotations

import pytest

from cda.engine import (
    Fingerprint,
    FingerprintIndex,
    ScannedFile,
    Side,
    match_file,
)


def _scanned(
    path: str,
    side: Side,
    texts: list[str],
    fingerprints: list[tuple[int, int]],
    window: int = 3,
) -> ScannedFile:
    return ScannedFile(
        path=path,
        side=side,
        language="generic",
        token_texts=tuple(texts),
        token_lines=tuple(range(1, len(texts) + 1)),
        token_end_lines=tuple(range(1, len(texts) + 1)),
        fingerprints=tuple(
            Fingerprint(hash=value, start=start, end=start + window, path=path)
            for value, start in fingerprints
        ),
    )


def test_equal_hash_and_equal_text_produces_hit() -> None:
    old = _scanned("old.txt", Side.OLD, ["q", "a", "b", "c"], [(42, 1)])
    new = _scanned("new.txt", Side.NEW, ["a", "b", "c", "z"], [(42, 0)])
    index = FingerprintIndex.build([old])

    outcome = match_file(new, index, {"old.txt": old})

    assert outcome.rejected_collisions == 0
    assert len(outcome.hits) == 1
    hit = outcome.hits[0]
    assert (hit.new.start, hit.old.start, hit.offset) == (0, 1, 1)


def test_hash_collision_with_different_text_is_rejected() -> None:
    old = _scanned("old.txt", Side.OLD, ["x", "y", "z"], [(42, 0)])
    new = _scanned("new.txt", Side.NEW, ["a", "b", "c"], [(42, 0)])
    index = FingerprintIndex.build([old])

    outcome = match_file(new, index, {"old.txt": old})

    assert outcome.hits == ()
    assert outcome.rejected_collisions == 1


def test_one_hit_per_matching_old_occurrence() -> None:
    first = _scanned("a.txt", Side.OLD, ["a", "b", "c"], [(5, 0)])
    second = _scanned("b.txt", Side.OLD, ["a", "b", "c"], [(5, 0)])
    new = _scanned("new.txt", Side.NEW, ["a", "b", "c"], [(5, 0)])
    index = FingerprintIndex.build([second, first])

    outcome = match_file(new, index, {"a.txt": first, "b.txt": second})

    assert [hit.old.path for hit in outcome.hits] == ["a.txt", "b.txt"]


def test_missing_old_file_raises_key_error() -> None:
    old = _scanned("old.txt", Side.OLD, ["a", "b", "c"], [(1, 0)])
    new = _scanned("new.txt", Side.NEW, ["a", "b", "c"], [(1, 0)])
    index = FingerprintIndex.build([old])

    with pytest.raises(KeyError):
        match_file(new, index, {})


def test_overlapping_windows_on_one_diagonal_yield_one_hit() -> None:
    texts = ["a", "b", "c", "d", "e", "f"]
    old = _scanned("old.txt", Side.OLD, ["pre"] + texts, [(1, 1), (2, 2), (3, 4)])
    new = _scanned("new.txt", Side.NEW, texts, [(1, 0), (2, 1), (3, 3)])
    index = FingerprintIndex.build([old])

    outcome = match_file(new, index, {"old.txt": old})

    assert [(hit.new.start, hit.old.start) for hit in outcome.hits] == [(0, 1)]


def test_disjoint_windows_on_one_diagonal_stay_separate_hits() -> None:
    texts = [f"t{index}" for index in range(8)]
    old = _scanned("old.txt", Side.OLD, texts, [(1, 0), (2, 5)])
    new = _scanned("new.txt", Side.NEW, texts, [(2, 5), (1, 0)])
    index = FingerprintIndex.build([old])

    outcome = match_file(new, index, {"old.txt": old})

    assert [hit.new.start for hit in outcome.hits] == [0, 5]


def test_stoplisted_hash_produces_no_hits() -> None:
    old = _scanned("old.txt", Side.OLD, ["a", "b", "c", "a", "b", "c"], [(9, 0), (9, 3)])
    new = _scanned("new.txt", Side.NEW, ["a", "b", "c"], [(9, 0)])
    index = FingerprintIndex.build([old], max_occurrences=1)

    outcome = match_file(new, index, {"old.txt": old})

    assert outcome.hits == ()
    assert outcome.rejected_collisions == 0
