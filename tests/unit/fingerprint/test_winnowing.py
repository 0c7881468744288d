from __future__ import annotations

import pytest

from cda.engine import fingerprint_texts, token_key, window_hashes, winnow


def test_window_hashes_cover_every_window_in_order() -> None:
    keys = [token_key(text) for text in ["a", "b", "c", "d", "e"]]

    hashes = window_hashes(keys, 3)

    assert len(hashes) == 3
    assert hashes[0] == window_hashes(keys[:3], 3)[0]
    assert hashes[2] == window_hashes(keys[2:], 3)[0]


def test_window_hash_is_order_sensitive() -> None:
    forward = [token_key("x"), token_key("y")]
    backward = [token_key("y"), token_key("x")]

    assert window_hashes(forward, 2) != window_hashes(backward, 2)


def test_token_key_is_stable_and_distinguishes_texts() -> None:
    assert token_key("$id") == token_key("$id")
    assert token_key("$id") != token_key("$num")


def test_window_hashes_rejects_non_positive_window() -> None:
    with pytest.raises(ValueError, match="window_size"):
        window_hashes([1, 2, 3], 0)


def test_winnow_picks_rightmost_minimum_on_ties() -> None:
    assert winnow([5, 1, 1, 3], 2) == [1, 2]
    assert winnow([5, 1, 1, 3], 4) == [2]


def test_winnow_selects_one_position_per_window_without_repeats() -> None:
    hashes = [9, 4, 7, 2, 8, 6, 3, 5]

    selected = winnow(hashes, 3)

    assert selected == [1, 3, 6]
    for start in range(len(hashes) - 2):
        assert any(start <= position < start + 3 for position in selected)


def test_winnow_short_input_keeps_rightmost_global_minimum() -> None:
    assert winnow([3, 1, 2, 1], 10) == [3]
    assert winnow([], 4) == []


def test_file_shorter_than_window_has_no_fingerprints() -> None:
    assert fingerprint_texts(["a", "b", "c"], "short.txt", window_size=4, guarantee_window=4) == ()


def test_fingerprints_span_exactly_one_window() -> None:
    texts = [f"t{index}" for index in range(40)]

    fingerprints = fingerprint_texts(texts, "f.txt", window_size=5, guarantee_window=6)

    assert fingerprints
    assert all(item.end - item.start == 5 for item in fingerprints)
    assert all(item.path == "f.txt" for item in fingerprints)
    assert [item.start for item in fingerprints] == sorted({item.start for item in fingerprints})


def test_guarantee_window_smaller_than_window_is_rejected() -> None:
    with pytest.raises(ValueError, match="guarantee_window"):
        fingerprint_texts(["a"] * 10, "f.txt", window_size=5, guarantee_window=4)


@pytest.mark.parametrize("prefix_length", [0, 3, 11])
def test_shared_run_of_guarantee_length_always_shares_a_fingerprint(prefix_length: int) -> None:
    window_size = 4
    guarantee_window = 5
    shared = [f"s{index}" for index in range(guarantee_window + window_size - 1)]
    first = [f"a{index}" for index in range(prefix_length)] + shared + ["a-tail"] * 9
    second = [f"b{index}" for index in range(7)] + shared + [f"b-tail{index}" for index in range(2)]

    first_hashes = {
        item.hash for item in fingerprint_texts(first, "a", window_size, guarantee_window)
    }
    second_hashes = {
        item.hash for item in fingerprint_texts(second, "b", window_size, guarantee_window)
    }

    assert first_hashes & second_hashes
