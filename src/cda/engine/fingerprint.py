"""Order-sensitive window hashing with winnowing selection.

Every contiguous window of ``window_size`` tokens is hashed with a polynomial
rolling hash, then one position per ``guarantee_window`` consecutive hashes is
kept (rightmost minimum). Two token sequences sharing a run of at least
``guarantee_window + window_size - 1`` tokens always share one selected hash.
"""

from __future__ import annotations

import hashlib
from collections import deque
from collections.abc import Sequence

from cda.engine.models import Fingerprint, Token

DEFAULT_WINDOW_SIZE = 15
DEFAULT_GUARANTEE_WINDOW = 15

_HASH_BASE = 1_099_511_628_211
_HASH_MASK = (1 << 64) - 1


def token_key(text: str) -> int:
    """Map a normalized token text to a process-independent 64-bit key."""
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8)
    return int.from_bytes(digest.digest(), "big")


def window_hashes(keys: Sequence[int], window_size: int) -> list[int]:
    """Return the rolling hash of every ``window_size`` window, in order."""
    if window_size < 1:
        raise ValueError("window_size must be >= 1")
    count = len(keys)
    if count < window_size:
        return []

    high = pow(_HASH_BASE, window_size - 1, 1 << 64)
    value = 0
    for key in keys[:window_size]:
        value = (value * _HASH_BASE + key) & _HASH_MASK
    hashes = [value]
    for index in range(window_size, count):
        outgoing = keys[index - window_size]
        value = ((value - outgoing * high) * _HASH_BASE + keys[index]) & _HASH_MASK
        hashes.append(value)
    return hashes


def winnow(hashes: Sequence[int], guarantee_window: int) -> list[int]:
    """Select window positions: rightmost minimum of every ``guarantee_window`` run."""
    if guarantee_window < 1:
        raise ValueError("guarantee_window must be >= 1")
    count = len(hashes)
    if count == 0:
        return []
    if count < guarantee_window:
        best = 0
        for index in range(1, count):
            if hashes[index] <= hashes[best]:
                best = index
        return [best]

    selected: list[int] = []
    candidates: deque[int] = deque()
    for index in range(count):
        while candidates and hashes[candidates[-1]] >= hashes[index]:
            candidates.pop()
        candidates.append(index)
        if candidates[0] <= index - guarantee_window:
            candidates.popleft()
        if index < guarantee_window - 1:
            continue
        chosen = candidates[0]
        if not selected or selected[-1] != chosen:
            selected.append(chosen)
    return selected


def fingerprint_texts(
    texts: Sequence[str],
    path: str,
    window_size: int = DEFAULT_WINDOW_SIZE,
    guarantee_window: int = DEFAULT_GUARANTEE_WINDOW,
) -> tuple[Fingerprint, ...]:
    """Fingerprint a sequence of normalized token texts."""
    if guarantee_window < window_size:
        raise ValueError("guarantee_window must be >= window_size")
    key_cache: dict[str, int] = {}
    keys: list[int] = []
    for text in texts:
        key = key_cache.get(text)
        if key is None:
            key = token_key(text)
            key_cache[text] = key
        keys.append(key)
    hashes = window_hashes(keys, window_size)
    return tuple(
        Fingerprint(
            hash=hashes[position],
            start=position,
            end=position + window_size,
            path=path,
        )
        for position in winnow(hashes, guarantee_window)
    )


def fingerprint_tokens(
    tokens: Sequence[Token],
    path: str,
    window_size: int = DEFAULT_WINDOW_SIZE,
    guarantee_window: int = DEFAULT_GUARANTEE_WINDOW,
) -> tuple[Fingerprint, ...]:
    """Fingerprint a token sequence produced by the tokenizer."""
    return fingerprint_texts(
        [token.text for token in tokens],
        path,
        window_size=window_size,
        guarantee_window=guarantee_window,
    )
