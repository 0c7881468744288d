"""Detector settings accepted by the engine."""

from __future__ import annotations

import os
from dataclasses import dataclass

from cda.engine.fingerprint import DEFAULT_GUARANTEE_WINDOW, DEFAULT_WINDOW_SIZE
from cda.engine.tokenizer import NormalizationLevel

MAX_WINDOW_SIZE = 1_000
MAX_WORKERS = 256
DEFAULT_MAX_HASH_OCCURRENCES = 256


class ConfigurationInvalidError(ValueError):
    """Raised when detector or run configuration is rejected before any work."""


@dataclass(slots=True, frozen=True)
class DetectorConfig:
    """Tunable knobs of the detection pipeline.

    ``min_span_tokens`` defaults to ``window_size`` and ``workers`` to the CPU
    count when left as None. Fingerprints occurring more than
    ``max_hash_occurrences`` times in the old tree are ignored.
    """

    normalization: NormalizationLevel = NormalizationLevel.IDENTIFIER_FOLD
    window_size: int = DEFAULT_WINDOW_SIZE
    guarantee_window: int = DEFAULT_GUARANTEE_WINDOW
    merge_gap: int = 0
    min_span_tokens: int | None = None
    workers: int | None = None
    max_hash_occurrences: int = DEFAULT_MAX_HASH_OCCURRENCES

    @property
    def effective_min_span_tokens(self) -> int:
        if self.min_span_tokens is None:
            return self.window_size
        return self.min_span_tokens

    @property
    def effective_workers(self) -> int:
        if self.workers is None:
            return max(1, min(os.cpu_count() or 1, MAX_WORKERS))
        return self.workers

    def validate(self) -> None:
        """Raise ConfigurationInvalidError when any field is out of range."""
        if not isinstance(self.normalization, NormalizationLevel):
            raise ConfigurationInvalidError(
                "Config field 'detector.normalization' must be one of "
                f"{[level.value for level in NormalizationLevel]}."
            )
        _require_int(self.window_size, "detector.window_size", minimum=1, cap=MAX_WINDOW_SIZE)
        _require_int(
            self.guarantee_window, "detector.guarantee_window", minimum=1, cap=MAX_WINDOW_SIZE
        )
        if self.guarantee_window < self.window_size:
            raise ConfigurationInvalidError(
                "Config field 'detector.guarantee_window' must be >= "
                f"detector.window_size ({self.window_size})."
            )
        _require_int(self.merge_gap, "detector.merge_gap", minimum=0, cap=None)
        if self.min_span_tokens is not None:
            _require_int(self.min_span_tokens, "detector.min_span_tokens", minimum=1, cap=None)
        if self.workers is not None:
            _require_int(self.workers, "detector.workers", minimum=1, cap=MAX_WORKERS)
        _require_int(
            self.max_hash_occurrences, "detector.max_hash_occurrences", minimum=1, cap=None
        )

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable snapshot with defaults resolved."""
        return {
            "normalization": self.normalization.value,
            "window_size": self.window_size,
            "guarantee_window": self.guarantee_window,
            "merge_gap": self.merge_gap,
            "min_span_tokens": self.effective_min_span_tokens,
            "workers": self.effective_workers,
            "max_hash_occurrences": self.max_hash_occurrences,
        }


def _require_int(value: object, name: str, *, minimum: int, cap: int | None) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        qualifier = "a positive integer" if minimum == 1 else f"an integer >= {minimum}"
        raise ConfigurationInvalidError(f"Config field '{name}' must be {qualifier}.")
    if cap is not None and value > cap:
        raise ConfigurationInvalidError(f"Config field '{name}' must be <= {cap}.")
