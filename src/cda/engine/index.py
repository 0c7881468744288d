"""Cross-tree fingerprint index built from the old tree."""

from __future__ import annotations

from collections.abc import Iterable

from cda.engine.models import Fingerprint, ScannedFile


class IndexFrozenError(RuntimeError):
    """Raised when the index is mutated after it was frozen."""


class FingerprintIndex:
    """Maps fingerprint hashes to old-tree occurrences.

    Built by a single writer, then frozen; lookups after ``freeze`` need no
    synchronization. Occurrences for one hash are ordered by (path, start).
    Hashes seen more than ``max_occurrences`` times are stop-listed at freeze
    and never returned by ``lookup``.
    """

    def __init__(self) -> None:
        self._building: dict[int, list[Fingerprint]] | None = {}
        self._entries: dict[int, tuple[Fingerprint, ...]] = {}
        self._fingerprint_count = 0
        self._paths: set[str] = set()
        self._stoplisted: frozenset[int] = frozenset()

    @classmethod
    def build(
        cls,
        files: Iterable[ScannedFile],
        max_occurrences: int | None = None,
    ) -> FingerprintIndex:
        """Build and freeze an index from scanned old-tree files."""
        index = cls()
        for scanned in files:
            index.add(scanned)
        index.freeze(max_occurrences)
        return index

    @property
    def frozen(self) -> bool:
        return self._building is None

    def add(self, scanned: ScannedFile) -> None:
        """Append all fingerprints of one file."""
        if self._building is None:
            raise IndexFrozenError("Fingerprint index is read-only after freeze().")
        if scanned.path in self._paths:
            raise ValueError(f"File already indexed: {scanned.path}")
        self._paths.add(scanned.path)
        for fingerprint in scanned.fingerprints:
            self._building.setdefault(fingerprint.hash, []).append(fingerprint)
            self._fingerprint_count += 1

    def freeze(self, max_occurrences: int | None = None) -> None:
        """Finish the build; further ``add`` calls raise."""
        if self._building is None:
            return
        if max_occurrences is not None and max_occurrences < 1:
            raise ValueError("max_occurrences must be >= 1")
        entries: dict[int, tuple[Fingerprint, ...]] = {}
        stoplisted: set[int] = set()
        for value, occurrences in self._building.items():
            if max_occurrences is not None and len(occurrences) > max_occurrences:
                stoplisted.add(value)
                continue
            entries[value] = tuple(sorted(occurrences, key=lambda item: (item.path, item.start)))
        self._entries = entries
        self._stoplisted = frozenset(stoplisted)
        self._building = None

    def lookup(self, value: int) -> tuple[Fingerprint, ...]:
        """Return old-tree fingerprints sharing ``value``; empty when unknown."""
        if self._building is not None:
            raise IndexFrozenError("Fingerprint index must be frozen before lookup.")
        return self._entries.get(value, ())

    def __len__(self) -> int:
        return len(self._entries) if self._building is None else len(self._building)

    @property
    def fingerprint_count(self) -> int:
        return self._fingerprint_count

    @property
    def stoplisted_count(self) -> int:
        """Number of hashes dropped for occurring too often."""
        return len(self._stoplisted)

    @property
    def file_count(self) -> int:
        return len(self._paths)
