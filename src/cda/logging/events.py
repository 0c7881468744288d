"""Structured JSONL run event log."""

from __future__ import annotations

import json
import uuid
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from cda.engine.models import DetectionStats, Diagnostic

EVENTS_FILE_NAME = "events.jsonl"


@dataclass(slots=True, frozen=True)
class RunEvent:
    """One lifecycle event of a comparison run."""

    timestamp: str
    run_id: str
    event: str
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


def diagnostic_metadata(diagnostic: Diagnostic) -> dict[str, object]:
    """Flatten a skipped-file diagnostic for the event log."""
    return {
        "path": diagnostic.path,
        "side": diagnostic.side.value,
        "kind": diagnostic.kind,
        "message": diagnostic.message,
    }


def stats_metadata(stats: DetectionStats) -> dict[str, object]:
    """Flatten run counters and timings; timings are rounded to microseconds."""
    payload = asdict(stats)
    payload["timings"] = {key: round(value, 6) for key, value in sorted(stats.timings.items())}
    return payload


class JsonlEventLogger:
    """Append-only JSONL event log for comparison runs.

    The parent directory is created on first append, so reading never
    touches the filesystem beyond the log itself.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: RunEvent) -> None:
        """Write one event as a sorted-key JSON line."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(
        self,
        since: str | None = None,
        limit: int = 50,
        run_id: str | None = None,
    ) -> list[dict[str, object]]:
        """Return the newest ``limit`` events at or after ``since``.

        ``run_id`` narrows the result to one run. Malformed lines are skipped.
        """
        if limit < 1 or not self._path.exists():
            return []
        selected: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                record = _parse_line(line)
                if record is None:
                    continue
                if run_id is not None and record.get("run_id") != run_id:
                    continue
                if since is not None and str(record.get("timestamp", "")) < since:
                    continue
                selected.append(record)
        return list(selected)


def _parse_line(line: str) -> dict[str, object] | None:
    stripped = line.strip()
    if not stripped:
        return None
    try:
        record = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    return record if isinstance(record, dict) else None
