"""Render and persist duplication reports."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from cda.engine.models import DetectionResult, DuplicateSpan, FilePairResult

NO_DUPLICATES_MESSAGE = "Everything is fine, no code duplications found."


def count_code_lines(raw: bytes | str) -> int:
    """Count non-blank lines of a source file."""
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    return sum(1 for line in text.splitlines() if line.strip())


def total_rates(result: DetectionResult) -> tuple[float, float]:
    """Return (old-side rate, new-side rate) averaged over all scanned files of each side."""
    old_total = sum(pair.old_similarity for pair in result.pairs)
    new_total = sum(pair.new_similarity for pair in result.pairs)
    return (
        _mean(old_total, len(result.old_token_counts)),
        _mean(new_total, len(result.new_token_counts)),
    )


def render_text_report(
    result: DetectionResult,
    code_lines: Mapping[str, int] | None = None,
) -> str:
    """Render the tabular text report, one row per file pair followed by its spans."""
    if not result.pairs:
        return f"{NO_DUPLICATES_MESSAGE}\n"
    lines_by_path = code_lines or {}
    new_width = max(len(pair.new_path) for pair in result.pairs)
    old_width = max(len(pair.old_path) for pair in result.pairs)

    output = [f"Found {len(result.pairs)} results:"]
    for pair in result.pairs:
        output.append(
            f"{pair.new_path:<{new_width}} {pair.old_path:<{old_width}}"
            f"\t{lines_by_path.get(pair.new_path, 0)}\t"
            f"\t{_percent(pair.new_similarity)}\t"
            f"\t{pair.duplicated_lines}\t"
            f"\t{_percent(pair.old_similarity)}"
        )
        output.extend(f"    {_span_line(span)}" for span in pair.spans)
    output.append("")
    total_rate, self_rate = total_rates(result)
    output.append(f"Total rate: {_percent(total_rate)}")
    output.append(f"Total rate of self: {_percent(self_rate)}")
    return "\n".join(output) + "\n"


def result_to_dict(
    result: DetectionResult,
    code_lines: Mapping[str, int] | None = None,
) -> dict[str, object]:
    """Return a JSON-serializable view of a detection result."""
    lines_by_path = code_lines or {}
    total_rate, self_rate = total_rates(result)
    return {
        "results": len(result.pairs),
        "pairs": [_pair_to_dict(pair, lines_by_path) for pair in result.pairs],
        "diagnostics": [
            {
                "path": item.path,
                "side": item.side.value,
                "kind": item.kind,
                "message": item.message,
            }
            for item in result.diagnostics
        ],
        "total_rate": total_rate,
        "total_rate_of_self": self_rate,
        "files": {"new": len(result.new_token_counts), "old": len(result.old_token_counts)},
    }


def render_json_report(
    result: DetectionResult,
    code_lines: Mapping[str, int] | None = None,
) -> str:
    return json.dumps(result_to_dict(result, code_lines), sort_keys=True, indent=2) + "\n"


def write_report(path: Path, content: str) -> Path:
    """Write a rendered report, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _pair_to_dict(pair: FilePairResult, code_lines: Mapping[str, int]) -> dict[str, object]:
    return {
        "new_path": pair.new_path,
        "old_path": pair.old_path,
        "code_lines": code_lines.get(pair.new_path, 0),
        "new_similarity": pair.new_similarity,
        "old_similarity": pair.old_similarity,
        "duplicated_lines": pair.duplicated_lines,
        "new_token_count": pair.new_token_count,
        "old_token_count": pair.old_token_count,
        "spans": [_span_to_dict(span) for span in pair.spans],
    }


def _span_to_dict(span: DuplicateSpan) -> dict[str, object]:
    return {
        "new_tokens": [span.new_start, span.new_end],
        "old_tokens": [span.old_start, span.old_end],
        "new_lines": list(span.new_lines),
        "old_lines": list(span.old_lines),
        "covered_tokens": span.covered_tokens,
        "similarity": span.similarity,
    }


def _span_line(span: DuplicateSpan) -> str:
    return (
        f"lines {span.new_lines[0]}-{span.new_lines[1]}"
        f" ~ {span.old_lines[0]}-{span.old_lines[1]}"
        f" ({_percent(span.similarity)})"
    )


def _percent(value: float) -> str:
    return f"{value * 100.0:.2f}%"


def _mean(total: float, count: int) -> float:
    if count <= 0:
        return 0.0
    return min(1.0, total / count)
