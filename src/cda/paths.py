"""Resolve compared subtrees under the comparison root."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


class TreePathError(Exception):
    """Raised when a source or destination tree cannot be used."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def _normalize_relative_input(candidate: str) -> tuple[str, bool]:
    """Normalize path separators and detect absolute-style inputs."""
    normalized = candidate.replace("\\", "/")
    if normalized.startswith("/"):
        return normalized, True
    if WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        return normalized, True
    return normalized, False


def resolve_tree_path(root: Path, candidate: str) -> Path:
    """Resolve a tree argument against the root and require an existing directory."""
    resolved_root = root.resolve()
    normalized, is_absolute_style = _normalize_relative_input(candidate.strip())

    if not normalized:
        raise TreePathError(
            reason="Tree path is empty.",
            hint="Provide a directory relative to --root such as 'app/src'.",
        )

    if is_absolute_style:
        resolved = Path(normalized).resolve(strict=False)
        if not resolved.is_relative_to(resolved_root):
            raise TreePathError(
                reason=f"Absolute path is outside root: {candidate}",
                hint="Use a directory located under --root.",
            )
    else:
        parts = [part for part in normalized.split("/") if part not in ("", ".")]
        if any(part == ".." for part in parts):
            raise TreePathError(
                reason=f"Path traversal is blocked: {candidate}",
                hint="Remove '..' segments and use a path relative to --root.",
            )
        resolved = (resolved_root / Path(*parts)).resolve(strict=False)
        if not resolved.is_relative_to(resolved_root):
            raise TreePathError(
                reason=f"Resolved path escapes root: {candidate}",
                hint="Use a directory located under --root.",
            )

    if not resolved.is_dir():
        raise TreePathError(
            reason=f"Tree is not a directory: {candidate}",
            hint="Check that the directory exists under --root.",
        )
    return resolved
