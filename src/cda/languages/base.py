"""Language descriptors consumed by the tokenizer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(slots=True, frozen=True)
class LexicalRules:
    """Configurable lexical markers used while skipping non-code text."""

    line_comment_prefixes: tuple[str, ...] = ("//",)
    block_comment_pairs: tuple[tuple[str, str], ...] = (("/*", "*/"),)
    string_delimiters: tuple[str, ...] = ('"', "'")
    multiline_delimiters: tuple[str, ...] = ('"""', "'''", "`")
    nested_block_comments: bool = False
    escape_char: str = "\\"


@dataclass(slots=True, frozen=True)
class Language:
    """One supported source language."""

    name: str
    extensions: tuple[str, ...]
    rules: LexicalRules
    keywords: frozenset[str]

    def supports_path(self, path: str) -> bool:
        """Return True when the path extension belongs to this language."""
        return PurePosixPath(path.replace("\\", "/")).suffix.lower() in self.extensions
