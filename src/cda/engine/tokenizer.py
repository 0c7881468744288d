"""Deterministic lexical tokenizer with configurable normalization."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import StrEnum

from cda.engine.models import Token, TokenKind
from cda.languages.base import Language, LexicalRules

IDENTIFIER_PLACEHOLDER = "$id"
NUMBER_PLACEHOLDER = "$num"
STRING_PLACEHOLDER = "$str"

_IDENTIFIER_PATTERN = re.compile(r"(?:[^\W\d]|\$)(?:\w|\$)*")
_NUMBER_PATTERN = re.compile(r"\d(?:\w|\.(?=\d))*")
_OPERATORS = (
    ">>>=", "<<=", ">>=", "...", "..<", "===", "!==", "**=", "//=", "->", "=>",
    "==", "!=", "<=", ">=", "&&", "||", "++", "--", "+=", "-=", "*=", "/=",
    "%=", "&=", "|=", "^=", "<<", ">>", "::", "??", "?.", "..", "**", ":=",
)
_OPERATOR_PATTERN = re.compile(
    "|".join(re.escape(op) for op in sorted(_OPERATORS, key=len, reverse=True))
)


class NormalizationLevel(StrEnum):
    """How much token variance is collapsed before hashing."""

    EXACT = "exact"
    IDENTIFIER_FOLD = "identifier_fold"


class UnreadableSourceError(ValueError):
    """Raised when file content cannot be decoded into source text."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}" if path else reason)
        self.path = path
        self.reason = reason


def decode_source(raw: bytes | str, path: str = "") -> str:
    """Decode raw file content as UTF-8 and normalize line endings."""
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise UnreadableSourceError(path, f"not valid UTF-8 at byte {exc.start}") from exc
    else:
        text = raw
    if "\x00" in text:
        raise UnreadableSourceError(path, "contains NUL bytes")
    return text.replace("\r\n", "\n").replace("\r", "\n")


@dataclass(slots=True, frozen=True)
class Tokenizer:
    """Pure text-to-token converter for one language and normalization level."""

    rules: LexicalRules
    keywords: frozenset[str]
    level: NormalizationLevel = NormalizationLevel.IDENTIFIER_FOLD

    @classmethod
    def for_language(
        cls,
        language: Language,
        level: NormalizationLevel = NormalizationLevel.IDENTIFIER_FOLD,
    ) -> Tokenizer:
        """Build a tokenizer from a language descriptor."""
        return cls(rules=language.rules, keywords=language.keywords, level=level)

    def tokenize(self, raw: bytes | str, path: str = "") -> list[Token]:
        """Convert raw file content into normalized tokens, skipping comments."""
        text = decode_source(raw, path)
        rules = self.rules
        line_prefixes = _longest_first(rules.line_comment_prefixes)
        block_pairs = tuple(
            sorted(
                ((start, end) for start, end in rules.block_comment_pairs if start and end),
                key=lambda pair: len(pair[0]),
                reverse=True,
            )
        )
        string_delimiters = _longest_first(rules.string_delimiters)
        multiline = set(rules.multiline_delimiters)
        line_starts = _line_starts(text)

        tokens: list[Token] = []
        length = len(text)
        index = 0
        while index < length:
            char = text[index]
            if char.isspace():
                index += 1
                continue

            line_marker = _match_any(text, index, line_prefixes)
            if line_marker is not None:
                newline = text.find("\n", index)
                index = length if newline == -1 else newline
                continue

            block_marker = _match_block_start(text, index, block_pairs)
            if block_marker is not None:
                index = _skip_block_comment(
                    text, index, block_marker, nested=rules.nested_block_comments
                )
                continue

            string_marker = _match_any(text, index, string_delimiters)
            if string_marker is not None:
                end_index = _string_end(
                    text,
                    index,
                    string_marker,
                    multiline=string_marker in multiline,
                    escape_char=rules.escape_char,
                )
                tokens.append(
                    self._token(TokenKind.STRING, text[index:end_index], index, end_index, line_starts)
                )
                index = end_index
                continue

            match = _IDENTIFIER_PATTERN.match(text, index)
            if match is not None:
                word = match.group(0)
                kind = TokenKind.KEYWORD if word in self.keywords else TokenKind.IDENTIFIER
                tokens.append(self._token(kind, word, index, match.end(), line_starts))
                index = match.end()
                continue

            match = _NUMBER_PATTERN.match(text, index)
            if match is None:
                match = _OPERATOR_PATTERN.match(text, index)
                kind = TokenKind.PUNCT
            else:
                kind = TokenKind.NUMBER
            end_index = match.end() if match is not None else index + 1
            tokens.append(self._token(kind, text[index:end_index], index, end_index, line_starts))
            index = end_index
        return tokens

    def normalize(self, kind: TokenKind, text: str) -> str:
        """Return the normalized text for one raw lexeme."""
        if self.level is NormalizationLevel.EXACT:
            return text
        if kind is TokenKind.IDENTIFIER:
            return IDENTIFIER_PLACEHOLDER
        if kind is TokenKind.NUMBER:
            return NUMBER_PLACEHOLDER
        if kind is TokenKind.STRING:
            return STRING_PLACEHOLDER
        return text

    def _token(
        self,
        kind: TokenKind,
        lexeme: str,
        start: int,
        end: int,
        line_starts: list[int],
    ) -> Token:
        line, column = _position(line_starts, start)
        end_line, end_column = _position(line_starts, end - 1)
        return Token(
            kind=kind,
            text=self.normalize(kind, lexeme),
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
        )


def _longest_first(markers: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(sorted((marker for marker in markers if marker), key=len, reverse=True))


def _line_starts(text: str) -> list[int]:
    starts = [0]
    for index, char in enumerate(text):
        if char == "\n":
            starts.append(index + 1)
    return starts


def _position(line_starts: list[int], offset: int) -> tuple[int, int]:
    line_index = bisect_right(line_starts, offset) - 1
    return line_index + 1, offset - line_starts[line_index] + 1


def _match_any(text: str, index: int, markers: tuple[str, ...]) -> str | None:
    for marker in markers:
        if text.startswith(marker, index):
            return marker
    return None


def _match_block_start(
    text: str,
    index: int,
    pairs: tuple[tuple[str, str], ...],
) -> tuple[str, str] | None:
    for start, end in pairs:
        if text.startswith(start, index):
            return start, end
    return None


def _skip_block_comment(text: str, index: int, pair: tuple[str, str], *, nested: bool) -> int:
    """Return the offset just past a block comment; unterminated comments run to EOF."""
    start_marker, end_marker = pair
    depth = 1
    cursor = index + len(start_marker)
    length = len(text)
    while cursor < length:
        if text.startswith(end_marker, cursor):
            depth -= 1
            cursor += len(end_marker)
            if depth == 0:
                return cursor
            continue
        if nested and text.startswith(start_marker, cursor):
            depth += 1
            cursor += len(start_marker)
            continue
        cursor += 1
    return length


def _string_end(text: str, index: int, marker: str, *, multiline: bool, escape_char: str) -> int:
    """Return the offset just past a string literal.

    Single-line literals stop at the end of the line when unterminated.
    """
    cursor = index + len(marker)
    length = len(text)
    while cursor < length:
        char = text[cursor]
        if escape_char and char == escape_char:
            cursor += 2
            continue
        if char == "\n" and not multiline:
            return cursor
        if text.startswith(marker, cursor):
            return cursor + len(marker)
        cursor += 1
    return length
