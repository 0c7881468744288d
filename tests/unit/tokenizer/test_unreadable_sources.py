from __future__ import annotations

import pytest

from cda.engine import Tokenizer, UnreadableSourceError, decode_source
from cda.languages import GENERIC


def test_invalid_utf8_raises_unreadable_source_with_path() -> None:
    with pytest.raises(UnreadableSourceError, match="not valid UTF-8") as excinfo:
        decode_source(b"int x = \xff;", "src/Bad.java")

    assert excinfo.value.path == "src/Bad.java"
    assert isinstance(excinfo.value, ValueError)


def test_nul_byte_raises_unreadable_source() -> None:
    tokenizer = Tokenizer.for_language(GENERIC)

    with pytest.raises(UnreadableSourceError, match="NUL"):
        tokenizer.tokenize("a\x00b", "blob.txt")


def test_decode_normalizes_line_endings() -> None:
    assert decode_source(b"a\r\nb\rc\n") == "a\nb\nc\n"
