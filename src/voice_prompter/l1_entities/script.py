"""Script text entities — plain text and its word index."""

from __future__ import annotations

import re
from dataclasses import dataclass

_WORD_RE = re.compile(r'\S+')


@dataclass(frozen=True)
class WordEntry:
    """One script word with its half-open character range in the plain text."""

    word: str
    char_start: int
    char_end: int


def normalize_newlines(text: str) -> str:
    """Fold CRLF/CR line endings to LF so every offset refers to the same string."""
    return text.replace('\r\n', '\n').replace('\r', '\n')


def build_word_index(plain_text: str) -> list[WordEntry]:
    """Split plain text into words, skipping whitespace and line breaks."""
    return [WordEntry(m.group(), m.start(), m.end()) for m in _WORD_RE.finditer(plain_text)]
