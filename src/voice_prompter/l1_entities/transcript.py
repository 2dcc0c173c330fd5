"""Transcript entities — token normalization and the bounded transcript tail."""

from __future__ import annotations

import re
from collections import deque

_NON_WORD_RE = re.compile(r'[^\w\s]')


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    return ' '.join(_NON_WORD_RE.sub('', text.lower()).split())


def tokenize(text: str) -> list[str]:
    """Normalize *text* and split it into tokens."""
    return normalize_text(text).split()


class TranscriptTail:
    """Most recent tokens of committed transcript text.

    Each provider update carries the text of the current turn, so an update
    replaces the window rather than appending to it.
    """

    def __init__(self, size: int = 8) -> None:
        self._tokens: deque[str] = deque(maxlen=size)

    @property
    def tokens(self) -> list[str]:
        return list(self._tokens)

    def update(self, text: str) -> list[str]:
        """Replace the window with the trailing tokens of *text* and return them."""
        self._tokens.clear()
        self._tokens.extend(tokenize(text))
        return self.tokens

    def clear(self) -> None:
        self._tokens.clear()

    def __len__(self) -> int:
        return len(self._tokens)
