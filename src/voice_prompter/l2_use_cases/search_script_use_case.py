"""Use case: find occurrences of a query in the script's plain text."""

from __future__ import annotations

from dataclasses import dataclass

MAX_MATCHES = 500


@dataclass(frozen=True)
class SearchMatch:
    start: int
    length: int


def find_occurrences(plain_text: str, query: str, limit: int = MAX_MATCHES) -> list[SearchMatch]:
    """Case-insensitive, possibly overlapping substring search.

    Capped at *limit* results so a single-letter query stays cheap.
    """
    if not query:
        return []
    haystack = plain_text.lower()
    needle = query.lower()
    matches: list[SearchMatch] = []
    idx = haystack.find(needle)
    while idx != -1 and len(matches) < limit:
        matches.append(SearchMatch(start=idx, length=len(query)))
        idx = haystack.find(needle, idx + 1)
    return matches


class SearchCursor:
    """Cycles through search results; wraps at both ends."""

    def __init__(self) -> None:
        self.matches: list[SearchMatch] = []
        self.position = 0

    def search(self, plain_text: str, query: str) -> SearchMatch | None:
        self.matches = find_occurrences(plain_text, query)
        self.position = 0
        return self.matches[0] if self.matches else None

    def next(self) -> SearchMatch | None:
        if not self.matches:
            return None
        self.position = (self.position + 1) % len(self.matches)
        return self.matches[self.position]

    def previous(self) -> SearchMatch | None:
        if not self.matches:
            return None
        self.position = (self.position - 1) % len(self.matches)
        return self.matches[self.position]

    def clear(self) -> None:
        self.matches = []
        self.position = 0
