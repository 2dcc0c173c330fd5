"""Use case: align transcript updates to the script — fuzzy look-ahead search, monotonic cursor."""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass

from voice_prompter.l1_entities.events import MatchResult
from voice_prompter.l1_entities.script import WordEntry, build_word_index, normalize_newlines
from voice_prompter.l1_entities.transcript import TranscriptTail, normalize_text

log = logging.getLogger('vp.matcher')


@dataclass(frozen=True)
class MatchPolicy:
    """Tuning constants for the alignment search.

    The partial weight and the three acceptance thresholds are empirical;
    override them through the ``matcher`` config section, not here.
    """

    key_size: int = 4
    min_tokens: int = 3
    lookahead: int = 10
    override_lookahead: int = 50
    partial_weight: float = 0.4
    proximity_bonus: float = 0.1
    threshold: float = 0.75
    override_threshold: float = 0.6
    short_key_threshold: float = 0.95
    initial_jump_limit: int = 15
    tail_size: int = 8

    def threshold_for(self, key_length: int, override: bool) -> float:
        if key_length < 3:
            return self.short_key_threshold
        return self.override_threshold if override else self.threshold


@dataclass(frozen=True)
class Candidate:
    word_index: int
    score: float


def similarity(key: list[str], window: list[str], partial_weight: float = 0.4) -> float:
    """Score *key* against an equal-length script *window*.

    1 point per token at the same position, *partial_weight* for a token
    found elsewhere in the window, 0 otherwise; normalized by key length.
    """
    if not key or not window:
        return 0.0
    if key == window:
        return 1.0
    present = set(window)
    total = 0.0
    for i, token in enumerate(key):
        if i < len(window) and window[i] == token:
            total += 1.0
        elif token in present:
            total += partial_weight
    return total / len(key)


def find_best_match(
    script_tokens: list[str],
    key: list[str],
    cursor: int,
    *,
    override: bool = False,
    policy: MatchPolicy | None = None,
) -> Candidate | None:
    """Search the look-ahead window after *cursor* for the best slice matching *key*.

    Returns the index of the last word of the winning slice, or None when no
    slice clears the acceptance threshold. Candidates nearer the cursor get a
    small bonus so that a repeated phrase further ahead does not win a tie.
    """
    policy = policy or MatchPolicy()
    n = len(script_tokens)
    if n == 0 or not key:
        return None

    lookahead = policy.override_lookahead if override else policy.lookahead
    threshold = policy.threshold_for(len(key), override)
    end = min(n, cursor + lookahead)
    width = min(len(key), end - cursor)
    if width <= 0:
        return None

    best: Candidate | None = None
    best_total = 0.0
    for start in range(cursor, end - width + 1):
        window = script_tokens[start : start + len(key)]
        score = similarity(key, window, policy.partial_weight)
        if score < threshold:
            continue
        distance = start - cursor
        total = score + max(0.0, (lookahead - distance) / lookahead) * policy.proximity_bonus
        if total > best_total:
            best_total = total
            best = Candidate(word_index=start + len(window) - 1, score=score)
    return best


class AlignTranscriptUseCase:
    """Owns the script word index and the match cursor.

    Automatic updates via ``update()`` only ever move the cursor forward.
    ``reset()``, ``advance_to_end()`` and ``set_cursor()`` are the explicit
    force-set paths.
    """

    def __init__(self, policy: MatchPolicy | None = None) -> None:
        self._policy = policy or MatchPolicy()
        self._plain_text = ''
        self._words: list[WordEntry] = []
        self._tokens: list[str] = []
        self._token_words: list[int] = []
        self._starts: list[int] = []
        self._cursor = 0
        self._tail = TranscriptTail(self._policy.tail_size)

    @property
    def policy(self) -> MatchPolicy:
        return self._policy

    @property
    def plain_text(self) -> str:
        return self._plain_text

    @property
    def words(self) -> list[WordEntry]:
        return self._words

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def tail(self) -> list[str]:
        return self._tail.tokens

    def load_script(self, plain_text: str) -> None:
        """Rebuild the word index for new script content and reset all cursors."""
        self._plain_text = normalize_newlines(plain_text)
        self._words = build_word_index(self._plain_text)
        # Words that normalize to nothing (a lone dash, an ellipsis) take no slot in the scoring window.
        scored = [(i, normalize_text(w.word)) for i, w in enumerate(self._words)]
        scored = [(i, token) for i, token in scored if token]
        self._token_words = [i for i, _ in scored]
        self._tokens = [token for _, token in scored]
        self._starts = [w.char_start for w in self._words]
        self.reset()
        log.info('Script loaded: %d words, %d chars', len(self._words), len(self._plain_text))

    def entry(self, index: int) -> WordEntry:
        return self._words[index]

    def update(self, transcript: str, *, override: bool = False) -> MatchResult | None:
        """Feed the latest transcript text. Returns the new position, or None if unchanged."""
        tokens = self._tail.update(transcript)
        if len(tokens) < self._policy.min_tokens:
            return None

        key = tokens[-self._policy.key_size :]
        position = bisect.bisect_left(self._token_words, self._cursor)
        candidate = find_best_match(
            self._tokens,
            key,
            position,
            override=override,
            policy=self._policy,
        )
        if candidate is None:
            return None

        word_index = self._token_words[candidate.word_index]
        if word_index <= self._cursor:
            return None

        if not override and self._cursor == 0 and candidate.word_index > self._policy.initial_jump_limit:
            log.debug('Blocked early jump to word %d before context accumulated', word_index)
            return None

        self._cursor = word_index
        word = self._words[self._cursor]
        log.debug('Cursor → %d (%r, score %.2f, override=%s)', self._cursor, word.word, candidate.score, override)
        return MatchResult(
            word_index=self._cursor,
            score=candidate.score,
            char_start=word.char_start,
            char_end=word.char_end,
        )

    def reset(self) -> None:
        """Rewind to the start of the script."""
        self._cursor = 0
        self._tail.clear()

    def advance_to_end(self) -> None:
        self._cursor = max(0, len(self._words) - 1)
        self._tail.clear()

    def set_cursor(self, index: int) -> None:
        """Force the cursor to *index* (clamped to the word index)."""
        self._cursor = min(max(0, index), max(0, len(self._words) - 1))
        self._tail.clear()

    def word_at_or_before(self, char_offset: int) -> int:
        """Index of the last word starting at or before *char_offset* (0 if none)."""
        return max(0, bisect.bisect_right(self._starts, char_offset) - 1)

    def words_before(self, char_offset: int) -> int:
        """Number of words starting strictly before *char_offset*."""
        return bisect.bisect_left(self._starts, char_offset)
