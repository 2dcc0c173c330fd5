"""Transport events and presentation commands exchanged between the engine layers."""

from __future__ import annotations

from dataclasses import dataclass

from voice_prompter.l1_entities.errors import VoicePrompterError


@dataclass(frozen=True)
class Ready:
    """The provider acknowledged session start; audio is now forwarded."""

    session_id: str = ''


@dataclass(frozen=True)
class TranscriptReceived:
    """A transcript update for the current speaking turn."""

    text: str


@dataclass(frozen=True)
class TransportFailed:
    """Terminal failure of the transcription session. Emitted once per episode."""

    error: VoicePrompterError


TransportEvent = Ready | TranscriptReceived | TransportFailed


@dataclass(frozen=True)
class MatchResult:
    """An accepted cursor advance from the alignment matcher."""

    word_index: int
    score: float
    char_start: int
    char_end: int


@dataclass(frozen=True)
class ScrollCommand:
    """Animated scroll request for the presentation layer.

    ``target_scroll_y`` is a content offset (≤ 0 moves content upward).
    ``sequence`` grows strictly per coordinator: a presenter must apply only
    the newest command it has seen.
    """

    target_scroll_y: float
    duration_ms: int
    easing: str
    word_index: int
    sequence: int


@dataclass(frozen=True)
class HighlightUpdate:
    """Spoken-word marker for the view. ``matched_word_index == -1`` clears it."""

    matched_word_index: int
    char_start: int
    char_end: int

    @classmethod
    def cleared(cls) -> HighlightUpdate:
        return cls(matched_word_index=-1, char_start=0, char_end=0)

    @property
    def is_cleared(self) -> bool:
        return self.matched_word_index < 0
