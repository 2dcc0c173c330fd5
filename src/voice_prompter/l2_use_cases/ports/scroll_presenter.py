"""Port: downstream presentation of scroll and highlight updates."""

from __future__ import annotations

from typing import Protocol

from voice_prompter.l1_entities.errors import VoicePrompterError
from voice_prompter.l1_entities.events import HighlightUpdate, ScrollCommand


class ScrollPresenter(Protocol):
    """Receives everything the coordinator wants shown. Never renders through the core."""

    def scroll_to(self, command: ScrollCommand) -> None: ...

    def highlight(self, update: HighlightUpdate) -> None: ...

    def voice_sync_ready(self) -> None: ...

    def voice_sync_stalled(self) -> None: ...

    def voice_sync_failed(self, error: VoicePrompterError) -> None: ...
