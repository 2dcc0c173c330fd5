"""Presenter bridge — implements ScrollPresenter by posting Textual messages to the App."""

from __future__ import annotations

from textual.message_pump import MessagePump

from voice_prompter.l1_entities.errors import VoicePrompterError
from voice_prompter.l1_entities.events import HighlightUpdate, ScrollCommand
from voice_prompter.l4_frameworks_and_drivers.messages import (
    HighlightMoved,
    ScrollRequested,
    VoiceSyncFailed,
    VoiceSyncReady,
    VoiceSyncStalled,
)


class TextualScrollPresenter:
    def __init__(self, target: MessagePump) -> None:
        self._target = target

    def scroll_to(self, command: ScrollCommand) -> None:
        self._target.post_message(ScrollRequested(command))

    def highlight(self, update: HighlightUpdate) -> None:
        self._target.post_message(HighlightMoved(update))

    def voice_sync_ready(self) -> None:
        self._target.post_message(VoiceSyncReady())

    def voice_sync_stalled(self) -> None:
        self._target.post_message(VoiceSyncStalled())

    def voice_sync_failed(self, error: VoicePrompterError) -> None:
        self._target.post_message(VoiceSyncFailed(error=str(error), kind=type(error).__name__))
