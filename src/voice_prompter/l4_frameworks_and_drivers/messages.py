"""Textual Message subclasses — contracts between the coordinator bridge and the App."""

from __future__ import annotations

from textual.message import Message

from voice_prompter.l1_entities.events import HighlightUpdate, ScrollCommand


class ScrollRequested(Message):
    """Posted when the coordinator wants the script view animated to a new offset."""

    def __init__(self, command: ScrollCommand) -> None:
        super().__init__()
        self.command = command


class HighlightMoved(Message):
    """Posted when the matched word changes."""

    def __init__(self, update: HighlightUpdate) -> None:
        super().__init__()
        self.update = update


class VoiceSyncReady(Message):
    """Posted once the provider has acknowledged the session and audio is flowing."""


class VoiceSyncStalled(Message):
    """Posted when no transcript has arrived within the inactivity timeout."""


class VoiceSyncFailed(Message):
    """Posted on a terminal transport failure; voice sync is already off."""

    def __init__(self, error: str, kind: str) -> None:
        super().__init__()
        self.error = error
        self.kind = kind
