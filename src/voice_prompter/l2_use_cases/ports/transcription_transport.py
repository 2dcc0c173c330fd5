"""Port: streaming transcription transport."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from voice_prompter.l1_entities.connection_state import ConnectionState
from voice_prompter.l1_entities.events import TransportEvent


class TranscriptionTransport(Protocol):
    """Live connection to a streaming transcription provider."""

    @property
    def state(self) -> ConnectionState:
        """Current connection state. Read-only outside the transport."""
        ...

    async def start(self) -> None:
        """Begin a transcription session. Raises ConfigError without a credential."""
        ...

    async def stop(self) -> None:
        """End the session and release the microphone. Safe to call concurrently."""
        ...

    def events(self) -> AsyncIterator[TransportEvent]:
        """Normalized event stream. Single consumer."""
        ...
