"""L1 entity: transcription connection state."""

from __future__ import annotations

import enum


class ConnectionState(enum.Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    STREAMING = 'streaming'
    STOPPING = 'stopping'
    ERROR = 'error'
