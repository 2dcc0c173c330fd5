"""Port: audio capture source."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class AudioSource(Protocol):
    """Abstract microphone input stream producing mono float32 frames."""

    def open(self, sample_rate: int, channels: int, frame_duration: float) -> None:
        """Open the audio stream. Raises ResourceError if the device is unavailable."""
        ...

    def read(self, timeout: float) -> np.ndarray | None:
        """Read one frame of audio. Returns None on timeout."""
        ...

    def close(self) -> None:
        """Close the audio stream."""
        ...
