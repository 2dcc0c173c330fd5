"""Gateway: sounddevice microphone source — implements AudioSource port."""

from __future__ import annotations

import logging
import queue

import numpy as np
import sounddevice as sd

from voice_prompter.l1_entities.errors import ResourceError

log = logging.getLogger('vp.audio')

SAMPLE_RATE = 16000
FRAME_DURATION = 0.1


class SounddeviceAudioSource:
    """Wraps sounddevice.InputStream; the PortAudio callback thread feeds a queue."""

    def __init__(self) -> None:
        self._stream: sd.InputStream | None = None
        self._queue: queue.Queue[np.ndarray] = queue.Queue()

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self, sample_rate: int = SAMPLE_RATE, channels: int = 1, frame_duration: float = FRAME_DURATION) -> None:
        def _callback(indata, frames, time_info, status):
            if status:
                log.debug('Input stream status: %s', status)
            self._queue.put(indata.copy())

        self._drain()
        try:
            self._stream = sd.InputStream(
                samplerate=sample_rate,
                channels=channels,
                dtype='float32',
                blocksize=int(sample_rate * frame_duration),
                callback=_callback,
            )
            self._stream.start()
        except sd.PortAudioError as e:
            self._stream = None
            raise ResourceError(f'Microphone unavailable: {e}') from e
        log.info('Microphone opened: %d Hz, %d ch, %.0f ms frames', sample_rate, channels, frame_duration * 1000)

    def read(self, timeout: float = 0.1) -> np.ndarray | None:
        try:
            return self._queue.get(timeout=timeout).flatten()
        except queue.Empty:
            return None

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        self._drain()

    def _drain(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
