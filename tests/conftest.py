"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import numpy as np
import pytest
from websockets.exceptions import ConnectionClosedError

from voice_prompter.l1_entities.config import AppConfig
from voice_prompter.l1_entities.connection_state import ConnectionState
from voice_prompter.l1_entities.errors import ConfigError, ResourceError, VoicePrompterError
from voice_prompter.l1_entities.events import (
    HighlightUpdate,
    ScrollCommand,
    TransportEvent,
    TransportFailed,
)
from voice_prompter.l4_frameworks_and_drivers.infra_config import build_app_config

SAMPLE_SCRIPT = 'Hello everyone welcome to our presentation today'
FOUR_LINE_SCRIPT = 'line one\nline two\nline three\nline four'

# --- Protocol-conforming Fakes ---


class FakeAudioSource:
    """Fake microphone — implements AudioSource protocol. Frames are fed by the test."""

    def __init__(self, chunks: list[np.ndarray] | None = None, *, fail_open: bool = False) -> None:
        self._chunks = list(chunks or [])
        self._fail_open = fail_open
        self.open_calls: list[tuple[int, int, float]] = []
        self.close_calls: int = 0
        self.read_count: int = 0
        self._read_error: VoicePrompterError | None = None

    def feed(self, chunk: np.ndarray) -> None:
        self._chunks.append(chunk)

    @property
    def pending(self) -> int:
        return len(self._chunks)

    def open(self, sample_rate: int, channels: int, frame_duration: float) -> None:
        if self._fail_open:
            raise ResourceError('Microphone permission denied')
        self.open_calls.append((sample_rate, channels, frame_duration))

    def fail_reads(self, error: VoicePrompterError) -> None:
        """Make every later read raise *error*, like an unplugged device."""
        self._read_error = error

    def read(self, timeout: float = 0.1) -> np.ndarray | None:
        if self._read_error is not None:
            raise self._read_error
        if not self._chunks:
            time.sleep(min(timeout, 0.005))
            return None
        self.read_count += 1
        return self._chunks.pop(0)

    def close(self) -> None:
        self.close_calls += 1


_CLOSED = object()


class FakeProviderSocket:
    """Scripted stand-in for a websockets client connection."""

    def __init__(self, *, begin_id: str | None = None) -> None:
        self._incoming: asyncio.Queue = asyncio.Queue()
        self.sent: list[str | bytes] = []
        self.closed = False
        if begin_id is not None:
            self.push({'type': 'Begin', 'id': begin_id})

    def push(self, message: dict) -> None:
        self._incoming.put_nowait(json.dumps(message))

    def push_raw(self, raw: str) -> None:
        self._incoming.put_nowait(raw)

    def drop(self) -> None:
        """Simulate the provider going away without a close handshake."""
        self._incoming.put_nowait(_CLOSED)

    @property
    def audio_frames(self) -> list[bytes]:
        return [m for m in self.sent if isinstance(m, bytes)]

    @property
    def text_messages(self) -> list[dict]:
        return [json.loads(m) for m in self.sent if isinstance(m, str)]

    async def recv(self) -> str:
        item = await self._incoming.get()
        if item is _CLOSED or self.closed:
            self.closed = True
            raise ConnectionClosedError(None, None)
        return item

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while True:
            try:
                yield await self.recv()
            except ConnectionClosedError:
                return

    async def send(self, message: str | bytes) -> None:
        if self.closed:
            raise ConnectionClosedError(None, None)
        self.sent.append(message)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSED)


class FakeConnector:
    """Replaces ``websockets.asyncio.client.connect``. Plays back sockets or exceptions in order."""

    def __init__(self, *outcomes: FakeProviderSocket | Exception) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[tuple[str, dict]] = []

    def queue(self, *outcomes: FakeProviderSocket | Exception) -> None:
        self._outcomes.extend(outcomes)

    async def __call__(self, url: str, *, additional_headers: dict | None = None) -> FakeProviderSocket:
        self.calls.append((url, dict(additional_headers or {})))
        if not self._outcomes:
            raise OSError('Connection refused')
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    """Records requested backoff delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class RecordingPresenter:
    """Fake ScrollPresenter — records every call."""

    def __init__(self) -> None:
        self.scrolls: list[ScrollCommand] = []
        self.highlights: list[HighlightUpdate] = []
        self.ready_calls: int = 0
        self.stalled_calls: int = 0
        self.failures: list[VoicePrompterError] = []

    def scroll_to(self, command: ScrollCommand) -> None:
        self.scrolls.append(command)

    def highlight(self, update: HighlightUpdate) -> None:
        self.highlights.append(update)

    def voice_sync_ready(self) -> None:
        self.ready_calls += 1

    def voice_sync_stalled(self) -> None:
        self.stalled_calls += 1

    def voice_sync_failed(self, error: VoicePrompterError) -> None:
        self.failures.append(error)


class FakeTransport:
    """Fake TranscriptionTransport — the test pushes events with ``emit``."""

    def __init__(self, *, missing_credential: bool = False) -> None:
        self._missing_credential = missing_credential
        self._state = ConnectionState.IDLE
        self._events: asyncio.Queue[TransportEvent] = asyncio.Queue()
        self.start_calls: int = 0
        self.stop_calls: int = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def start(self) -> None:
        self.start_calls += 1
        if self._missing_credential:
            err = ConfigError('Transcription provider API key is not set')
            self._events.put_nowait(TransportFailed(err))
            raise err
        self._state = ConnectionState.STREAMING

    async def stop(self) -> None:
        self.stop_calls += 1
        self._state = ConnectionState.IDLE

    async def events(self) -> AsyncIterator[TransportEvent]:
        while True:
            yield await self._events.get()

    def emit(self, event: TransportEvent) -> None:
        if isinstance(event, TransportFailed):
            self._state = ConnectionState.ERROR
        self._events.put_nowait(event)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until *predicate* holds; fail the test on timeout."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError('condition not reached before timeout')
        await asyncio.sleep(0.005)


async def next_event(events: AsyncIterator[TransportEvent], timeout: float = 2.0) -> TransportEvent:
    return await asyncio.wait_for(anext(events), timeout)


# --- Standard Fixtures ---


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
transcription:
  sample_rate: 48000
  connect_timeout: 5
matcher:
  lookahead: 12
scroll:
  bias: 0.25
  inactivity_timeout: 20
provider:
  api_key: "from-yaml"
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p


@pytest.fixture
def script_file(tmp_path: Path) -> Path:
    p = tmp_path / 'talk.txt'
    p.write_text(FOUR_LINE_SCRIPT, encoding='utf-8')
    return p


@pytest.fixture
def fake_audio() -> FakeAudioSource:
    return FakeAudioSource()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def recording_presenter() -> RecordingPresenter:
    return RecordingPresenter()
