"""Gateway: websocket streaming transcription transport — implements TranscriptionTransport port."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from typing import Any

import numpy as np
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from voice_prompter.l1_entities.connection_state import ConnectionState
from voice_prompter.l1_entities.errors import (
    ConfigError,
    ConnectError,
    ConnectTimeoutError,
    ProtocolError,
    ProviderError,
    SessionLostError,
    VoicePrompterError,
)
from voice_prompter.l1_entities.events import Ready, TranscriptReceived, TransportEvent, TransportFailed
from voice_prompter.l2_use_cases.ports.audio_source import AudioSource

log = logging.getLogger('vp.transport')

DEFAULT_ENDPOINT = 'wss://streaming.assemblyai.com/v3/ws'
TERMINATE_MESSAGE = json.dumps({'type': 'Terminate'})

Connector = Callable[..., Awaitable[Any]]


def encode_pcm16(frame: np.ndarray) -> bytes:
    """Float32 samples in [-1, 1] → little-endian 16-bit PCM bytes."""
    pcm = np.clip(frame, -1.0, 1.0)
    return (pcm * 32767).astype('<i2').tobytes()


def build_url(endpoint: str, sample_rate: int) -> str:
    return f'{endpoint}?sample_rate={sample_rate}&encoding=pcm_s16le'


def decode_message(raw: str | bytes) -> dict:
    """Provider frame → JSON object. Raises ProtocolError for anything else."""
    try:
        message = json.loads(raw)
    except ValueError as e:
        raise ProtocolError(f'Invalid JSON: {e}') from e
    if not isinstance(message, dict):
        raise ProtocolError(f'Expected a JSON object, got {type(message).__name__}')
    return message


class StreamingTranscriptionTransport:
    """Owns the provider websocket and the microphone for one voice-sync session.

    A supervisor task runs sessions back to back: connect, wait for the
    provider's ``Begin``, then stream audio and relay transcripts until the
    socket closes. Unexpected closes are retried with exponential backoff up
    to ``max_reconnect_attempts``; only the terminal outcome is reported, once,
    through ``events()``.
    """

    def __init__(
        self,
        api_key: str | None,
        audio_source: AudioSource,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        sample_rate: int = 16000,
        frame_duration: float = 0.1,
        connect_timeout: float = 10.0,
        max_reconnect_attempts: int = 5,
        reconnect_base_delay: float = 1.0,
        connector: Connector | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api_key = api_key
        self._audio_source = audio_source
        self._url = build_url(endpoint, sample_rate)
        self._sample_rate = sample_rate
        self._frame_duration = frame_duration
        self._connect_timeout = connect_timeout
        self._max_attempts = max_reconnect_attempts
        self._base_delay = reconnect_base_delay
        self._connector = connector or ws_connect
        self._sleep = sleep

        self._state = ConnectionState.IDLE
        self._events: asyncio.Queue[TransportEvent] = asyncio.Queue()
        self._socket: Any = None
        self._supervisor: asyncio.Task | None = None
        self._cleanup: asyncio.Future | None = None
        self._should_reconnect = False
        self._attempts = 0
        self._has_streamed = False
        self._audio_open = False

    # --- Port interface ---

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        return self._attempts

    async def events(self) -> AsyncIterator[TransportEvent]:
        while True:
            yield await self._events.get()

    async def start(self) -> None:
        if self._state not in (ConnectionState.IDLE, ConnectionState.ERROR):
            log.info('start() ignored in state %s', self._state.value)
            return

        if not self._api_key:
            err = ConfigError('Transcription provider API key is not set')
            self._events.put_nowait(TransportFailed(err))
            raise err

        self._state = ConnectionState.CONNECTING
        self._should_reconnect = True
        self._attempts = 0
        self._has_streamed = False
        self._supervisor = asyncio.create_task(self._supervise(), name='vp-transport')

    async def stop(self) -> None:
        if self._cleanup is not None:
            await asyncio.shield(self._cleanup)
            return
        if self._state in (ConnectionState.IDLE, ConnectionState.ERROR) and self._supervisor is None:
            return

        log.info('Stopping transcription session')
        self._should_reconnect = False
        self._state = ConnectionState.STOPPING
        self._cleanup = asyncio.ensure_future(self._shutdown())
        try:
            await asyncio.shield(self._cleanup)
        finally:
            self._cleanup = None
            self._state = ConnectionState.IDLE

    # --- Session supervision ---

    async def _supervise(self) -> None:
        try:
            with self._microphone():
                await self._stream()
        except SessionLostError as e:
            self._terminate(e, ConnectionState.IDLE)
        except VoicePrompterError as e:
            self._terminate(e, ConnectionState.ERROR)
        finally:
            if asyncio.current_task() is self._supervisor:
                self._supervisor = None

    async def _stream(self) -> None:
        """Run the session loop beside the audio pump; whichever ends first ends both."""
        session = asyncio.create_task(self._session_loop(), name='vp-session')
        pump = asyncio.create_task(self._pump_audio(), name='vp-audio-pump')
        try:
            done, _ = await asyncio.wait((session, pump), return_when=asyncio.FIRST_COMPLETED)
        finally:
            session.cancel()
            pump.cancel()
            outcomes = await asyncio.gather(session, pump, return_exceptions=True)
            if not self._should_reconnect:
                for outcome in outcomes:
                    if isinstance(outcome, Exception):
                        log.debug('Discarded after stop: %r', outcome)
        for task in (session, pump):
            if task in done:
                task.result()

    async def _session_loop(self) -> None:
        last_error: ConnectError | None = None
        while True:
            try:
                await self._run_session()
            except ConnectError as e:
                last_error = e
                log.info('Connection attempt failed: %s', e)
            finally:
                # On stop() the socket is left for _shutdown to terminate gracefully.
                if self._should_reconnect:
                    await self._close_socket(graceful=False)

            if not self._should_reconnect:
                return
            if self._attempts >= self._max_attempts:
                if self._has_streamed:
                    raise SessionLostError('Connection lost and could not be recovered')
                raise last_error or ConnectError('Connection closed before session start')

            self._attempts += 1
            delay = self._base_delay * 2 ** (self._attempts - 1)
            self._state = ConnectionState.CONNECTING
            log.info('Reconnecting in %.1fs (attempt %d/%d)', delay, self._attempts, self._max_attempts)
            await self._sleep(delay)
            if not self._should_reconnect:
                return

    async def _run_session(self) -> None:
        """One connection: handshake + Begin under the connect timeout, then relay until close."""
        self._state = ConnectionState.CONNECTING
        log.info('Connecting (attempt %d)', self._attempts + 1)
        try:
            session_id = await asyncio.wait_for(self._open_session(), timeout=self._connect_timeout)
        except TimeoutError as e:
            raise ConnectTimeoutError(f'No session start within {self._connect_timeout:.0f}s') from e

        self._state = ConnectionState.STREAMING
        self._attempts = 0
        self._has_streamed = True
        log.info('Session started: %s', session_id)
        self._events.put_nowait(Ready(session_id=session_id))

        try:
            async for raw in self._socket:
                self._handle_message(raw)
        except ConnectionClosed as e:
            log.warning('Connection closed abnormally: %s', e)
        else:
            log.info('Connection closed')

    async def _open_session(self) -> str:
        try:
            self._socket = await self._connector(
                self._url,
                additional_headers={'Authorization': self._api_key},
            )
        except (OSError, InvalidHandshake, InvalidURI) as e:
            raise ConnectError(f'Cannot connect to transcription provider: {e}') from e

        while True:
            try:
                raw = await self._socket.recv()
            except ConnectionClosed as e:
                raise ConnectError('Connection closed before session start') from e
            message = self._parse(raw)
            if message is None:
                continue
            if message.get('type') == 'Begin':
                return str(message.get('id', ''))
            if message.get('type') == 'Error' or message.get('error'):
                raise ProviderError(message.get('error') or 'Unknown provider error')

    def _handle_message(self, raw: str | bytes) -> None:
        message = self._parse(raw)
        if message is None:
            return
        kind = message.get('type')
        if kind == 'Turn':
            text = message.get('transcript')
            if text:
                self._events.put_nowait(TranscriptReceived(text=text))
        elif kind == 'Error' or message.get('error'):
            raise ProviderError(message.get('error') or 'Unknown provider error')
        elif kind not in ('Begin', 'Termination'):
            log.debug('Ignoring provider message type %r', kind)

    @staticmethod
    def _parse(raw: str | bytes) -> dict | None:
        try:
            return decode_message(raw)
        except ProtocolError as e:
            log.warning('Malformed provider message dropped: %s', e)
            return None

    def _terminate(self, error: VoicePrompterError, state: ConnectionState) -> None:
        log.error('Transcription session ended: %s', error)
        self._should_reconnect = False
        self._state = state
        self._events.put_nowait(TransportFailed(error))

    # --- Audio ---

    @contextlib.contextmanager
    def _microphone(self) -> Iterator[None]:
        self._audio_source.open(self._sample_rate, 1, self._frame_duration)
        self._audio_open = True
        try:
            yield
        finally:
            self._release_audio()

    def _release_audio(self) -> None:
        if self._audio_open:
            self._audio_open = False
            self._audio_source.close()
            log.info('Microphone released')

    async def _pump_audio(self) -> None:
        """Forward microphone frames while streaming; frames read before Begin are dropped."""
        while True:
            frame = await asyncio.to_thread(self._audio_source.read, self._frame_duration)
            if frame is None:
                continue
            socket = self._socket
            if self._state is not ConnectionState.STREAMING or socket is None:
                continue
            try:
                await socket.send(encode_pcm16(frame))
            except ConnectionClosed:
                log.debug('Audio frame dropped: connection closed')

    # --- Teardown ---

    async def _shutdown(self) -> None:
        supervisor = self._supervisor
        try:
            if supervisor is not None and not supervisor.done():
                supervisor.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await supervisor
        finally:
            self._supervisor = None
            try:
                await self._close_socket(graceful=True)
            finally:
                self._release_audio()

    async def _close_socket(self, *, graceful: bool) -> None:
        socket, self._socket = self._socket, None
        if socket is None:
            return
        if graceful:
            try:
                await socket.send(TERMINATE_MESSAGE)
            except ConnectionClosed:
                log.debug('Terminate not sent: connection already closed')
        try:
            await socket.close()
        except (OSError, ConnectionClosed) as e:
            log.debug('Socket close failed: %s', e)
