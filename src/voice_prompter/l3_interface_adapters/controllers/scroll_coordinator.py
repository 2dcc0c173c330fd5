"""ScrollCoordinator — wires transport, matcher and layout estimator; drives the presenter."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from voice_prompter.l1_entities.errors import ConfigError, VoicePrompterError
from voice_prompter.l1_entities.events import (
    HighlightUpdate,
    MatchResult,
    Ready,
    ScrollCommand,
    TranscriptReceived,
    TransportEvent,
    TransportFailed,
)
from voice_prompter.l1_entities.layout import LayoutConfig
from voice_prompter.l2_use_cases.align_transcript_use_case import AlignTranscriptUseCase
from voice_prompter.l2_use_cases.ports.scroll_presenter import ScrollPresenter
from voice_prompter.l2_use_cases.ports.transcription_transport import TranscriptionTransport
from voice_prompter.l2_use_cases.utils.layout_estimator import LayoutEstimator

log = logging.getLogger('vp.coordinator')


class ScrollCoordinator:
    """Central orchestrator for voice-synced scrolling.

    Owns the user-override flag, the viewport geometry and the voice-sync
    episode state. The transport is injected; the coordinator owns its
    lifecycle from ``start_voice_sync()`` to ``aclose()``. Each cursor change
    and the scroll command it causes happen in one synchronous step.
    """

    def __init__(
        self,
        transport: TranscriptionTransport,
        matcher: AlignTranscriptUseCase,
        estimator: LayoutEstimator,
        presenter: ScrollPresenter,
        *,
        bias: float = 0.3,
        duration_ms: int = 500,
        easing: str = 'out_quad',
        inactivity_timeout: float = 10.0,
        watchdog_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._matcher = matcher
        self._estimator = estimator
        self._presenter = presenter
        self._bias = bias
        self._duration_ms = duration_ms
        self._easing = easing
        self._inactivity_timeout = inactivity_timeout
        self._watchdog_interval = watchdog_interval
        self._clock = clock

        self.override = False
        self.voice_sync_active = False
        self.content_height = 0.0
        self.container_height = 0.0

        self._sequence = 0
        self._last_transcript_at = 0.0
        self._stalled = False
        self._failure_reported = False
        self._closed = False
        self._pump_task: asyncio.Task | None = None
        self._watchdog_task: asyncio.Task | None = None

    @property
    def transport(self) -> TranscriptionTransport:
        return self._transport

    @property
    def matcher(self) -> AlignTranscriptUseCase:
        return self._matcher

    @property
    def sequence(self) -> int:
        return self._sequence

    # --- Script and geometry ---

    def load_script(self, plain_text: str) -> None:
        self._matcher.load_script(plain_text)
        self.override = False

    def set_layout(self, layout: LayoutConfig) -> None:
        self._estimator.config = layout

    def set_viewport(self, content_height: float, container_height: float) -> None:
        self.content_height = content_height
        self.container_height = container_height

    def scroll_target_for(self, char_offset: int) -> float:
        """Scroll offset that puts *char_offset* at the bias line of the viewport."""
        base = self._estimator.scroll_from_char(char_offset, self._matcher.plain_text, self.content_height)
        return base - self._bias * self.container_height

    # --- Automatic path ---

    def on_transcript(self, text: str) -> MatchResult | None:
        self._last_transcript_at = self._clock()
        self._stalled = False
        result = self._matcher.update(text, override=self.override)
        if result is not None:
            self.override = False
            self.on_match_advance(result)
        return result

    def on_match_advance(self, result: MatchResult) -> None:
        self._presenter.highlight(
            HighlightUpdate(
                matched_word_index=result.word_index,
                char_start=result.char_start,
                char_end=result.char_end,
            )
        )
        self._emit_scroll(self.scroll_target_for(result.char_start), result.word_index)

    # --- Manual path ---

    def on_manual_scroll(self, end_offset_y: float) -> int:
        """Re-seed the cursor from where the user left the view. Returns the new cursor."""
        adjusted = min(0.0, end_offset_y + self._bias * self.container_height)
        char_offset = self._estimator.char_from_scroll(adjusted, self._matcher.plain_text, self.content_height)
        self._matcher.set_cursor(self._matcher.word_at_or_before(char_offset))
        self.override = True
        log.debug('Manual scroll to %.1f → char %d, cursor %d', end_offset_y, char_offset, self._matcher.cursor)
        return self._matcher.cursor

    def on_search_jump(self, char_offset: int) -> None:
        self._matcher.set_cursor(self._matcher.words_before(char_offset))
        self.override = True
        log.debug('Search jump to char %d, cursor %d', char_offset, self._matcher.cursor)
        self._emit_scroll(self.scroll_target_for(char_offset), self._matcher.cursor)

    def rewind(self) -> None:
        self._matcher.reset()
        self.override = False
        self._presenter.highlight(HighlightUpdate.cleared())
        self._emit_scroll(0.0, 0)

    def advance_to_end(self) -> None:
        self._matcher.advance_to_end()
        if self._matcher.words:
            word = self._matcher.entry(self._matcher.cursor)
            self._presenter.highlight(
                HighlightUpdate(
                    matched_word_index=self._matcher.cursor,
                    char_start=word.char_start,
                    char_end=word.char_end,
                )
            )
        self._emit_scroll(-self.content_height, self._matcher.cursor)

    # --- Voice sync lifecycle ---

    async def start_voice_sync(self, current_scroll_y: float = 0.0) -> bool:
        """Begin a voice-sync episode. Returns False if the transport refused to start."""
        if self._closed or self.voice_sync_active:
            return self.voice_sync_active

        if not self.override:
            if current_scroll_y < 0:
                self.on_manual_scroll(current_scroll_y)
            else:
                self._matcher.reset()

        self._failure_reported = False
        self._stalled = False
        self._last_transcript_at = self._clock()
        self.voice_sync_active = True
        self._ensure_pump()

        try:
            await self._transport.start()
        except ConfigError as e:
            # Already queued as TransportFailed; the pump reports it.
            log.warning('Voice sync unavailable: %s', e)
            self.voice_sync_active = False
            return False

        self._watchdog_task = asyncio.create_task(self._watchdog(), name='vp-inactivity')
        log.info('Voice sync started at cursor %d (override=%s)', self._matcher.cursor, self.override)
        return True

    async def stop_voice_sync(self) -> None:
        self.voice_sync_active = False
        await self._cancel_watchdog()
        await self._transport.stop()
        log.info('Voice sync stopped at cursor %d', self._matcher.cursor)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        active = self.voice_sync_active
        self.voice_sync_active = False
        await self._cancel_watchdog()
        if active or self._pump_task is not None:
            await self._transport.stop()
        if self._pump_task is not None:
            self._pump_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._pump_task
            self._pump_task = None

    # --- Events ---

    def handle_event(self, event: TransportEvent) -> None:
        if isinstance(event, Ready):
            self._last_transcript_at = self._clock()
            self._stalled = False
            self._presenter.voice_sync_ready()
        elif isinstance(event, TranscriptReceived):
            if self.voice_sync_active:
                self.on_transcript(event.text)
        elif isinstance(event, TransportFailed):
            self._on_failure(event.error)

    def check_inactivity(self, now: float) -> bool:
        """Report one stall per silent stretch. Returns True when a stall was reported."""
        if not self.voice_sync_active or self._stalled:
            return False
        if now - self._last_transcript_at < self._inactivity_timeout:
            return False
        self._stalled = True
        log.info('No transcript for %.0fs', now - self._last_transcript_at)
        self._presenter.voice_sync_stalled()
        return True

    async def run(self) -> None:
        async for event in self._transport.events():
            self.handle_event(event)

    def _on_failure(self, error: VoicePrompterError) -> None:
        if self._failure_reported:
            log.debug('Duplicate transport failure ignored: %s', error)
            return
        self._failure_reported = True
        self.voice_sync_active = False
        if self._watchdog_task is not None:
            self._watchdog_task.cancel()
            self._watchdog_task = None
        log.warning('Voice sync failed: %s', error)
        self._presenter.voice_sync_failed(error)

    def _emit_scroll(self, target: float, word_index: int) -> None:
        self._sequence += 1
        self._presenter.scroll_to(
            ScrollCommand(
                target_scroll_y=target,
                duration_ms=self._duration_ms,
                easing=self._easing,
                word_index=word_index,
                sequence=self._sequence,
            )
        )

    def _ensure_pump(self) -> None:
        if self._pump_task is None or self._pump_task.done():
            self._pump_task = asyncio.create_task(self.run(), name='vp-events')

    async def _watchdog(self) -> None:
        while self.voice_sync_active:
            await asyncio.sleep(self._watchdog_interval)
            self.check_inactivity(self._clock())

    async def _cancel_watchdog(self) -> None:
        task, self._watchdog_task = self._watchdog_task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
