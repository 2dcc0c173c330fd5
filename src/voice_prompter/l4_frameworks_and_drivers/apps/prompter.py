"""PrompterApp — teleprompter TUI: script view, voice sync, timed scrolling, search and manual scrolling."""

from __future__ import annotations

import logging

from textual.app import App as TextualApp
from textual.app import ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from voice_prompter.l1_entities.config import AppConfig
from voice_prompter.l1_entities.layout import LayoutConfig
from voice_prompter.l2_use_cases.search_script_use_case import SearchCursor, SearchMatch
from voice_prompter.l2_use_cases.utils.layout_estimator import effective_char_width, side_padding
from voice_prompter.l2_use_cases.utils.speed import clamp_speed, rows_per_second, speed_to_wpm, step_speed
from voice_prompter.l3_interface_adapters.controllers.scroll_coordinator import ScrollCoordinator
from voice_prompter.l4_frameworks_and_drivers.container import DependencyContainer
from voice_prompter.l4_frameworks_and_drivers.messages import (
    HighlightMoved,
    ScrollRequested,
    VoiceSyncFailed,
    VoiceSyncReady,
    VoiceSyncStalled,
)
from voice_prompter.l4_frameworks_and_drivers.presenter import TextualScrollPresenter
from voice_prompter.l4_frameworks_and_drivers.widgets.script_view import ScriptView
from voice_prompter.l4_frameworks_and_drivers.widgets.search_modal import SearchModal
from voice_prompter.l4_frameworks_and_drivers.widgets.status_bar import StatusBar

log = logging.getLogger('vp.app')


class PrompterApp(TextualApp):
    """Teleprompter shell. All scroll decisions are delegated to the ScrollCoordinator."""

    CSS_PATH = 'app.tcss'

    BINDINGS = [
        Binding('q', 'quit_app', 'Quit'),
        Binding('v', 'toggle_voice', 'Voice'),
        Binding('space', 'toggle_play', 'Play/Pause'),
        Binding('plus', 'faster', 'Faster', show=False),
        Binding('minus', 'slower', 'Slower', show=False),
        Binding('r', 'rewind', 'Rewind'),
        Binding('e', 'jump_end', 'End'),
        Binding('slash', 'search', 'Search'),
        Binding('n', 'next_match', 'Next', show=False),
        Binding('N', 'previous_match', 'Previous', show=False),
    ]

    def __init__(
        self,
        config: AppConfig,
        plain_text: str,
        title: str = '',
        container: DependencyContainer | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._config = config
        self._plain_text = plain_text
        self._script_title = title

        _container = container or DependencyContainer(config)
        self._coordinator: ScrollCoordinator = _container.build_coordinator(TextualScrollPresenter(self))
        self._search = SearchCursor()
        self._last_query = ''
        self._speed = clamp_speed(config.scroll.speed)
        self._voice_busy = False

    @property
    def coordinator(self) -> ScrollCoordinator:
        return self._coordinator

    @property
    def wpm(self) -> int:
        return speed_to_wpm(self._speed)

    def compose(self) -> ComposeResult:
        header = '  voice-prompter'
        if self._script_title:
            header += f' | {self._script_title}'
        yield Static(header, id='header')
        yield ScriptView(margin=int(self._config.display.margin), id='script-view')
        yield StatusBar(id='status-bar')

    def on_mount(self) -> None:
        self._coordinator.load_script(self._plain_text)
        view = self.query_one('#script-view', ScriptView)
        view.set_script(self._coordinator.matcher.plain_text)
        view.focus()
        bar = self.query_one('#status-bar', StatusBar)
        bar.keybinding_hints = r'\[v] voice  \[space] play  \[+/-] speed  \[r] rewind  \[e] end  \[/] search  \[q] quit'
        bar.word_count = len(self._coordinator.matcher.words)
        self.call_after_refresh(self._sync_geometry)
        self.set_interval(0.2, self._refresh_status_bar)

    def on_resize(self) -> None:
        self.call_after_refresh(self._sync_geometry)

    def _sync_geometry(self) -> None:
        """Feed the view's measured size into the layout estimate and the coordinator."""
        view = self.query_one('#script-view', ScriptView)
        view.update_spacers(self._config.scroll.bias)

        display = self._config.display
        char_width = effective_char_width(display.font_size)
        margin = display.margin * char_width
        container_width = view.text_columns * char_width + 2 * margin + 2 * side_padding(False)
        self._coordinator.set_layout(
            LayoutConfig(font_size=display.font_size, container_width=container_width, margin=margin)
        )
        self._coordinator.set_viewport(view.content_height, view.viewport_height)
        log.debug(
            'Geometry: %d cols, %d content rows, %d viewport rows',
            view.text_columns,
            view.content_height,
            view.viewport_height,
        )

    def _refresh_status_bar(self) -> None:
        try:
            bar = self.query_one('#status-bar', StatusBar)
            view = self.query_one('#script-view', ScriptView)
        except Exception:  # noqa: S110 -- TUI race guard; widget may not exist during shutdown  # pragma: no cover
            return
        coordinator = self._coordinator
        bar.connection = coordinator.transport.state.value
        bar.voice_active = coordinator.voice_sync_active
        bar.override = coordinator.override
        bar.cursor = coordinator.matcher.cursor
        bar.timed_wpm = self.wpm if view.auto_scrolling else 0

    def _timed_rate(self, view: ScriptView) -> float:
        return rows_per_second(self.wpm, view.content_height, len(self._coordinator.matcher.words))

    def _pause_timed(self) -> None:
        self.query_one('#script-view', ScriptView).stop_auto_scroll()

    # --- Message Handlers ---

    def on_scroll_requested(self, message: ScrollRequested) -> None:
        self.query_one('#script-view', ScriptView).apply_scroll(message.command)
        self._refresh_status_bar()

    def on_highlight_moved(self, message: HighlightMoved) -> None:
        update = message.update
        view = self.query_one('#script-view', ScriptView)
        if update.is_cleared:
            view.clear_highlight()
        else:
            view.set_highlight(update.char_start, update.char_end)

    def on_voice_sync_ready(self, message: VoiceSyncReady) -> None:
        self.query_one('#status-bar', StatusBar).stalled = False
        self.notify('Listening: start reading', timeout=3)

    def on_voice_sync_stalled(self, message: VoiceSyncStalled) -> None:
        if not self._coordinator.voice_sync_active:
            return
        self.query_one('#status-bar', StatusBar).stalled = True
        timeout = self._config.scroll.inactivity_timeout
        self.notify(
            f'No speech detected for {timeout:.0f}s, switched to manual scrolling (space plays timed)',
            severity='warning',
            timeout=8,
        )
        self._run_voice_worker(start=False)

    def on_voice_sync_failed(self, message: VoiceSyncFailed) -> None:
        log.error('Voice sync failed (%s): %s', message.kind, message.error)
        self.notify(f'Voice sync off: {message.error}', severity='error', timeout=10)
        self._refresh_status_bar()

    def on_script_view_manual_scroll(self, message: ScriptView.ManualScroll) -> None:
        self._coordinator.on_manual_scroll(message.scroll_offset)
        self._refresh_status_bar()

    def on_script_view_auto_scroll_stopped(self, message: ScriptView.AutoScrollStopped) -> None:
        if message.reason == 'end':
            self.notify('End of script', timeout=3)
        self._refresh_status_bar()

    # --- Workers ---

    def _run_voice_worker(self, *, start: bool) -> None:
        if self._voice_busy:
            return
        self._voice_busy = True

        async def _voice_task() -> None:
            try:
                if start:
                    view = self.query_one('#script-view', ScriptView)
                    view.stop_auto_scroll()
                    self.query_one('#status-bar', StatusBar).stalled = False
                    await self._coordinator.start_voice_sync(view.prompter_scroll_y)
                else:
                    await self._coordinator.stop_voice_sync()
            finally:
                self._voice_busy = False
                self._refresh_status_bar()

        self.run_worker(_voice_task, exclusive=True, group='voice')

    # --- Actions ---

    def action_toggle_voice(self) -> None:
        self._run_voice_worker(start=not self._coordinator.voice_sync_active)

    def action_toggle_play(self) -> None:
        view = self.query_one('#script-view', ScriptView)
        if view.auto_scrolling:
            view.stop_auto_scroll()
        elif self._coordinator.voice_sync_active:
            self.notify('Voice sync is driving the scroll, press v to stop it first', timeout=3)
        elif not view.start_auto_scroll(self._timed_rate(view)):
            self.notify('End of script', timeout=3)
        self._refresh_status_bar()

    def action_faster(self) -> None:
        self._change_speed(1)

    def action_slower(self) -> None:
        self._change_speed(-1)

    def _change_speed(self, steps: int) -> None:
        self._speed = step_speed(self._speed, steps)
        view = self.query_one('#script-view', ScriptView)
        if view.auto_scrolling:
            view.set_auto_scroll_rate(self._timed_rate(view))
        else:
            self.notify(f'Timed speed: {self.wpm} wpm', timeout=2)
        self._refresh_status_bar()

    def action_rewind(self) -> None:
        self._pause_timed()
        self._coordinator.rewind()

    def action_jump_end(self) -> None:
        self._pause_timed()
        self._coordinator.advance_to_end()

    def action_search(self) -> None:
        self.push_screen(SearchModal(last_query=self._last_query), callback=self._on_search_result)

    def _on_search_result(self, query: str | None) -> None:
        if not query:
            return
        self._last_query = query
        match = self._search.search(self._coordinator.matcher.plain_text, query)
        if match is None:
            self.query_one('#script-view', ScriptView).set_search_match(None)
            self.query_one('#status-bar', StatusBar).search_label = ''
            self.notify(f'No match for "{query}"', severity='warning', timeout=3)
            return
        self._jump_to_match(match)

    def action_next_match(self) -> None:
        match = self._search.next()
        if match is None:
            self.notify('No active search, press / to search', timeout=3)
            return
        self._jump_to_match(match)

    def action_previous_match(self) -> None:
        match = self._search.previous()
        if match is None:
            return
        self._jump_to_match(match)

    def _jump_to_match(self, match: SearchMatch) -> None:
        self._pause_timed()
        self.query_one('#script-view', ScriptView).set_search_match(match.start, match.length)
        self._coordinator.on_search_jump(match.start)
        bar = self.query_one('#status-bar', StatusBar)
        bar.search_label = f'"{self._last_query}" {self._search.position + 1}/{len(self._search.matches)}'

    async def action_quit_app(self) -> None:
        await self._coordinator.aclose()
        self.exit()

    async def on_unmount(self) -> None:
        await self._coordinator.aclose()
