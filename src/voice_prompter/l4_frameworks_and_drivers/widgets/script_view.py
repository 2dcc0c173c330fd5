"""Script view — scrollable script text with spacers, match highlight and user-scroll detection."""

from __future__ import annotations

import time

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.events import MouseScrollDown, MouseScrollUp
from textual.message import Message
from textual.timer import Timer
from textual.widgets import Static

from voice_prompter.l1_entities.events import ScrollCommand


class ScriptView(VerticalScroll):
    """Teleprompter surface.

    Scroll offsets exchanged with the coordinator are ``-scroll_y``: content
    moving up is negative. A top spacer of ``2 × bias`` viewport heights puts
    the line at scroll offset ``y - bias × viewport`` at the bias line, and a
    full-viewport bottom spacer lets the last line reach it.
    """

    DEFAULT_CSS = """
    ScriptView {
        border: solid $primary;
        scrollbar-size: 1 1;
    }
    ScriptView:focus {
        border: solid $accent;
    }
    ScriptView > #script-text {
        width: 100%;
    }
    """

    SETTLE_DELAY = 0.3
    AUTO_SCROLL_TICK = 1 / 30

    class ManualScroll(Message):
        """Posted once the user has stopped scrolling the view by hand."""

        def __init__(self, scroll_offset: float) -> None:
            super().__init__()
            self.scroll_offset = scroll_offset

    class AutoScrollStopped(Message):
        """Posted when timed scrolling stops by itself: ``reason`` is ``'end'`` or ``'user'``."""

        def __init__(self, reason: str) -> None:
            super().__init__()
            self.reason = reason

    def __init__(self, margin: int = 2, **kwargs) -> None:
        super().__init__(**kwargs)
        self._margin = margin
        self._plain_text = ''
        self._highlight: tuple[int, int] | None = None
        self._search: tuple[int, int] | None = None
        self._last_sequence = 0
        self._settle_timer: Timer | None = None
        self._auto_timer: Timer | None = None
        self._auto_rate = 0.0
        self._auto_y = 0.0
        self._auto_last = 0.0

    def compose(self) -> ComposeResult:
        yield Static('', id='script-top-spacer')
        yield Static('', id='script-text')
        yield Static('', id='script-bottom-spacer')

    def on_mount(self) -> None:
        self.query_one('#script-text', Static).styles.padding = (0, self._margin)

    # --- Content ---

    @property
    def plain_text(self) -> str:
        return self._plain_text

    @property
    def highlight_range(self) -> tuple[int, int] | None:
        return self._highlight

    def set_script(self, plain_text: str) -> None:
        self._plain_text = plain_text
        self._highlight = None
        self._search = None
        self._last_sequence = 0
        self.stop_auto_scroll()
        self._render_text()

    def set_highlight(self, char_start: int, char_end: int) -> None:
        self._highlight = (char_start, char_end)
        self._render_text()

    def clear_highlight(self) -> None:
        self._highlight = None
        self._render_text()

    def set_search_match(self, start: int | None, length: int = 0) -> None:
        self._search = None if start is None else (start, start + length)
        self._render_text()

    def _render_text(self) -> None:
        text = Text(self._plain_text)
        if self._highlight is not None:
            start, end = self._highlight
            text.stylize('dim', 0, start)
            text.stylize('bold reverse', start, end)
        if self._search is not None:
            text.stylize('black on yellow', *self._search)
        self.query_one('#script-text', Static).update(text)

    # --- Geometry ---

    @property
    def content_height(self) -> int:
        """Rendered rows of script text, spacers excluded."""
        return self.query_one('#script-text', Static).size.height

    @property
    def text_columns(self) -> int:
        return self.query_one('#script-text', Static).content_size.width

    @property
    def viewport_height(self) -> int:
        return self.scrollable_content_region.height

    def update_spacers(self, bias: float) -> None:
        viewport = self.viewport_height
        self.query_one('#script-top-spacer', Static).styles.height = max(0, round(2 * bias * viewport))
        self.query_one('#script-bottom-spacer', Static).styles.height = viewport

    # --- Scrolling ---

    @property
    def prompter_scroll_y(self) -> float:
        return -float(self.scroll_y)

    def apply_scroll(self, command: ScrollCommand) -> bool:
        """Animate to *command*; commands older than the newest one applied are dropped."""
        if command.sequence <= self._last_sequence:
            return False
        self._last_sequence = command.sequence
        self.scroll_to(
            y=max(0.0, -command.target_scroll_y),
            animate=command.duration_ms > 0,
            duration=command.duration_ms / 1000,
            easing=command.easing,
            force=True,
        )
        return True

    def on_mouse_scroll_down(self, event: MouseScrollDown) -> None:
        self._user_scrolled()

    def on_mouse_scroll_up(self, event: MouseScrollUp) -> None:
        self._user_scrolled()

    def action_scroll_up(self) -> None:
        self._user_scrolled()
        super().action_scroll_up()

    def action_scroll_down(self) -> None:
        self._user_scrolled()
        super().action_scroll_down()

    def action_page_up(self) -> None:
        self._user_scrolled()
        super().action_page_up()

    def action_page_down(self) -> None:
        self._user_scrolled()
        super().action_page_down()

    def _user_scrolled(self) -> None:
        if self.auto_scrolling:
            self.stop_auto_scroll()
            self.post_message(self.AutoScrollStopped('user'))
        if self._settle_timer is not None:
            self._settle_timer.stop()
        self._settle_timer = self.set_timer(self.SETTLE_DELAY, self._settled)

    def _settled(self) -> None:
        self._settle_timer = None
        self.post_message(self.ManualScroll(self.prompter_scroll_y))

    # --- Timed scrolling ---

    @property
    def auto_scrolling(self) -> bool:
        return self._auto_timer is not None

    def start_auto_scroll(self, rows_per_second: float) -> bool:
        """Scroll linearly toward the end of the script. Returns False when there is nowhere to go."""
        if rows_per_second <= 0 or self.scroll_y >= self.max_scroll_y:
            return False
        self.stop_auto_scroll()
        self._auto_rate = rows_per_second
        self._auto_y = float(self.scroll_y)
        self._auto_last = time.monotonic()
        self._auto_timer = self.set_interval(self.AUTO_SCROLL_TICK, self._auto_tick)
        return True

    def set_auto_scroll_rate(self, rows_per_second: float) -> None:
        self._auto_rate = rows_per_second

    def stop_auto_scroll(self) -> None:
        if self._auto_timer is not None:
            self._auto_timer.stop()
            self._auto_timer = None

    def _auto_tick(self) -> None:
        now = time.monotonic()
        self._auto_y = min(float(self.max_scroll_y), self._auto_y + self._auto_rate * (now - self._auto_last))
        self._auto_last = now
        self.scroll_to(y=self._auto_y, animate=False, force=True, immediate=True)
        if self._auto_y >= self.max_scroll_y:
            self.stop_auto_scroll()
            self.post_message(self.AutoScrollStopped('end'))
