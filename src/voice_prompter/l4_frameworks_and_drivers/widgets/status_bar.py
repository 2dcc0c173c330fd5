"""Status bar — bottom bar showing connection state, scroll mode, cursor and keybinding hints."""

from __future__ import annotations

from rich.cells import cell_len
from textual.reactive import reactive
from textual.widgets import Static

_CONNECTION_ICONS = {
    'idle': '○ Off',
    'connecting': '⟳ Connecting',
    'streaming': '● Live',
    'stopping': '⟳ Stopping',
    'error': '✗ Error',
}


class StatusBar(Static):
    """Bottom status bar with voice-sync state, cursor progress, and keybinding hints."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: auto;
        background: $surface;
        color: $text;
        padding: 0 1;
        overflow: hidden hidden;
    }
    """

    connection: reactive[str] = reactive('idle')
    voice_active: reactive[bool] = reactive(False)
    stalled: reactive[bool] = reactive(False)
    timed_wpm: reactive[int] = reactive(0)
    override: reactive[bool] = reactive(False)
    cursor: reactive[int] = reactive(0)
    word_count: reactive[int] = reactive(0)
    search_label: reactive[str] = reactive('')
    keybinding_hints: reactive[str] = reactive('')

    def _mode_label(self) -> str:
        if not self.voice_active:
            if self.timed_wpm:
                return f'TIMED {self.timed_wpm} wpm'
            return 'MANUAL'
        if self.stalled:
            return 'VOICE (silent)'
        return 'VOICE'

    def render(self) -> str:
        status_icon = _CONNECTION_ICONS.get(self.connection, self.connection)

        left_parts = [self._mode_label(), status_icon]
        if self.word_count:
            left_parts.append(f'word {min(self.cursor + 1, self.word_count)}/{self.word_count}')
        if self.override:
            left_parts.append('↕ manual position')
        if self.search_label:
            left_parts.append(self.search_label)
        left = ' │ '.join(left_parts)

        content_width = (self.size.width or 80) - 2

        hints = self.keybinding_hints
        if hints:
            hints_width = cell_len(hints.replace(r'\[', '['))
            gap = content_width - cell_len(left) - hints_width
            if gap >= 2:
                left = left + ' ' * gap + hints
        return left
