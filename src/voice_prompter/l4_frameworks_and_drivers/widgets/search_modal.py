"""Search modal — text input for jumping to a phrase in the script."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Static


class SearchModal(ModalScreen[str | None]):
    """Modal that prompts for a search query. Enter → return text, Escape → None."""

    DEFAULT_CSS = """
    SearchModal {
        align: center middle;
    }

    SearchModal > Vertical {
        width: 60;
        height: auto;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    SearchModal > Vertical > #search-title {
        text-style: bold;
        margin-bottom: 1;
    }

    SearchModal > Vertical > #search-hint {
        color: $text-muted;
        margin-top: 1;
        text-align: center;
    }
    """

    BINDINGS = [('escape', 'cancel', 'Cancel')]

    def __init__(self, last_query: str = '', **kwargs) -> None:
        super().__init__(**kwargs)
        self._last_query = last_query

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static('Search script', id='search-title')
            yield Input(
                value=self._last_query,
                placeholder='Phrase to jump to...',
                id='search-input',
            )
            yield Static('Enter to jump · n for next match · Escape to cancel', id='search-hint')

    def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        self.dismiss(text if text else None)

    def action_cancel(self) -> None:
        self.dismiss(None)
