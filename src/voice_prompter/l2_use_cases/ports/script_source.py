"""Port: read-only script text source."""

from __future__ import annotations

from typing import Protocol


class ScriptSource(Protocol):
    """Supplies the plain text of a script."""

    def load(self, ref: str) -> str:
        """Return the plain text for *ref*. Raises FileNotFoundError if unknown."""
        ...
