"""Gateway: plain-text script file loader — implements ScriptSource port."""

from __future__ import annotations

from pathlib import Path


class TextFileScriptSource:
    """Reads a UTF-8 script file. A leading BOM is dropped."""

    def load(self, ref: str) -> str:
        path = Path(ref)
        if not path.is_file():
            raise FileNotFoundError(f'Script file not found: {path}')
        return path.read_text(encoding='utf-8-sig')
