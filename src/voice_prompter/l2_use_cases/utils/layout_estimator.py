"""Predictive text layout — maps a character offset to a scroll offset and back without rendering."""

from __future__ import annotations

import math
from functools import lru_cache

from voice_prompter.l1_entities.layout import LayoutConfig

# Empirical renderer metrics: effective font size is font_size * 8 + 16, and an
# average glyph is 0.32 of that wide.
FONT_SCALE = 8.0
FONT_BASE = 16.0
CHAR_WIDTH_RATIO = 0.32
SIDE_PADDING_LANDSCAPE = 60.0
SIDE_PADDING_PORTRAIT = 24.0
MIN_CHARS_PER_LINE = 10.0

# Absorbs float error when scaling a visual line to a scroll offset and back.
_EPSILON = 1e-9


def effective_char_width(font_size: float) -> float:
    return (font_size * FONT_SCALE + FONT_BASE) * CHAR_WIDTH_RATIO


def side_padding(is_landscape: bool) -> float:
    return SIDE_PADDING_LANDSCAPE if is_landscape else SIDE_PADDING_PORTRAIT


def compute_chars_per_line(config: LayoutConfig) -> float:
    available = config.container_width - 2 * side_padding(config.is_landscape) - 2 * config.margin
    char_width = effective_char_width(config.font_size)
    if char_width <= 0:
        return MIN_CHARS_PER_LINE
    return max(MIN_CHARS_PER_LINE, available / char_width)


@lru_cache(maxsize=8)
def _line_lengths(plain_text: str) -> tuple[int, ...]:
    return tuple(len(line) for line in plain_text.split('\n'))


def _visual_lines(length: int, chars_per_line: float) -> int:
    return max(1, math.ceil(length / chars_per_line))


class LayoutEstimator:
    """Bidirectional char-offset ↔ scroll-offset estimate for wrapped plain text.

    Each source line (split on ``\\n``) wraps into
    ``max(1, ceil(len / chars_per_line))`` visual lines, so blank lines still
    take space. Scroll offsets are negative: the content moves upward. The
    total content height is measured by the caller and passed in.
    """

    def __init__(self, config: LayoutConfig) -> None:
        self._config = config
        self._chars_per_line: float | None = None

    @property
    def config(self) -> LayoutConfig:
        return self._config

    @config.setter
    def config(self, value: LayoutConfig) -> None:
        if value != self._config:
            self._config = value
            self._chars_per_line = None

    @property
    def chars_per_line(self) -> float:
        if self._chars_per_line is None:
            self._chars_per_line = compute_chars_per_line(self._config)
        return self._chars_per_line

    def total_visual_lines(self, plain_text: str) -> int:
        cpl = self.chars_per_line
        return sum(_visual_lines(length, cpl) for length in _line_lengths(plain_text))

    def visual_line_of(self, char_index: int, plain_text: str) -> int:
        """Visual line holding *char_index*. A line's trailing newline belongs to it."""
        cpl = self.chars_per_line
        char_index = max(0, char_index)
        line_count = 0
        line_start = 0
        for length in _line_lengths(plain_text):
            visual = _visual_lines(length, cpl)
            segment_end = line_start + length + 1
            if line_start <= char_index < segment_end:
                offset = min(max(0, char_index - line_start), length)
                return line_count + min(math.floor(offset / cpl), visual - 1)
            line_count += visual
            line_start = segment_end
        return max(0, line_count - 1)

    def scroll_from_char(self, char_index: int, plain_text: str, content_height: float) -> float:
        """Scroll offset that brings the visual line of *char_index* to the top of the content."""
        if not plain_text or content_height <= 0:
            return 0.0
        total = self.total_visual_lines(plain_text)
        target = self.visual_line_of(char_index, plain_text)
        progress = min(1.0, target / total)
        return -(progress * content_height)

    def char_from_scroll(self, scroll_y: float, plain_text: str, content_height: float) -> int:
        """Character offset at the start of the visual line shown at *scroll_y*."""
        if not plain_text or content_height <= 0:
            return 0
        cpl = self.chars_per_line
        total = self.total_visual_lines(plain_text)
        progress = min(1.0, abs(scroll_y) / content_height)
        target = math.floor(progress * total + _EPSILON * total)

        line_count = 0
        line_start = 0
        for length in _line_lengths(plain_text):
            visual = _visual_lines(length, cpl)
            if line_count + visual > target:
                into = target - line_count
                return line_start + min(math.ceil(into * cpl - _EPSILON), length)
            line_count += visual
            line_start += length + 1
        return len(plain_text)
