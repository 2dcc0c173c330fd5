"""Tests for the predictive layout estimator — char offset ↔ scroll offset."""

from __future__ import annotations

import pytest

from voice_prompter.l1_entities.layout import LayoutConfig
from voice_prompter.l2_use_cases.utils.layout_estimator import (
    MIN_CHARS_PER_LINE,
    LayoutEstimator,
    compute_chars_per_line,
    effective_char_width,
)

# font 3 → effective 40 → 12.8 per char; 304 - 2 * 24 = 256 → 20 chars per line
PORTRAIT_20 = LayoutConfig(font_size=3, container_width=304)
TEXT = 'a' * 45 + '\n\n' + 'b' * 5  # 3 + 1 + 1 visual lines


@pytest.fixture
def estimator() -> LayoutEstimator:
    return LayoutEstimator(PORTRAIT_20)


class TestCharsPerLine:
    def test_char_width(self):
        assert effective_char_width(3) == pytest.approx(12.8)

    def test_portrait(self):
        assert compute_chars_per_line(PORTRAIT_20) == pytest.approx(20.0)

    def test_margin_reduces_width(self):
        config = LayoutConfig(font_size=3, container_width=304, margin=12.8 * 2)
        assert compute_chars_per_line(config) == pytest.approx(16.0)

    @pytest.mark.parametrize('width', [0, -50, 10])
    def test_degenerate_width_floors(self, width):
        assert compute_chars_per_line(LayoutConfig(font_size=3, container_width=width)) == MIN_CHARS_PER_LINE

    def test_non_positive_char_width_floors(self):
        assert compute_chars_per_line(LayoutConfig(font_size=-2, container_width=500)) == MIN_CHARS_PER_LINE

    def test_landscape_change_invalidates_cache(self, estimator):
        assert estimator.chars_per_line == pytest.approx(20.0)
        estimator.config = LayoutConfig(font_size=3, container_width=304, is_landscape=True)
        # 304 - 2 * 60 = 184 → 14.375
        assert estimator.chars_per_line == pytest.approx(14.375)

    def test_width_change_invalidates_cache(self, estimator):
        assert estimator.chars_per_line == pytest.approx(20.0)
        estimator.config = LayoutConfig(font_size=3, container_width=560)
        assert estimator.chars_per_line == pytest.approx(40.0)


class TestForward:
    def test_total_visual_lines(self, estimator):
        assert estimator.total_visual_lines(TEXT) == 5

    def test_blank_line_takes_a_line(self, estimator):
        assert estimator.total_visual_lines('x\n\n\ny') == 4

    @pytest.mark.parametrize(
        ('char_index', 'line'),
        [(0, 0), (19, 0), (25, 1), (44, 2), (45, 2), (46, 3), (47, 4), (51, 4), (52, 4), (10_000, 4), (-5, 0)],
    )
    def test_visual_line_of(self, estimator, char_index, line):
        assert estimator.visual_line_of(char_index, TEXT) == line

    def test_scroll_from_char(self, estimator):
        assert estimator.scroll_from_char(0, TEXT, 500) == 0.0
        assert estimator.scroll_from_char(47, TEXT, 500) == pytest.approx(-400.0)

    def test_scroll_is_never_positive(self, estimator):
        assert all(estimator.scroll_from_char(i, TEXT, 500) <= 0 for i in range(len(TEXT)))

    def test_empty_text(self, estimator):
        assert estimator.scroll_from_char(3, '', 500) == 0.0

    @pytest.mark.parametrize('height', [0, -10])
    def test_non_positive_height(self, estimator, height):
        assert estimator.scroll_from_char(47, TEXT, height) == 0.0


class TestInverse:
    def test_line_starts(self, estimator):
        assert estimator.char_from_scroll(0, TEXT, 500) == 0
        assert estimator.char_from_scroll(-100, TEXT, 500) == 20
        assert estimator.char_from_scroll(-300, TEXT, 500) == 46
        assert estimator.char_from_scroll(-400, TEXT, 500) == 47

    def test_past_end_returns_length(self, estimator):
        assert estimator.char_from_scroll(-5000, TEXT, 500) == len(TEXT)

    def test_empty_and_zero_height(self, estimator):
        assert estimator.char_from_scroll(-100, '', 500) == 0
        assert estimator.char_from_scroll(-100, TEXT, 0) == 0

    @pytest.mark.parametrize('height', [500.0, 123.4, 7.0])
    def test_round_trip_lands_on_same_visual_line(self, estimator, height):
        for i in range(len(TEXT) + 1):
            y = estimator.scroll_from_char(i, TEXT, height)
            back = estimator.char_from_scroll(y, TEXT, height)
            assert estimator.visual_line_of(back, TEXT) == estimator.visual_line_of(i, TEXT), i

    def test_round_trip_with_fractional_line_width(self):
        estimator = LayoutEstimator(LayoutConfig(font_size=2.5, container_width=333, is_landscape=True, margin=3))
        text = 'The quick brown fox jumps over the lazy dog.\n' * 12
        for i in range(0, len(text) + 1, 7):
            y = estimator.scroll_from_char(i, text, 901.0)
            back = estimator.char_from_scroll(y, text, 901.0)
            assert estimator.visual_line_of(back, text) == estimator.visual_line_of(i, text), i
