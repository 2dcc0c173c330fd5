"""Timed scrolling speed — stored speed ↔ words per minute, and the scroll rate that follows."""

from __future__ import annotations

import math

# Stored speed s reads at s * 100 + 30 words per minute.
WPM_OFFSET = 30.0
WPM_PER_SPEED = 100.0

FIXED_MIN = 0.3
FIXED_MAX = 2.5
WPM_MIN = 60
WPM_MAX = 250

SPEED_STEP = 0.1


def wpm_to_speed(wpm: float) -> float:
    return (wpm - WPM_OFFSET) / WPM_PER_SPEED


def speed_to_wpm(speed: float) -> int:
    # Half-up, not banker's rounding.
    return math.floor(speed * WPM_PER_SPEED + WPM_OFFSET + 0.5)


# One speed domain shared by the fixed-speed and the WPM presentations.
GLOBAL_MIN_SPEED = max(FIXED_MIN, wpm_to_speed(WPM_MIN))
GLOBAL_MAX_SPEED = max(FIXED_MAX, wpm_to_speed(WPM_MAX))


def clamp_speed(speed: float) -> float:
    return min(max(speed, GLOBAL_MIN_SPEED), GLOBAL_MAX_SPEED)


def step_speed(speed: float, steps: int) -> float:
    """Move *speed* by whole SPEED_STEPs, clamped and rounded to the step grid."""
    return clamp_speed(round(speed + steps * SPEED_STEP, 2))


def rows_per_second(wpm: float, content_height: float, word_count: int) -> float:
    """Scroll rate that passes *wpm* words a minute, each word owning an equal share of the content height.

    Returns 0.0 when there is nothing to scroll.
    """
    if content_height <= 0 or word_count <= 0 or wpm <= 0:
        return 0.0
    return (wpm / 60.0) * (content_height / word_count)
