"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TranscriptionConfig(BaseModel):
    sample_rate: int = Field(gt=0)
    frame_duration: float = Field(gt=0, description='Seconds of audio per frame sent to the provider')
    connect_timeout: float = Field(gt=0)
    max_reconnect_attempts: int = Field(ge=0)
    reconnect_base_delay: float = Field(ge=0)


class MatcherConfig(BaseModel):
    key_size: int = Field(ge=1)
    min_tokens: int = Field(ge=1)
    lookahead: int = Field(ge=1)
    override_lookahead: int = Field(ge=1)
    partial_weight: float
    proximity_bonus: float
    threshold: float
    override_threshold: float
    short_key_threshold: float
    initial_jump_limit: int
    tail_size: int = Field(ge=1)


class ScrollConfig(BaseModel):
    bias: float = Field(description='Fraction of the viewport height kept above the matched line')
    duration_ms: int = Field(ge=0)
    easing: str
    inactivity_timeout: float = Field(gt=0)
    speed: float = Field(gt=0, description='Timed scrolling speed; words per minute = speed * 100 + 30')


class DisplayConfig(BaseModel):
    font_size: float
    margin: float


class AppConfig(BaseModel):
    transcription: TranscriptionConfig
    matcher: MatcherConfig
    scroll: ScrollConfig
    display: DisplayConfig
