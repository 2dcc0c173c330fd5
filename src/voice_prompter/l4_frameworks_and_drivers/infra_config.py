"""Infrastructure provider configs — lives in L4, not domain."""

from __future__ import annotations

import copy

from pydantic import BaseModel, Field

from voice_prompter.l1_entities.config import AppConfig
from voice_prompter.l3_interface_adapters.gateways.streaming_transport import DEFAULT_ENDPOINT
from voice_prompter.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'transcription': {
        'sample_rate': 16000,
        'frame_duration': 0.1,
        'connect_timeout': 10.0,
        'max_reconnect_attempts': 5,
        'reconnect_base_delay': 1.0,
    },
    'matcher': {
        'key_size': 4,
        'min_tokens': 3,
        'lookahead': 10,
        'override_lookahead': 50,
        'partial_weight': 0.4,
        'proximity_bonus': 0.1,
        'threshold': 0.75,
        'override_threshold': 0.6,
        'short_key_threshold': 0.95,
        'initial_jump_limit': 15,
        'tail_size': 8,
    },
    'scroll': {
        'bias': 0.3,
        'duration_ms': 500,
        'easing': 'out_quad',
        'inactivity_timeout': 10.0,
        'speed': 1.0,
    },
    'display': {
        'font_size': 3,
        'margin': 2,
    },
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, copy.deepcopy(raw))
    return AppConfig.model_validate(merged)


class ProviderConfig(BaseModel):
    api_key: str | None = None  # None → CLI reads VOICE_PROMPTER_API_KEY env
    endpoint: str = DEFAULT_ENDPOINT


class InfraConfig(BaseModel):
    """Groups all provider-specific settings outside the domain layer."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
