"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from voice_prompter.l1_entities.config import AppConfig
from voice_prompter.l1_entities.layout import LayoutConfig
from voice_prompter.l2_use_cases.align_transcript_use_case import AlignTranscriptUseCase, MatchPolicy
from voice_prompter.l2_use_cases.ports.audio_source import AudioSource
from voice_prompter.l2_use_cases.ports.config_loader import ConfigLoader
from voice_prompter.l2_use_cases.ports.script_source import ScriptSource
from voice_prompter.l2_use_cases.ports.scroll_presenter import ScrollPresenter
from voice_prompter.l2_use_cases.ports.transcription_transport import TranscriptionTransport
from voice_prompter.l2_use_cases.utils.layout_estimator import LayoutEstimator
from voice_prompter.l3_interface_adapters.controllers.scroll_coordinator import ScrollCoordinator
from voice_prompter.l3_interface_adapters.gateways.sounddevice_audio_source import SounddeviceAudioSource
from voice_prompter.l3_interface_adapters.gateways.streaming_transport import StreamingTranscriptionTransport
from voice_prompter.l3_interface_adapters.gateways.text_script_loader import TextFileScriptSource
from voice_prompter.l3_interface_adapters.gateways.yaml_config_loader import YamlConfigLoader
from voice_prompter.l4_frameworks_and_drivers.infra_config import InfraConfig


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(
        self,
        config: AppConfig,
        infra: InfraConfig | None = None,
        audio_source: AudioSource | None = None,
        transport: TranscriptionTransport | None = None,
    ) -> None:
        self.config = config

        _infra = infra or InfraConfig()
        self.audio_source: AudioSource = audio_source or SounddeviceAudioSource()
        self.matcher = AlignTranscriptUseCase(MatchPolicy(**config.matcher.model_dump()))
        # Real geometry arrives from the view once it is mounted.
        self.estimator = LayoutEstimator(LayoutConfig(font_size=config.display.font_size, container_width=0))

        tc = config.transcription
        self.transport: TranscriptionTransport = transport or StreamingTranscriptionTransport(
            _infra.provider.api_key,
            self.audio_source,
            endpoint=_infra.provider.endpoint,
            sample_rate=tc.sample_rate,
            frame_duration=tc.frame_duration,
            connect_timeout=tc.connect_timeout,
            max_reconnect_attempts=tc.max_reconnect_attempts,
            reconnect_base_delay=tc.reconnect_base_delay,
        )

    def build_coordinator(self, presenter: ScrollPresenter) -> ScrollCoordinator:
        sc = self.config.scroll
        return ScrollCoordinator(
            self.transport,
            self.matcher,
            self.estimator,
            presenter,
            bias=sc.bias,
            duration_ms=sc.duration_ms,
            easing=sc.easing,
            inactivity_timeout=sc.inactivity_timeout,
        )

    @staticmethod
    def config_loader() -> ConfigLoader:
        return YamlConfigLoader()

    @staticmethod
    def script_source() -> ScriptSource:
        return TextFileScriptSource()
