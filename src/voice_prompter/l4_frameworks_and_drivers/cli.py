"""CLI entry point for voice-prompter."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from voice_prompter import __version__


@click.command()
@click.argument('script', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True),
    help='Path to YAML config file.',
)
@click.option(
    '--api-key',
    envvar='VOICE_PROMPTER_API_KEY',
    default=None,
    help='Streaming transcription API key (or set VOICE_PROMPTER_API_KEY).',
)
@click.option(
    '--font-size',
    type=float,
    default=None,
    help='Font size used for the layout estimate (overrides config).',
)
@click.option(
    '--wpm',
    type=click.IntRange(min=31),
    default=None,
    help='Timed scrolling speed in words per minute (overrides config).',
)
@click.option(
    '--log-file',
    default=None,
    type=click.Path(dir_okay=False),
    help='Write debug logs to this file.',
)
@click.version_option(version=__version__)
def cli(script, config_path, api_key, font_size, wpm, log_file):
    """voice-prompter -- teleprompter TUI that scrolls along as you read aloud."""
    from pydantic import ValidationError  # noqa: PLC0415 -- deferred: not needed for --help

    from voice_prompter.l1_entities.errors import ConfigError  # noqa: PLC0415 -- deferred: not needed for --help
    from voice_prompter.l2_use_cases.utils.speed import wpm_to_speed  # noqa: PLC0415 -- deferred: not needed for --help
    from voice_prompter.l3_interface_adapters.gateways.text_script_loader import (  # noqa: PLC0415 -- deferred: not needed for --help
        TextFileScriptSource,
    )
    from voice_prompter.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from voice_prompter.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        InfraConfig,
        build_app_config,
    )

    config_loader = YamlConfigLoader()

    try:
        overrides: dict = {}
        if font_size is not None:
            overrides['display'] = {'font_size': font_size}
        if wpm is not None:
            overrides['scroll'] = {'speed': wpm_to_speed(wpm)}
        if api_key:
            overrides['provider'] = {'api_key': api_key}
        raw = config_loader.load_raw(config_path, overrides=overrides if overrides else None)
        infra = InfraConfig.model_validate({'provider': raw.pop('provider', {})})
        config = build_app_config(raw)
    except (FileNotFoundError, ConfigError, ValidationError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    if not infra.provider.api_key:
        click.echo(
            'Error: no transcription API key. Pass --api-key, set VOICE_PROMPTER_API_KEY, '
            'or add provider.api_key to the config file.',
            err=True,
        )
        sys.exit(1)

    try:
        plain_text = TextFileScriptSource().load(script)
    except (FileNotFoundError, UnicodeDecodeError) as e:
        click.echo(f'Error: cannot read script: {e}', err=True)
        sys.exit(1)

    if not plain_text.strip():
        click.echo('Error: script is empty.', err=True)
        sys.exit(1)

    if log_file:
        from voice_prompter.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: only when logging requested
            setup_file_logging,
        )

        setup_file_logging(Path(log_file))

    _preflight_microphone()

    from voice_prompter.l4_frameworks_and_drivers.apps.prompter import (  # noqa: PLC0415 -- deferred: Textual TUI not loaded for --help
        PrompterApp,
    )
    from voice_prompter.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: Textual TUI not loaded for --help
        DependencyContainer,
    )

    container = DependencyContainer(config, infra=infra)
    app = PrompterApp(
        config=config,
        plain_text=plain_text,
        title=Path(script).name,
        container=container,
    )
    app.run()


def _preflight_microphone() -> None:
    try:
        import sounddevice as sd  # noqa: PLC0415 -- deferred: not loaded on --help

        devices = sd.query_devices()
        input_devices = [d for d in devices if d['max_input_channels'] > 0]
        if not input_devices:
            click.echo('Warning: No input audio devices found. Voice sync will be unavailable.', err=True)
    except Exception as e:
        click.echo(f'Warning: Cannot query audio devices ({e}).', err=True)
