"""Tests for CLI entry point — patches deferred imports at source module level."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from tests.conftest import FOUR_LINE_SCRIPT
from voice_prompter import __version__
from voice_prompter.l4_frameworks_and_drivers.cli import (
    _preflight_microphone,  # noqa: PLC2701 -- testing private helper
    cli,
)

# Patch targets at SOURCE module level (not cli module) because cli() uses
# deferred `from X import Y` which creates local bindings that bypass
# module-level attribute patches.
_APP = 'voice_prompter.l4_frameworks_and_drivers.apps.prompter.PrompterApp'
_CONTAINER = 'voice_prompter.l4_frameworks_and_drivers.container.DependencyContainer'
_LOGGING = 'voice_prompter.l4_frameworks_and_drivers.logging_setup.setup_file_logging'
_CLI = 'voice_prompter.l4_frameworks_and_drivers.cli'


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch):
    import voice_prompter.l3_interface_adapters.gateways.yaml_config_loader as mod

    monkeypatch.setattr(mod, 'DEFAULT_CONFIG_PATHS', [])


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner(env={'VOICE_PROMPTER_API_KEY': None})


def _launch(runner: CliRunner, args: list[str], env: dict | None = None):
    with (
        patch(_APP) as mock_app_cls,
        patch(_CONTAINER) as mock_container_cls,
        patch(f'{_CLI}._preflight_microphone'),
    ):
        result = runner.invoke(cli, args, env=env)
    return result, mock_app_cls, mock_container_cls


class TestPreflightMicrophone:
    def test_no_input_devices_warns(self, capsys):
        mock_sd = MagicMock()
        mock_sd.query_devices.return_value = [{'max_input_channels': 0}]
        with patch.dict('sys.modules', {'sounddevice': mock_sd}):
            _preflight_microphone()
        assert 'No input audio devices' in capsys.readouterr().err

    def test_query_devices_exception_warns(self, capsys):
        mock_sd = MagicMock()
        mock_sd.query_devices.side_effect = RuntimeError('No audio backend')
        with patch.dict('sys.modules', {'sounddevice': mock_sd}):
            _preflight_microphone()
        assert 'No audio backend' in capsys.readouterr().err

    def test_input_device_present_is_silent(self, capsys):
        mock_sd = MagicMock()
        mock_sd.query_devices.return_value = [{'max_input_channels': 1}]
        with patch.dict('sys.modules', {'sounddevice': mock_sd}):
            _preflight_microphone()
        assert capsys.readouterr().err == ''


class TestCliCommand:
    def test_version_flag(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert '--api-key' in result.output

    def test_missing_script_is_usage_error(self, runner, tmp_path: Path):
        result = runner.invoke(cli, [str(tmp_path / 'nope.txt'), '--api-key', 'k'])
        assert result.exit_code == 2

    def test_missing_api_key_exits(self, runner, script_file: Path):
        result, mock_app_cls, _ = _launch(runner, [str(script_file)])
        assert result.exit_code == 1
        assert 'no transcription API key' in result.output
        mock_app_cls.assert_not_called()

    def test_empty_script_exits(self, runner, tmp_path: Path):
        empty = tmp_path / 'empty.txt'
        empty.write_text('  \n\n', encoding='utf-8')
        result, mock_app_cls, _ = _launch(runner, [str(empty), '--api-key', 'k'])
        assert result.exit_code == 1
        assert 'empty' in result.output
        mock_app_cls.assert_not_called()

    def test_undecodable_script_exits(self, runner, tmp_path: Path):
        bad = tmp_path / 'bad.txt'
        bad.write_bytes(b'\xff\xfe\xfa')
        result, _, _ = _launch(runner, [str(bad), '--api-key', 'k'])
        assert result.exit_code == 1
        assert 'cannot read script' in result.output

    def test_launches_app(self, runner, script_file: Path):
        result, mock_app_cls, mock_container_cls = _launch(runner, [str(script_file), '--api-key', 'k'])

        assert result.exit_code == 0, result.output
        (config,) = mock_container_cls.call_args.args
        infra = mock_container_cls.call_args.kwargs['infra']
        assert infra.provider.api_key == 'k'
        assert config.scroll.bias == 0.3
        kwargs = mock_app_cls.call_args.kwargs
        assert kwargs['plain_text'] == FOUR_LINE_SCRIPT
        assert kwargs['title'] == 'talk.txt'
        assert kwargs['container'] is mock_container_cls.return_value
        mock_app_cls.return_value.run.assert_called_once()

    def test_api_key_from_env(self, runner, script_file: Path):
        result, _, mock_container_cls = _launch(
            runner, [str(script_file)], env={'VOICE_PROMPTER_API_KEY': 'env-key'}
        )
        assert result.exit_code == 0, result.output
        assert mock_container_cls.call_args.kwargs['infra'].provider.api_key == 'env-key'

    def test_config_file_and_font_override(self, runner, script_file: Path, sample_config_yaml: Path):
        result, _, mock_container_cls = _launch(
            runner, [str(script_file), '-c', str(sample_config_yaml), '--font-size', '4']
        )

        assert result.exit_code == 0, result.output
        (config,) = mock_container_cls.call_args.args
        assert config.transcription.sample_rate == 48000
        assert config.matcher.lookahead == 12
        assert config.scroll.bias == 0.25
        assert config.display.font_size == 4
        assert mock_container_cls.call_args.kwargs['infra'].provider.api_key == 'from-yaml'

    def test_cli_key_beats_config_file(self, runner, script_file: Path, sample_config_yaml: Path):
        result, _, mock_container_cls = _launch(
            runner, [str(script_file), '-c', str(sample_config_yaml), '--api-key', 'cli-key']
        )
        assert result.exit_code == 0, result.output
        assert mock_container_cls.call_args.kwargs['infra'].provider.api_key == 'cli-key'

    def test_invalid_config_exits(self, runner, script_file: Path, tmp_path: Path):
        bad = tmp_path / 'bad.yaml'
        bad.write_text('transcription:\n  sample_rate: 0\n', encoding='utf-8')
        result, mock_app_cls, _ = _launch(runner, [str(script_file), '-c', str(bad), '--api-key', 'k'])
        assert result.exit_code == 1
        assert 'Error' in result.output
        mock_app_cls.assert_not_called()

    def test_malformed_yaml_exits(self, runner, script_file: Path, tmp_path: Path):
        bad = tmp_path / 'bad.yaml'
        bad.write_text('scroll: [\n', encoding='utf-8')
        result, _, _ = _launch(runner, [str(script_file), '-c', str(bad), '--api-key', 'k'])
        assert result.exit_code == 1
        assert 'Invalid YAML' in result.output

    def test_log_file_enables_file_logging(self, runner, script_file: Path, tmp_path: Path):
        log_path = tmp_path / 'debug.log'
        with patch(_LOGGING) as mock_setup:
            result, _, _ = _launch(runner, [str(script_file), '--api-key', 'k', '--log-file', str(log_path)])
        assert result.exit_code == 0, result.output
        mock_setup.assert_called_once_with(log_path)

    def test_wpm_sets_scroll_speed(self, runner, script_file: Path):
        result, _, mock_container_cls = _launch(runner, [str(script_file), '--api-key', 'k', '--wpm', '150'])
        assert result.exit_code == 0, result.output
        (config,) = mock_container_cls.call_args.args
        assert config.scroll.speed == pytest.approx(1.2)

    def test_wpm_below_offset_is_usage_error(self, runner, script_file: Path):
        result = runner.invoke(cli, [str(script_file), '--api-key', 'k', '--wpm', '30'])
        assert result.exit_code == 2
