from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console as RichTerminal

from onesaas import cli
from onesaas.console import RichConsole, progress_bar
from onesaas.provisioning import ExitCode
from onesaas.settings import SettingsError


def test_flags_override_environment():
    args = cli.build_parser().parse_args(['setup', '--output-dir', '/tmp/x', '--log-level', 'DEBUG', '--skip-tooling'])

    settings = cli.load_settings(args, env={'ONESAAS_OUTPUT_DIR': '/elsewhere', 'LOG_LEVEL': 'ERROR'})

    assert settings.output_dir == Path('/tmp/x')
    assert settings.log_level == 'DEBUG'
    assert settings.skip_tooling is True


def test_unset_flags_keep_environment_values():
    args = cli.build_parser().parse_args(['setup'])

    settings = cli.load_settings(args, env={'ONESAAS_SKIP_TOOLING': '1', 'LOG_FORMAT': 'json'})

    assert settings.skip_tooling is True
    assert settings.log_format == 'json'


def test_invalid_configuration_raises():
    args = cli.build_parser().parse_args(['setup'])
    with pytest.raises(SettingsError):
        cli.load_settings(args, env={'GITHUB_API_URL': 'not-a-url'})


def test_main_returns_1_on_configuration_error(monkeypatch, capsys):
    monkeypatch.setenv('DB_PASSWORD_LENGTH', 'many')

    assert cli.main(['setup']) == ExitCode.FAILURE
    assert 'Configuration error' in capsys.readouterr().err


def test_main_returns_130_on_interrupt(monkeypatch):
    def interrupted(args):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, 'run_setup', interrupted)
    assert cli.main(['setup']) == 130


def test_main_returns_1_on_unexpected_error(monkeypatch):
    def broken(args):
        raise RuntimeError('boom')

    monkeypatch.setattr(cli, 'run_setup', broken)
    assert cli.main([]) == 1


def test_progress_bar():
    assert progress_bar(0, 6, width=6) == '[░░░░░░]'
    assert progress_bar(3, 6, width=6) == '[███░░░]'
    assert progress_bar(6, 6, width=6) == '[██████]'


def test_rich_console_renders_markers_without_markup():
    buffer = io.StringIO()
    console = RichConsole(RichTerminal(file=buffer, force_terminal=False, width=120))

    console.step(2, 6, 'Supabase database')
    console.success('done [bold]')
    console.error('failed')

    output = buffer.getvalue()
    assert 'Step 2/6: Supabase database' in output
    assert '✓ done [bold]' in output
    assert '✕ failed' in output
