"""Tests for the command line entry point."""

from __future__ import annotations

import json

import pytest

import main


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('DATABASE_URL', f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv('DATA_DIRECTORY', str(tmp_path / 'data'))
    return tmp_path


def test_profile_show_prints_defaults(workspace, capsys) -> None:
    assert main.main(['profile', 'show', '--user-id', '3']) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload['max_position_size_pct'] == 10.0
    assert payload['allowed_symbols'] == 'all'


def test_profile_update_persists(workspace, capsys) -> None:
    assert main.main(['profile', 'update', '--user-id', '3', '--max-open', '6', '--allowed-symbols', 'btcusdt']) == 0
    capsys.readouterr()

    assert main.main(['profile', 'show', '--user-id', '3']) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload['max_open_positions'] == 6
    assert payload['allowed_symbols'] == ['BTCUSDT']


def test_invalid_update_exits_non_zero(workspace, capsys) -> None:
    assert main.main(['profile', 'update', '--daily-loss', '150']) == 1
    assert capsys.readouterr().out == ''
