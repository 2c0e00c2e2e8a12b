"""CLI smoke tests: every command runs against the mock sessions API."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from teleport_analyzer.cli import main as cli_main
from teleport_analyzer.client import SessionsApiClient
from teleport_analyzer.services.export import load_export
from tests.helpers import SESSION_ID, MockSessionsApi, sample_records, session_record

runner = CliRunner()


@pytest.fixture
def api(monkeypatch: pytest.MonkeyPatch) -> MockSessionsApi:
    records = sample_records()
    api = MockSessionsApi(
        pages=[records[:4], records[4:8], records[8:]],
        sessions=[
            session_record('session_01May30xxxxxxxxx', '2025-05-30T12:00:00Z'),
            session_record('session_01Jun05xxxxxxxxx', '2025-06-05T12:00:00Z', title='June work'),
            session_record('session_01Jul02xxxxxxxxx', '2025-07-02T12:00:00Z'),
        ],
        loglines=[{'type': 'user', 'content': 'hello from ingress', 'gitBranch': 'main'}],
    )

    async def fake_create_client(*args: object, **kwargs: object) -> SessionsApiClient:
        return api.client()

    monkeypatch.setattr(cli_main, 'create_client', fake_create_client)
    return api


def test_read_conversation_only(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['read', SESSION_ID, '-c'])
    assert result.exit_code == 0, result.output
    assert 'Session Transcript (5 events - conversation only)' in result.output
    assert 'PROGRESS' not in result.output
    assert len(api.event_requests) == 3


def test_read_search_is_case_insensitive(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['read', SESSION_ID, '--search', 'CARGO TEST'])
    assert result.exit_code == 0, result.output
    assert '(2 events - search: "CARGO TEST")' in result.output


def test_read_type_filter_and_max_events(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['read', SESSION_ID, '-t', 'user', '-m', '4'])
    assert result.exit_code == 0, result.output
    assert '(1 events - type: user)' in result.output
    assert len(api.event_requests) == 1


def test_read_rejects_bad_session_id(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['read', 'not-a-session'])
    assert result.exit_code == 1
    assert 'Invalid session ID format' in result.output
    assert api.requests == []


def test_show(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['show', SESSION_ID])
    assert result.exit_code == 0, result.output
    assert 'Session Details' in result.output
    assert f'claude --teleport {SESSION_ID}' in result.output


def test_show_missing_session(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['show', 'session_01Missing000000000'])
    assert result.exit_code == 1
    assert 'Error:' in result.output
    assert '404' in result.output


def test_list_with_date_range(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['list', '--after', '2025-06-01', '--before', '2025-07-01'])
    assert result.exit_code == 0, result.output
    assert '(3 total, showing 1)' in result.output
    assert 'session_01Jun05xxxxxxxxx' in result.output
    assert 'June work' in result.output


def test_list_rejects_bad_date(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['list', '--after', 'last week'])
    assert result.exit_code == 1
    assert 'Invalid date format' in result.output


def test_summary(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['summary', SESSION_ID])
    assert result.exit_code == 0, result.output
    assert 'Total events: 10' in result.output
    assert 'Ran the test suite' in result.output


def test_loglines(api: MockSessionsApi) -> None:
    result = runner.invoke(cli_main.app, ['loglines', SESSION_ID])
    assert result.exit_code == 0, result.output
    assert 'Session Loglines (1 loglines)' in result.output
    assert 'hello from ingress' in result.output


def test_export(api: MockSessionsApi, tmp_path: Path) -> None:
    output = tmp_path / 'export.json'
    result = runner.invoke(cli_main.app, ['export', SESSION_ID, '-o', str(output)])
    assert result.exit_code == 0, result.output
    assert 'Exported 10 events' in result.output

    exported = load_export(output.read_bytes())
    assert exported.session.id == SESSION_ID
    assert exported.total_events == 10


def test_export_to_missing_directory(api: MockSessionsApi, tmp_path: Path) -> None:
    output = tmp_path / 'missing' / 'export.json'
    result = runner.invoke(cli_main.app, ['export', SESSION_ID, '-o', str(output)])
    assert result.exit_code == 1
    assert 'Output directory does not exist' in result.output
    assert api.requests == []


def test_commands_use_the_shared_lazy_settings(api: MockSessionsApi, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[object] = []

    async def recording_create_client(settings: object, *args: object, **kwargs: object) -> SessionsApiClient:
        seen.append(settings)
        return api.client()

    monkeypatch.setattr(cli_main, 'create_client', recording_create_client)
    result = runner.invoke(cli_main.app, ['show', SESSION_ID])
    assert result.exit_code == 0, result.output
    assert len(seen) == 1
    assert seen[0] is cli_main.settings
