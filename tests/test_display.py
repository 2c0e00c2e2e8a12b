"""Tests for terminal formatting helpers (ANSI styling stripped before comparison)."""

from __future__ import annotations

import click

from teleport_analyzer.cli.display import (
    format_content_block,
    format_event,
    format_logline,
    format_session_detail,
    format_session_row,
    format_summary,
    format_timestamp,
    status_colored,
    truncate_str,
)
from teleport_analyzer.schemas.events import TextBlock, ThinkingBlock, ToolResultBlock, ToolUseBlock, decode_event
from teleport_analyzer.schemas.sessions import Logline, Session
from teleport_analyzer.services.summary import summarize_events
from tests.helpers import sample_records, session_record


def plain(lines: list[str]) -> str:
    return click.unstyle('\n'.join(lines))


# ==============================================================================
# Primitives
# ==============================================================================


def test_truncate_str() -> None:
    assert truncate_str('hello', 10) == 'hello'
    assert truncate_str('hello', 5) == 'hello'
    assert truncate_str('hello world', 5) == 'hello...'
    assert truncate_str('', 10) == ''


def test_truncate_str_counts_characters_not_bytes() -> None:
    text = 'a' * 119 + '─' * 5
    result = truncate_str(text, 120)
    assert result == 'a' * 119 + '─...'
    assert len(truncate_str('x' * 118 + '🦀🦀🦀', 120)) == 123


def test_format_timestamp() -> None:
    assert format_timestamp('2025-01-15T14:30:00Z') == '2025-01-15 14:30:00 UTC'
    assert format_timestamp('2025-06-01T08:00:00.123Z') == '2025-06-01 08:00:00 UTC'
    assert format_timestamp('not-a-timestamp') == 'not-a-timestamp'
    assert format_timestamp('') == ''
    assert format_timestamp(None) == ''


def test_status_colored_keeps_text() -> None:
    for status in ('running', 'idle', 'completed', 'error', 'failed', 'something_else'):
        assert click.unstyle(status_colored(status)) == status


# ==============================================================================
# Blocks and events
# ==============================================================================


def test_thinking_block_preview() -> None:
    lines = format_content_block(ThinkingBlock(type='thinking', thinking='a' * 300))
    assert plain(lines) == f'  thinking: {"a" * 200}...'
    assert format_content_block(ThinkingBlock(type='thinking', thinking='')) == []
    assert format_content_block(ThinkingBlock(type='thinking')) == []


def test_text_block_lines() -> None:
    assert plain(format_content_block(TextBlock(type='text', text='Hello\nWorld'))) == '  Hello\n  World'
    assert format_content_block(TextBlock(type='text')) == []


def test_tool_use_block() -> None:
    block = ToolUseBlock(type='tool_use', name='Bash', input={'command': 'ls -la'})
    assert plain(format_content_block(block)) == '  tool_use: Bash {"command": "ls -la"}'

    long_block = ToolUseBlock(type='tool_use', name='Write', input={'content': 'x' * 200})
    assert plain(format_content_block(long_block)).endswith('...')


def test_tool_result_block() -> None:
    block = ToolResultBlock(type='tool_result', content='result text')
    assert plain(format_content_block(block)) == '  tool_result: result text'


def test_every_event_kind_renders() -> None:
    rendered = {event.kind: plain(format_event(event)) for event in map(decode_event, sample_records())}
    assert rendered['system'] == '2025-06-01 10:00:00 UTC SYSTEM [init] model=claude-sonnet-4 cwd=/workspace/repo'
    assert 'tool_result: test result: ok. 12 passed' not in rendered['user']
    assert rendered['tool_progress'] == '2025-06-01 10:00:03 UTC PROGRESS Bash (2.5s)'
    assert rendered['result'] == '2025-06-01 10:00:08 UTC RESULT duration=8s'
    assert rendered['control_response'] == '2025-06-01 10:00:07 UTC CONTROL [success]'
    assert rendered['env_manager_log'] == '2025-06-01 10:00:06 UTC ENV [info] Cloned repository'
    assert rendered['tool_use_summary'] == '2025-06-01 10:00:05 UTC SUMMARY Ran the test suite'
    assert rendered['unknown'] == '2025-06-01 10:00:09 UTC UNKNOWN sandbox_snapshot'


def test_user_and_assistant_render_bodies() -> None:
    records = sample_records()
    user = plain(format_event(decode_event(records[1])))
    assert user.splitlines()[:2] == ['2025-06-01 10:00:01 UTC USER', '  Please run the Cargo Test suite']

    assistant = plain(format_event(decode_event(records[2])))
    assert 'ASSISTANT' in assistant
    assert '  thinking: The user wants tests run.' in assistant
    assert '  Running the tests now.' in assistant
    assert '  tool_use: Bash {"command": "cargo test"}' in assistant


# ==============================================================================
# Sessions, summary, loglines
# ==============================================================================


def test_session_row() -> None:
    session = Session.model_validate(session_record())
    text = plain(format_session_row(session))
    assert 'completed session_01QJaJSUgfY6khmFTzJaMqph 2025-06-02 09:30:00 UTC' in text
    assert 'Fix flaky tests' in text
    assert 'https://github.com/acme/widgets' in text


def test_minimal_session_row() -> None:
    text = plain(format_session_row(Session.model_validate({'id': 's1'})))
    assert 'unknown s1' in text
    assert '(untitled)' in text


def test_session_detail() -> None:
    session = Session.model_validate(session_record(created_at='2025-06-01T10:00:00Z'))
    text = plain(format_session_detail(session))
    assert 'Status: completed' in text
    assert 'Type: remote' in text
    assert 'Created: 2025-06-01 10:00:00 UTC' in text
    assert 'Model: claude-sonnet-4' in text
    assert 'Source: https://github.com/acme/widgets (abc123)' in text
    assert 'Repo: acme/widgets' in text
    assert 'Branch: fix/tests' in text
    assert 'Resume with: claude --teleport session_01QJaJSUgfY6khmFTzJaMqph' in text


def test_summary_rendering() -> None:
    session = Session.model_validate(session_record())
    summary = summarize_events([decode_event(r) for r in sample_records()])
    text = plain(format_summary(session, summary))
    assert 'Fix flaky tests (completed)' in text
    assert 'Total events: 10' in text
    assert '    user: 2' in text
    assert 'Tool Use Summaries (1):' in text
    assert '    └─ Ran the test suite' in text
    assert 'User Messages (1):' in text


def test_logline_rendering() -> None:
    log = Logline.model_validate(
        {
            'type': 'user',
            'subtype': 'message',
            'content': 'hello world',
            'timestamp': '2025-01-01T00:00:00Z',
            'gitBranch': 'main',
        }
    )
    assert plain(format_logline(log)) == '2025-01-01 00:00:00 UTC user/message main\n  hello world\n'
    assert plain(format_logline(Logline.model_validate({}))) == ' unknown \n'
