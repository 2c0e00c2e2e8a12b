"""
Terminal formatting for sessions, events and loglines.

format_* functions return styled lines (typer.style) so they can be tested
without a terminal; echo_lines() writes them to stdout. click strips the
ANSI codes automatically when stdout is not a TTY.
"""

from __future__ import annotations

from collections.abc import Sequence

import typer

from teleport_analyzer.schemas.events import (
    AssistantEvent,
    BaseContentBlock,
    ControlResponseEvent,
    EnvManagerLogEvent,
    ResultEvent,
    SessionEvent,
    SystemEvent,
    TextBlock,
    ThinkingBlock,
    ToolProgressEvent,
    ToolResultBlock,
    ToolUseBlock,
    ToolUseSummaryEvent,
    UnknownEvent,
    UserEvent,
    json_text,
)
from teleport_analyzer.schemas.sessions import Logline, Session
from teleport_analyzer.schemas.types import parse_timestamp
from teleport_analyzer.services.summary import SessionSummary

THINKING_PREVIEW_CHARS = 200
TOOL_INPUT_PREVIEW_CHARS = 120
TOOL_RESULT_PREVIEW_CHARS = 200
USER_MESSAGE_PREVIEW_CHARS = 120
LOGLINE_PREVIEW_CHARS = 200

_TREE_MIDDLE = '├─'
_TREE_LAST = '└─'


# ==============================================================================
# Primitives
# ==============================================================================


def truncate_str(text: str, max_chars: int) -> str:
    """Truncate to max_chars characters (code points, never mid-character), appending '...' when cut."""
    if len(text) <= max_chars:
        return text
    return f'{text[:max_chars]}...'


def format_timestamp(value: str | None) -> str:
    """Render an API timestamp as 'YYYY-MM-DD HH:MM:SS UTC'; unparseable values are returned unchanged."""
    if not value:
        return ''
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.strftime('%Y-%m-%d %H:%M:%S UTC')


def dim(text: str) -> str:
    return typer.style(text, dim=True)


def bold(text: str) -> str:
    return typer.style(text, bold=True)


def status_colored(status: str) -> str:
    match status:
        case 'running':
            return typer.style(status, fg=typer.colors.GREEN, bold=True)
        case 'idle':
            return typer.style(status, fg=typer.colors.YELLOW)
        case 'completed':
            return typer.style(status, fg=typer.colors.BLUE)
        case 'error' | 'failed':
            return typer.style(status, fg=typer.colors.RED, bold=True)
        case _:
            return dim(status)


def _level_colored(level: str) -> str:
    match level:
        case 'error':
            return typer.style(level, fg=typer.colors.RED)
        case 'warn' | 'warning':
            return typer.style(level, fg=typer.colors.YELLOW)
        case 'debug':
            return dim(level)
        case _:
            return level


def _tree(items: Sequence[str]) -> list[str]:
    """Render items as a box-drawing list (last item gets the corner)."""
    return [f'    {_TREE_LAST if i == len(items) - 1 else _TREE_MIDDLE} {item}' for i, item in enumerate(items)]


# ==============================================================================
# Sessions
# ==============================================================================


def format_session_row(session: Session) -> list[str]:
    lines = [
        f'  {status_colored(session.status)} {dim(session.id)} {dim(format_timestamp(session.updated_at))}',
        f'    {bold(session.title or "(untitled)")}',
    ]
    if session.repository:
        lines.append(f'    {dim(session.repository)}')
    lines.append('')
    return lines


def format_session_detail(session: Session) -> list[str]:
    lines = [
        '',
        bold('Session Details'),
        '',
        f'  {dim("ID")}: {session.id}',
        f'  {dim("Title")}: {bold(session.title or "(untitled)")}',
        f'  {dim("Status")}: {status_colored(session.status)}',
        f'  {dim("Type")}: {session.type or "unknown"}',
        f'  {dim("Created")}: {format_timestamp(session.created_at)}',
        f'  {dim("Updated")}: {format_timestamp(session.updated_at)}',
    ]

    context = session.session_context
    if context is not None:
        lines.append(f'  {dim("Model")}: {typer.style(context.model or "unknown", fg=typer.colors.CYAN)}')
        for source in context.sources or ():
            lines.append(f'  {dim("Source")}: {source.url or ""} ({source.revision or ""})')
        for outcome in context.outcomes or ():
            if outcome.git_info is None:
                continue
            lines.append(f'  {dim("Repo")}: {outcome.git_info.repo or ""}')
            for branch in outcome.git_info.branches or ():
                lines.append(f'  {dim("Branch")}: {typer.style(branch, fg=typer.colors.GREEN)}')

    lines.append('')
    lines.append(f'  {dim("Resume with:")} claude --teleport {typer.style(session.id, fg=typer.colors.CYAN)}')
    lines.append('')
    return lines


# ==============================================================================
# Events
# ==============================================================================


def format_content_block(block: BaseContentBlock) -> list[str]:
    """Lines for one message block. Unrecognized blocks render as nothing."""
    match block:
        case ThinkingBlock(thinking=str(text)) if text:
            preview = truncate_str(text, THINKING_PREVIEW_CHARS)
            return [f'  {dim("thinking:")} {dim(preview)}']
        case TextBlock():
            return [f'  {line}' for line in (block.text or '').splitlines()]
        case ToolUseBlock():
            name = typer.style(block.name or 'unknown', fg=typer.colors.CYAN, bold=True)
            preview = '' if block.input is None else truncate_str(json_text(block.input), TOOL_INPUT_PREVIEW_CHARS)
            return [f'  {typer.style("tool_use:", fg=typer.colors.YELLOW)} {name} {dim(preview)}']
        case ToolResultBlock():
            preview = truncate_str(block.output_text(), TOOL_RESULT_PREVIEW_CHARS)
            return [f'  {typer.style("tool_result:", fg=typer.colors.YELLOW)} {dim(preview)}']
        case _:
            return []


def format_event(event: SessionEvent) -> list[str]:
    """Lines for one transcript event, prefixed by its creation time."""
    raw_created = getattr(event, 'created_at', None)  # Extra field on UnknownEvent
    created = dim(format_timestamp(raw_created if isinstance(raw_created, str) else None))

    match event:
        case SystemEvent():
            label = typer.style('SYSTEM', fg=typer.colors.MAGENTA, bold=True)
            model = typer.style(event.model or '', fg=typer.colors.CYAN)
            return [f'{created} {label} [{event.subtype or ""}] model={model} cwd={event.cwd or ""}']
        case UserEvent():
            text = event.message.content if isinstance(event.message.content, str) else ''
            lines = [f'{created} {typer.style("USER", fg=typer.colors.GREEN, bold=True)}']
            lines.extend(f'  {line}' for line in text.splitlines())
            lines.append('')
            return lines
        case AssistantEvent():
            lines = [f'{created} {typer.style("ASSISTANT", fg=typer.colors.BLUE, bold=True)}']
            for block in event.message.content:
                lines.extend(format_content_block(block))
            lines.append('')
            return lines
        case ToolUseSummaryEvent():
            return [f'{created} {typer.style("SUMMARY", fg=typer.colors.YELLOW)} {event.summary or ""}']
        case ToolProgressEvent():
            elapsed = event.elapsed_time_seconds or 0
            return [f'{created} {dim("PROGRESS")} {dim(event.tool_name or "")} ({elapsed:g}s)']
        case ResultEvent():
            duration_s = (event.duration_ms or 0) // 1000
            label = typer.style('RESULT', fg=typer.colors.CYAN, bold=True)
            line = f'{created} {label} duration={duration_s}s'
            if event.is_error:
                line += f' {typer.style("error", fg=typer.colors.RED)}'
            return [line]
        case ControlResponseEvent():
            subtype = event.response.subtype if event.response and event.response.subtype else ''
            return [f'{created} {dim("CONTROL")} [{dim(subtype)}]']
        case EnvManagerLogEvent():
            content = (event.data.content if event.data else None) or ''
            level = (event.data.level if event.data else None) or 'info'
            return [f'{created} {dim("ENV")} [{_level_colored(level)}] {content}']
        case UnknownEvent():
            return [f'{created} {dim("UNKNOWN")} {dim(event.raw_kind)}']
    return []


# ==============================================================================
# Transcript, Summary, Loglines
# ==============================================================================


def format_transcript_header(shown: int, filters: Sequence[str]) -> list[str]:
    label = ' - '.join([f'{shown} events', *filters])
    return ['', f'{bold("Session Transcript")} ({typer.style(label, fg=typer.colors.CYAN)})', '']


def format_summary(session: Session, summary: SessionSummary) -> list[str]:
    lines = [
        '',
        bold('Session Summary'),
        '',
        f'  {bold(session.title or "(untitled)")} ({status_colored(session.status)})',
        '',
        f'  {dim("Total events")}: {summary.total_events}',
    ]
    lines.extend(f'    {dim(item.kind)}: {item.count}' for item in summary.kind_counts)
    lines.append('')

    if summary.tool_use_summaries:
        lines.append(f'  {bold("Tool Use Summaries")} ({len(summary.tool_use_summaries)}):')
        lines.extend(_tree(summary.tool_use_summaries))

    if summary.user_messages:
        previews = [truncate_str(m, USER_MESSAGE_PREVIEW_CHARS) for m in summary.user_messages]
        lines.append('')
        lines.append(f'  {bold("User Messages")} ({len(previews)}):')
        lines.extend(_tree(previews))

    lines.append('')
    return lines


def format_logline(log: Logline) -> list[str]:
    log_type = log.type or 'unknown'
    type_display = f'{log_type}/{log.subtype}' if log.subtype else log_type
    match log_type:
        case 'system':
            type_colored = typer.style(type_display, fg=typer.colors.MAGENTA)
        case 'user':
            type_colored = typer.style(type_display, fg=typer.colors.GREEN)
        case 'assistant':
            type_colored = typer.style(type_display, fg=typer.colors.BLUE)
        case _:
            type_colored = dim(type_display)

    lines = [f'{dim(format_timestamp(log.timestamp))} {type_colored} {dim(log.gitBranch or "")}']
    if log.content:
        lines.append(f'  {truncate_str(log.content, LOGLINE_PREVIEW_CHARS)}')
    lines.append('')
    return lines


def echo_lines(lines: Sequence[str]) -> None:
    for line in lines:
        typer.echo(line)
