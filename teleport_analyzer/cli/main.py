#!/usr/bin/env python3
"""
Command-line interface for claude-teleport-analyzer.

Reads Claude Code remote sessions (metadata, transcripts, loglines) without
cloning them locally.
"""

from __future__ import annotations

import asyncio
import traceback
from pathlib import Path

import typer

from teleport_analyzer.cli.display import (
    echo_lines,
    format_event,
    format_logline,
    format_session_detail,
    format_session_row,
    format_summary,
    format_transcript_header,
)
from teleport_analyzer.cli.logger import CLILogger
from teleport_analyzer.config.base import settings
from teleport_analyzer.exceptions import InvalidInputError, TeleportError
from teleport_analyzer.services.credentials import create_client
from teleport_analyzer.services.directory import (
    DEFAULT_LIST_LIMIT,
    DateRange,
    fetch_loglines,
    fetch_session_listing,
    get_session,
    parse_date_filter,
    validate_session_id,
)
from teleport_analyzer.services.export import build_export, write_export
from teleport_analyzer.services.fetch import fetch_events
from teleport_analyzer.services.query import EventQuery, sort_chronologically
from teleport_analyzer.services.summary import summarize_events

app = typer.Typer(
    name='claude-teleport-analyzer',
    help='Read Claude Code remote sessions without cloning',
    add_completion=False,
)


class ProgressPrinter:
    """Rewrites a single stderr line with the running event count."""

    def __init__(self) -> None:
        self.printed = False

    def __call__(self, fetched: int) -> None:
        typer.echo(f'\r  Fetched {fetched} events...', err=True, nl=False)
        self.printed = True

    def finish(self) -> None:
        if self.printed:
            typer.echo(err=True)
            self.printed = False


async def _report_failure(logger: CLILogger, action: str, error: Exception, verbose: bool) -> None:
    """Print an error the way every command does: domain errors plainly, anything else with context."""
    if isinstance(error, (TeleportError, OSError)):
        typer.secho(f'Error: {error}', fg=typer.colors.RED, err=True)
    else:
        await logger.error(f'Failed to {action}: {error}')
        if verbose:
            traceback.print_exc()


# ==============================================================================
# list
# ==============================================================================


@app.command('list')
def list_command(
    limit: int = typer.Option(DEFAULT_LIST_LIMIT, '--limit', '-l', min=0, help='Max number of sessions to show'),
    status: str | None = typer.Option(None, '--status', '-s', help='Filter by status: running, idle, completed'),
    after: str | None = typer.Option(
        None, '--after', help='Only sessions created at or after this date (YYYY-MM-DD or ISO8601)'
    ),
    before: str | None = typer.Option(
        None, '--before', help='Only sessions created before this date (YYYY-MM-DD or ISO8601)'
    ),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """List remote sessions."""
    if not asyncio.run(_list_async(limit, status, after, before, verbose)):
        raise typer.Exit(1)


async def _list_async(limit: int, status: str | None, after: str | None, before: str | None, verbose: bool) -> bool:
    logger = CLILogger(verbose=verbose)
    try:
        date_range = None
        if after is not None or before is not None:
            date_range = DateRange(
                start=parse_date_filter(after) if after is not None else None,
                end=parse_date_filter(before) if before is not None else None,
            )

        async with await create_client(settings, logger) as client:
            listing = await fetch_session_listing(client, date_range=date_range, status=status, limit=limit)
    except Exception as e:
        await _report_failure(logger, 'list sessions', e, verbose)
        return False

    typer.echo()
    header = typer.style('Remote Sessions', bold=True)
    typer.echo(f'{header} ({listing.total} total, showing {len(listing.sessions)})')
    typer.echo()
    for session in listing.sessions:
        echo_lines(format_session_row(session))
    return True


# ==============================================================================
# show
# ==============================================================================


@app.command()
def show(
    session_id: str = typer.Argument(..., help='Session ID (e.g. session_01QJaJSUgfY6khmFTzJaMqph)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Show session metadata."""
    if not asyncio.run(_show_async(session_id, verbose)):
        raise typer.Exit(1)


async def _show_async(session_id: str, verbose: bool) -> bool:
    logger = CLILogger(verbose=verbose)
    try:
        validate_session_id(session_id)
        async with await create_client(settings, logger) as client:
            session = await get_session(client, session_id)
    except Exception as e:
        await _report_failure(logger, 'show session', e, verbose)
        return False

    echo_lines(format_session_detail(session))
    return True


# ==============================================================================
# read
# ==============================================================================


@app.command()
def read(
    session_id: str = typer.Argument(..., help='Session ID'),
    conversation_only: bool = typer.Option(
        False, '--conversation-only', '-c', help='Only system/user/assistant/result events (skip progress, logs, ...)'
    ),
    event_type: str | None = typer.Option(
        None, '--type', '-t', help='Filter by event type (user, assistant, system, tool_use_summary, ...)'
    ),
    max_events: int = typer.Option(
        0, '--max-events', '-m', min=0, help='Maximum number of events to fetch (0 = all)'
    ),
    search: str | None = typer.Option(
        None, '--search', '-s', help='Search for text in event content (case-insensitive)'
    ),
    limit: int | None = typer.Option(None, '--limit', '-l', min=0, help='Show at most N events after filtering'),
    chronological: bool = typer.Option(False, '--chronological', help='Sort by timestamp instead of server order'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Read the conversation transcript of a session."""
    query = EventQuery(kind=event_type, conversational_only=conversation_only, search=search, limit=limit)
    if not asyncio.run(_read_async(session_id, query, max_events or None, chronological, verbose)):
        raise typer.Exit(1)


async def _read_async(
    session_id: str,
    query: EventQuery,
    max_events: int | None,
    chronological: bool,
    verbose: bool,
) -> bool:
    logger = CLILogger(verbose=verbose)
    progress = ProgressPrinter()
    try:
        validate_session_id(session_id)
        async with await create_client(settings, logger) as client:
            typer.echo('Fetching session events...', err=True)
            events = await fetch_events(client, session_id, max_events, progress=progress, logger=logger)
    except Exception as e:
        progress.finish()
        await _report_failure(logger, 'read session', e, verbose)
        return False
    progress.finish()

    if chronological:
        events = sort_chronologically(events)
    shown = query.apply(events)

    echo_lines(format_transcript_header(len(shown), query.describe()))
    for event in shown:
        echo_lines(format_event(event))
    return True


# ==============================================================================
# summary
# ==============================================================================


@app.command()
def summary(
    session_id: str = typer.Argument(..., help='Session ID'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Show a compact summary of a session's conversation."""
    if not asyncio.run(_summary_async(session_id, verbose)):
        raise typer.Exit(1)


async def _summary_async(session_id: str, verbose: bool) -> bool:
    logger = CLILogger(verbose=verbose)
    progress = ProgressPrinter()
    try:
        validate_session_id(session_id)
        async with await create_client(settings, logger) as client:
            session = await get_session(client, session_id)
            typer.echo('Fetching events...', err=True)
            events = await fetch_events(client, session_id, progress=progress, logger=logger)
    except Exception as e:
        progress.finish()
        await _report_failure(logger, 'summarize session', e, verbose)
        return False
    progress.finish()

    echo_lines(format_summary(session, summarize_events(events)))
    return True


# ==============================================================================
# loglines
# ==============================================================================


@app.command()
def loglines(
    session_id: str = typer.Argument(..., help='Session ID'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Show loglines from the session_ingress endpoint."""
    if not asyncio.run(_loglines_async(session_id, verbose)):
        raise typer.Exit(1)


async def _loglines_async(session_id: str, verbose: bool) -> bool:
    logger = CLILogger(verbose=verbose)
    try:
        validate_session_id(session_id)
        async with await create_client(settings, logger) as client:
            typer.echo('Fetching session loglines...', err=True)
            lines = await fetch_loglines(client, session_id)
    except Exception as e:
        await _report_failure(logger, 'fetch loglines', e, verbose)
        return False

    typer.echo()
    typer.echo(f'{typer.style("Session Loglines", bold=True)} ({len(lines)} loglines)')
    typer.echo()
    for log in lines:
        echo_lines(format_logline(log))
    return True


# ==============================================================================
# export
# ==============================================================================


@app.command()
def export(
    session_id: str = typer.Argument(..., help='Session ID'),
    output: Path = typer.Option(Path('session_export.json'), '--output', '-o', help='Output file path'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Export session metadata and all events to a JSON file."""
    if not asyncio.run(_export_async(session_id, output, verbose)):
        raise typer.Exit(1)


async def _export_async(session_id: str, output: Path, verbose: bool) -> bool:
    logger = CLILogger(verbose=verbose)
    progress = ProgressPrinter()
    try:
        validate_session_id(session_id)
        if not output.parent.exists():
            raise InvalidInputError(f'Output directory does not exist: {output.parent}')

        async with await create_client(settings, logger) as client:
            typer.echo('Fetching session metadata...', err=True)
            session = await get_session(client, session_id)
            typer.echo('Fetching all events...', err=True)
            events = await fetch_events(client, session_id, progress=progress, logger=logger)
        progress.finish()

        export_data = build_export(session, events)
        write_export(export_data, output)
    except Exception as e:
        progress.finish()
        await _report_failure(logger, 'export session', e, verbose)
        return False

    typer.echo()
    count = typer.style(str(export_data.total_events), fg=typer.colors.CYAN)
    typer.echo(f'Exported {count} events to {typer.style(str(output), fg=typer.colors.GREEN)}')
    typer.echo()
    return True


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == '__main__':
    main()
