"""
Event fetch engine - assembles a session transcript from cursor-paginated pages.

The loop is an explicit state machine:

    (no cursor) -> request page -> append events
        reached max_events      -> truncate, stop (no further request)
        has_more is false       -> stop (transcript complete)
        otherwise               -> cursor = page cursor, request next page

Events are kept in server order. Pages are requested one at a time; there is
no retry, so a failed request surfaces to the caller as-is.
"""

from __future__ import annotations

from typing import Protocol

from teleport_analyzer.exceptions import DecodeError
from teleport_analyzer.protocols import LoggerProtocol, NullLogger, ProgressCallback
from teleport_analyzer.schemas.events import EventPage, SessionEvent


class EventPageSource(Protocol):
    """Anything that can return one decoded events page (SessionsApiClient, test fakes)."""

    async def get_events_page(self, session_id: str, after_id: str | None = None) -> EventPage: ...


async def _report_progress(progress: ProgressCallback | None, fetched: int, logger: LoggerProtocol) -> None:
    """Progress is a side channel: a failing callback is logged, never raised."""
    if progress is None:
        return
    try:
        progress(fetched)
    except Exception as e:
        await logger.warning(f'Progress callback failed: {e}')


async def fetch_events(
    source: EventPageSource,
    session_id: str,
    max_events: int | None = None,
    *,
    progress: ProgressCallback | None = None,
    logger: LoggerProtocol | None = None,
) -> list[SessionEvent]:
    """
    Fetch a session's events page by page.

    Args:
        source: Page source (normally a SessionsApiClient)
        session_id: Session to read
        max_events: Upper bound on returned events; None fetches everything.
            0 returns an empty list without issuing any request.
        progress: Called with the cumulative event count after each page
        logger: Optional logger for page-level debug messages

    Returns:
        Events in server order, at most max_events long

    Raises:
        NotFoundError: If the session does not exist (raised by the first request)
        NetworkError / ApiStatusError: On request failure (no partial result)
        MalformedKnownEvent: If any page holds a malformed known-kind event
        DecodeError: If the server claims more pages but provides no usable cursor
    """
    if max_events is not None and max_events < 0:
        raise ValueError(f'max_events must be >= 0, got {max_events}')
    if max_events == 0:
        return []

    logger = logger or NullLogger()
    events: list[SessionEvent] = []
    cursor: str | None = None
    page_number = 0

    while True:
        page = await source.get_events_page(session_id, after_id=cursor)
        page_number += 1
        events.extend(page.events)

        if max_events is not None and len(events) >= max_events:
            del events[max_events:]
            await _report_progress(progress, len(events), logger)
            await logger.info(f'Reached max_events={max_events} on page {page_number}')
            return events

        await _report_progress(progress, len(events), logger)

        if not page.has_more:
            await logger.info(f'Fetched {len(events)} events in {page_number} page(s)')
            return events

        next_cursor = page.next_cursor
        if next_cursor is None:
            raise DecodeError(f'events page {page_number} for {session_id}', 'has_more is true but no cursor given')
        if next_cursor == cursor:
            raise DecodeError(f'events page {page_number} for {session_id}', f'cursor {cursor} did not advance')
        cursor = next_cursor
