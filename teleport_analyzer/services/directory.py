"""
Session directory operations - list and inspect sessions (metadata, not events).

The sessions API has no server-side filters, so list_sessions() fetches the full
list and narrows it here: status and date range first, limit last, so the limit
bounds the filtered result rather than the raw list.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol

from teleport_analyzer.exceptions import InvalidInputError
from teleport_analyzer.schemas.sessions import Logline, Session

SESSION_ID_PREFIX = 'session_'
MIN_SESSION_ID_LENGTH = 16
DEFAULT_LIST_LIMIT = 20

_DATE_ONLY = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class SessionDirectory(Protocol):
    """The subset of SessionsApiClient used for directory operations."""

    async def list_sessions(self) -> list[Session]: ...
    async def get_session(self, session_id: str) -> Session: ...
    async def get_loglines(self, session_id: str) -> list[Logline]: ...


# ==============================================================================
# Input Parsing
# ==============================================================================


def validate_session_id(session_id: str) -> str:
    """
    Check that a session ID looks like session_01... before hitting the API.

    Raises:
        InvalidInputError: If the prefix is missing or the ID is too short
    """
    if not session_id.startswith(SESSION_ID_PREFIX) or len(session_id) < MIN_SESSION_ID_LENGTH:
        raise InvalidInputError(
            f"Invalid session ID format: '{session_id}'. "
            f'Expected format: session_01... (e.g. session_01QJaJSUgfY6khmFTzJaMqph)'
        )
    return session_id


def parse_date_filter(text: str) -> datetime:
    """
    Parse a --after/--before value.

    Accepts YYYY-MM-DD (midnight UTC) or a full ISO-8601 timestamp
    (naive timestamps are taken as UTC).

    Raises:
        InvalidInputError: If the value matches neither format
    """
    value = text.strip()
    try:
        if _DATE_ONLY.match(value):
            return datetime.combine(date.fromisoformat(value), datetime.min.time(), tzinfo=UTC)
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise InvalidInputError(
            f"Invalid date format: '{text}'. Use YYYY-MM-DD or ISO8601 (e.g. 2025-01-15T00:00:00Z)"
        ) from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


# ==============================================================================
# Filtering
# ==============================================================================


@dataclass(frozen=True)
class DateRange:
    """
    Half-open creation-time window [start, end).

    Either bound may be None (unbounded on that side). Sessions without a
    parseable created_at always pass.
    """

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidInputError(f'Date range start {self.start.isoformat()} is after end {self.end.isoformat()}')

    def contains(self, moment: datetime | None) -> bool:
        if moment is None:
            return True
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment >= self.end:
            return False
        return True


def filter_sessions(
    sessions: Sequence[Session],
    date_range: DateRange | None = None,
    status: str | None = None,
    limit: int | None = DEFAULT_LIST_LIMIT,
) -> list[Session]:
    """Apply status and date filters in list order, then keep the first `limit`."""
    if limit is not None and limit < 0:
        raise ValueError(f'limit must be >= 0, got {limit}')
    matched = [
        s
        for s in sessions
        if (status is None or s.session_status == status) and (date_range is None or date_range.contains(s.created))
    ]
    return matched if limit is None else matched[:limit]


# ==============================================================================
# Operations
# ==============================================================================


@dataclass(frozen=True)
class SessionListing:
    """Filtered sessions plus the size of the unfiltered list they came from."""

    sessions: list[Session]
    total: int


async def fetch_session_listing(
    client: SessionDirectory,
    date_range: DateRange | None = None,
    status: str | None = None,
    limit: int | None = DEFAULT_LIST_LIMIT,
) -> SessionListing:
    """
    List sessions, filtered client-side, keeping the unfiltered count.

    Args:
        client: Sessions API client
        date_range: Optional creation-time window
        status: Exact session_status to keep
        limit: Maximum sessions returned after filtering (None for all)
    """
    everything = await client.list_sessions()
    return SessionListing(
        sessions=filter_sessions(everything, date_range=date_range, status=status, limit=limit),
        total=len(everything),
    )


async def list_sessions(
    client: SessionDirectory,
    date_range: DateRange | None = None,
    status: str | None = None,
    limit: int | None = DEFAULT_LIST_LIMIT,
) -> list[Session]:
    """List sessions, filtered client-side (see fetch_session_listing)."""
    listing = await fetch_session_listing(client, date_range=date_range, status=status, limit=limit)
    return listing.sessions


async def get_session(client: SessionDirectory, session_id: str) -> Session:
    """
    Fetch one session's metadata.

    Raises:
        InvalidInputError: If the ID is malformed (no request is made)
        NotFoundError: If the session does not exist
    """
    return await client.get_session(validate_session_id(session_id))


async def fetch_loglines(client: SessionDirectory, session_id: str) -> list[Logline]:
    """Fetch the compact loglines for a session (single request, not paginated)."""
    return await client.get_loglines(validate_session_id(session_id))
