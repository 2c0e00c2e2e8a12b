"""
Local query pipeline over fetched events.

The sessions API has no server-side filtering, so every filter runs here.
All functions are pure: they return new lists and never mutate their input.
Filters preserve order and compose by sequential application; a filter that
matches nothing yields an empty list, never an error.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import pydantic

from teleport_analyzer.schemas.events import SessionEvent
from teleport_analyzer.schemas.types import BaseStrictModel


def filter_by_kind(events: Sequence[SessionEvent], kind: str) -> list[SessionEvent]:
    """Keep events whose kind equals `kind` (unknown kinds simply match nothing)."""
    return [e for e in events if e.kind == kind]


def filter_conversational(events: Sequence[SessionEvent]) -> list[SessionEvent]:
    """Keep system/user/assistant/result events."""
    return [e for e in events if e.is_conversational]


def event_matches(event: SessionEvent, query: str) -> bool:
    """Case-insensitive substring match against every searchable fragment of the event."""
    if not query:
        return True
    needle = query.casefold()
    return any(needle in fragment.casefold() for fragment in event.searchable_text())


def search_events(events: Sequence[SessionEvent], query: str) -> list[SessionEvent]:
    """Keep events containing `query` (case-insensitive). Empty query keeps everything."""
    return [e for e in events if event_matches(e, query)]


def truncate_events(events: Sequence[SessionEvent], limit: int | None) -> list[SessionEvent]:
    """Keep the first `limit` events (None keeps all)."""
    if limit is None:
        return list(events)
    if limit < 0:
        raise ValueError(f'limit must be >= 0, got {limit}')
    return list(events[:limit])


def sort_chronologically(events: Sequence[SessionEvent]) -> list[SessionEvent]:
    """
    Order events by timestamp (stable).

    Events without a timestamp keep their relative order after all timestamped events.
    """
    timestamped: list[tuple[datetime, int, SessionEvent]] = []
    untimed: list[SessionEvent] = []
    for position, event in enumerate(events):
        ts = event.timestamp
        if ts is None:
            untimed.append(event)
        else:
            timestamped.append((ts, position, event))
    timestamped.sort(key=lambda item: (item[0], item[1]))
    return [event for _, _, event in timestamped] + untimed


class EventQuery(BaseStrictModel):
    """
    A composed query: kind -> conversational -> search -> limit.

    The limit applies last, after every other filter, so it bounds the
    displayed result rather than the fetched transcript.
    """

    kind: str | None = None
    conversational_only: bool = False
    search: str | None = None
    limit: int | None = pydantic.Field(None, ge=0)

    def apply(self, events: Sequence[SessionEvent]) -> list[SessionEvent]:
        result = list(events)
        if self.kind is not None:
            result = filter_by_kind(result, self.kind)
        if self.conversational_only:
            result = filter_conversational(result)
        if self.search:
            result = search_events(result, self.search)
        return truncate_events(result, self.limit)

    def describe(self) -> list[str]:
        """Human-readable labels for the active filters."""
        labels = []
        if self.kind is not None:
            labels.append(f'type: {self.kind}')
        if self.conversational_only:
            labels.append('conversation only')
        if self.search:
            labels.append(f'search: "{self.search}"')
        if self.limit is not None:
            labels.append(f'limit: {self.limit}')
        return labels
