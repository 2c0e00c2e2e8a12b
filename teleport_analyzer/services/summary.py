"""Compact per-session summary: event counts, tool-use summaries, user prompts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from teleport_analyzer.schemas.events import SessionEvent, ToolUseSummaryEvent, UserEvent
from teleport_analyzer.schemas.types import BaseStrictModel


class KindCount(BaseStrictModel):
    kind: str
    count: int


class SessionSummary(BaseStrictModel):
    """Aggregate view of a transcript."""

    total_events: int
    kind_counts: Sequence[KindCount]  # Most frequent first
    tool_use_summaries: Sequence[str]
    user_messages: Sequence[str]  # Prompts typed by the user (plain string content only)


def summarize_events(events: Sequence[SessionEvent]) -> SessionSummary:
    """
    Summarize a transcript.

    Kind counts are sorted by count descending; ties keep first-seen order.
    Tool-result turns (user events carrying content blocks) are not counted
    as user messages.
    """
    counts = Counter(event.kind for event in events)
    summaries = [e.summary for e in events if isinstance(e, ToolUseSummaryEvent) and e.summary]
    prompts = [e.message.content for e in events if isinstance(e, UserEvent) and isinstance(e.message.content, str)]
    return SessionSummary(
        total_events=len(events),
        kind_counts=[KindCount(kind=kind, count=count) for kind, count in counts.most_common()],
        tool_use_summaries=summaries,
        user_messages=prompts,
    )
