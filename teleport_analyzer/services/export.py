"""
JSON export of a session and its full transcript.

Export format:
    {
      "session": {...},          # session metadata as returned by the API
      "events": [...],           # every event, wire representation
      "exported_at": "...",      # ISO-8601 UTC
      "total_events": N
    }

Serialization keeps every decoded field, including UnknownEvent payloads,
so load_export(export_to_bytes(x)) reproduces x.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pydantic

from teleport_analyzer.exceptions import DecodeError
from teleport_analyzer.schemas.events import SessionEvent, decode_event, serialize_event
from teleport_analyzer.schemas.sessions import Session


class SessionExport(pydantic.BaseModel):
    """A session plus its transcript, as written by the export command."""

    model_config = pydantic.ConfigDict(frozen=True)

    session: Session
    events: Sequence[SessionEvent]
    exported_at: str
    total_events: int

    @pydantic.model_validator(mode='after')
    def check_total(self) -> SessionExport:
        if self.total_events != len(self.events):
            raise ValueError(f'total_events is {self.total_events} but {len(self.events)} events are present')
        return self


def build_export(
    session: Session,
    events: Sequence[SessionEvent],
    exported_at: datetime | None = None,
) -> SessionExport:
    moment = exported_at or datetime.now(UTC)
    return SessionExport(
        session=session,
        events=list(events),
        exported_at=moment.isoformat(),
        total_events=len(events),
    )


def _export_document(export: SessionExport) -> dict[str, Any]:
    return {
        'session': export.session.model_dump(mode='json', exclude_unset=True),
        'events': [serialize_event(event) for event in export.events],
        'exported_at': export.exported_at,
        'total_events': export.total_events,
    }


def export_to_bytes(export: SessionExport) -> bytes:
    """Pretty-printed UTF-8 JSON."""
    return json.dumps(_export_document(export), indent=2, ensure_ascii=False).encode('utf-8')


def load_export(data: bytes) -> SessionExport:
    """
    Parse an export file back into typed values.

    Raises:
        DecodeError: If the bytes are not a valid export document
        MalformedKnownEvent: If an exported event no longer matches its kind's model
    """
    try:
        document = json.loads(data)
    except ValueError as e:
        raise DecodeError('export file', f'not valid JSON: {e}') from e
    if not isinstance(document, dict):
        raise DecodeError('export file', 'top level is not a JSON object')

    raw_events = document.get('events')
    if not isinstance(raw_events, list):
        raise DecodeError('export file', "'events' is missing or not a list")
    events = [decode_event(record, index=i) for i, record in enumerate(raw_events)]

    try:
        return SessionExport(
            session=Session.model_validate(document.get('session')),
            events=events,
            exported_at=document.get('exported_at'),
            total_events=document.get('total_events'),
        )
    except pydantic.ValidationError as e:
        raise DecodeError('export file', str(e)) from e


def write_export(export: SessionExport, path: Path) -> None:
    """Write an export to disk. OSError propagates (missing directory, permissions)."""
    path.write_bytes(export_to_bytes(export))
