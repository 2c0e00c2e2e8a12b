"""
Schema definitions for claude-teleport-analyzer.

This package contains Pydantic models for the sessions API:
- events: transcript events and content blocks (open discriminated unions)
- sessions: session metadata and session_ingress loglines
- auth: OAuth credentials and the profile endpoint
"""

from __future__ import annotations

from teleport_analyzer.schemas.events import EventPage, SessionEvent, decode_event, serialize_event
from teleport_analyzer.schemas.sessions import Logline, Session
from teleport_analyzer.schemas.types import BaseStrictModel, PermissiveModel, WireModel

__all__ = [
    'BaseStrictModel',
    'EventPage',
    'Logline',
    'PermissiveModel',
    'Session',
    'SessionEvent',
    'WireModel',
    'decode_event',
    'serialize_event',
]
