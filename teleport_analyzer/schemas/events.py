"""
Pydantic models for session transcript events returned by the sessions API.

A transcript is a sequence of heterogeneous records from
GET /v1/sessions/{id}/events, each tagged by its 'type' field.

Decoding policy:
- Known kinds bind to strict payload models. A known kind whose payload does not
  match its model is an API contract violation -> MalformedKnownEvent.
- Any other 'type' decodes into UnknownEvent, keeping the raw label and payload.
  Decoding a page never fails because the API introduced a new event kind.
- Content blocks inside messages follow the same rule, with OtherBlock as the fallback.

Uniform accessors (no caller needs to switch on the concrete class):
- kind: discriminant string ('unknown' for UnknownEvent; raw label in raw_kind)
- timestamp: aware UTC datetime parsed from created_at, or None
- is_conversational: True only for system/user/assistant/result
- searchable_text(): every human-readable fragment used by text search

Round-trip serialization:
- serialize_event() uses model_dump(mode='json', exclude_unset=True)
- decode_event(serialize_event(e)) == e for every variant, including UnknownEvent
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Literal

import pydantic

from teleport_analyzer.exceptions import DecodeError, EventDecodeError, MalformedKnownEvent
from teleport_analyzer.schemas.types import PermissiveModel, WireModel, parse_timestamp

# ==============================================================================
# Event Kinds
# ==============================================================================

KNOWN_EVENT_KINDS = frozenset(
    {
        'system',
        'user',
        'assistant',
        'tool_use_summary',
        'tool_progress',
        'result',
        'control_response',
        'env_manager_log',
    }
)

# Kinds that make up the human-readable dialogue (the --conversation-only filter)
CONVERSATIONAL_KINDS = frozenset({'system', 'user', 'assistant', 'result'})

UNKNOWN_KIND = 'unknown'

KNOWN_BLOCK_TYPES = frozenset({'thinking', 'text', 'tool_use', 'tool_result'})

OTHER_BLOCK = 'other'


def json_text(value: object) -> str:
    """Serialize a JSON value for substring search (non-ASCII kept readable)."""
    return json.dumps(value, ensure_ascii=False)


def _tag_for(value: Any, known: frozenset[str], fallback: str) -> str | None:
    """Map a raw record (or an already-built model) to its union tag."""
    if isinstance(value, Mapping):
        kind = value.get('type')
    else:
        kind = getattr(value, 'type', None)
    if not isinstance(kind, str):
        return None
    return kind if kind in known else fallback


def _content_block_tag(value: Any) -> str | None:
    return _tag_for(value, KNOWN_BLOCK_TYPES, OTHER_BLOCK)


def _event_tag(value: Any) -> str | None:
    return _tag_for(value, KNOWN_EVENT_KINDS, UNKNOWN_KIND)


# ==============================================================================
# Message Content Blocks (Open Discriminated Union)
# ==============================================================================


class BaseContentBlock(WireModel):
    """Base class for content blocks inside user and assistant messages."""

    type: str

    def searchable_text(self) -> Iterator[str]:
        return iter(())


class ThinkingBlock(BaseContentBlock):
    """Internal reasoning from the assistant."""

    type: Literal['thinking']
    thinking: str | None = None
    signature: str | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.thinking:
            yield self.thinking


class TextBlock(BaseContentBlock):
    """Visible text."""

    type: Literal['text']
    text: str | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.text:
            yield self.text


class ToolUseBlock(BaseContentBlock):
    """Tool invocation: tool name plus its structured input."""

    type: Literal['tool_use']
    id: str | None = None
    name: str | None = None
    input: pydantic.JsonValue = None

    def searchable_text(self) -> Iterator[str]:
        if self.name:
            yield self.name
        if self.input is not None:
            yield json_text(self.input)


class ToolResultBlock(BaseContentBlock):
    """Output of a tool invocation, referenced by tool_use_id."""

    type: Literal['tool_result']
    tool_use_id: str | None = None
    # Candidate shapes tried in order: nested blocks, plain string, any other JSON.
    # A list of dicts without a usable 'type' falls through to raw JSON.
    content: Annotated[
        Sequence[ContentBlock] | str | pydantic.JsonValue,
        pydantic.Field(union_mode='left_to_right'),
    ] = None
    is_error: bool | None = None

    def searchable_text(self) -> Iterator[str]:
        content = self.content
        if content is None:
            return
        if isinstance(content, str):
            yield content
        elif isinstance(content, Sequence) and all(isinstance(b, BaseContentBlock) for b in content):
            for block in content:
                yield from block.searchable_text()
        else:
            yield json_text(content)

    def output_text(self) -> str:
        """Tool output flattened to a single string for display."""
        if isinstance(self.content, str):
            return self.content
        return '\n'.join(self.searchable_text())


class OtherBlock(BaseContentBlock):
    """Fallback for unrecognized block types (redacted_thinking, image, ...).

    The raw body is preserved in extra fields but not searched.
    """

    type: str


ContentBlock = Annotated[
    Annotated[ThinkingBlock, pydantic.Tag('thinking')]
    | Annotated[TextBlock, pydantic.Tag('text')]
    | Annotated[ToolUseBlock, pydantic.Tag('tool_use')]
    | Annotated[ToolResultBlock, pydantic.Tag('tool_result')]
    | Annotated[OtherBlock, pydantic.Tag(OTHER_BLOCK)],
    pydantic.Discriminator(_content_block_tag),
]

ToolResultBlock.model_rebuild()


# User content has no tag distinguishing its two shapes. Candidates are tried
# left-to-right: structured blocks first, then a plain string. Both cannot match
# the same input (a JSON string is never a sequence of blocks).
UserContent = Annotated[
    Sequence[ContentBlock] | str,
    pydantic.Field(union_mode='left_to_right'),
]


# ==============================================================================
# Messages
# ==============================================================================


class UserMessage(WireModel):
    """Body of a user event."""

    role: str | None = None
    content: UserContent

    @property
    def text(self) -> str | None:
        """Plain text of the message (string content or joined text blocks), None if there is none."""
        if isinstance(self.content, str):
            return self.content
        parts = [b.text for b in self.content if isinstance(b, TextBlock) and b.text]
        return '\n'.join(parts) if parts else None


class AssistantMessage(WireModel):
    """Body of an assistant event."""

    role: str | None = None
    content: Sequence[ContentBlock]


# ==============================================================================
# Events
# ==============================================================================


class BaseEvent(WireModel):
    """Base class for every event variant, known or not."""

    type: str

    @property
    def kind(self) -> str:
        return self.type

    @property
    def event_id(self) -> str | None:
        value = getattr(self, 'id', None)
        return value if isinstance(value, str) else None

    @property
    def timestamp(self) -> datetime | None:
        value = getattr(self, 'created_at', None)
        return parse_timestamp(value) if isinstance(value, str) else None

    @property
    def is_conversational(self) -> bool:
        return self.kind in CONVERSATIONAL_KINDS

    def searchable_text(self) -> Iterator[str]:
        return iter(())


class KnownEvent(BaseEvent):
    """Fields shared by all known event kinds."""

    id: str | None = None
    uuid: str | None = None
    created_at: str | None = None


class SystemEvent(KnownEvent):
    """System record (init, status changes). Carries the session environment."""

    type: Literal['system']
    subtype: str | None = None
    session_id: str | None = None
    model: str | None = None
    cwd: str | None = None
    claude_code_version: str | None = None
    tools: Sequence[str] | None = None
    agents: Sequence[str] | None = None
    skills: Sequence[str] | None = None
    slash_commands: Sequence[str] | None = None
    mcp_servers: Sequence[pydantic.JsonValue] | None = None
    permissionMode: str | None = None
    fast_mode_state: str | None = None
    output_style: str | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.subtype:
            yield self.subtype
        if self.model:
            yield self.model


class UserEvent(KnownEvent):
    """User turn (prompt or tool results)."""

    type: Literal['user']
    session_id: str | None = None
    message: UserMessage
    parent_tool_use_id: str | None = None
    isReplay: bool | None = None

    def searchable_text(self) -> Iterator[str]:
        content = self.message.content
        if isinstance(content, str):
            yield content
        else:
            for block in content:
                yield from block.searchable_text()


class AssistantEvent(KnownEvent):
    """Assistant turn made of content blocks."""

    type: Literal['assistant']
    session_id: str | None = None
    message: AssistantMessage

    def searchable_text(self) -> Iterator[str]:
        for block in self.message.content:
            yield from block.searchable_text()


class ToolUseSummaryEvent(KnownEvent):
    """Condensed description of preceding tool calls."""

    type: Literal['tool_use_summary']
    session_id: str | None = None
    summary: str | None = None
    preceding_tool_use_ids: Sequence[str] | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.summary:
            yield self.summary


class ToolProgressEvent(KnownEvent):
    """Heartbeat emitted while a tool is running."""

    type: Literal['tool_progress']
    session_id: str | None = None
    tool_name: str | None = None
    tool_use_id: str | None = None
    parent_tool_use_id: str | None = None
    elapsed_time_seconds: float | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.tool_name:
            yield self.tool_name


class ResultEvent(KnownEvent):
    """End-of-turn result with timing and error information."""

    type: Literal['result']
    subtype: str | None = None
    duration_ms: int | None = None
    duration_api_ms: int | None = None
    num_turns: int | None = None
    is_error: bool | None = None
    result: str | None = None
    total_cost_usd: float | None = None
    errors: Sequence[str] | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.result:
            yield self.result
        if self.errors:
            yield from self.errors


class ControlResponseData(WireModel):
    subtype: str | None = None
    request_id: str | None = None


class ControlResponseEvent(KnownEvent):
    """Acknowledgement of a control request (interrupt, resume, ...)."""

    type: Literal['control_response']
    response: ControlResponseData | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.response and self.response.subtype:
            yield self.response.subtype


class EnvManagerLogData(WireModel):
    category: str | None = None
    content: str | None = None
    level: str | None = None
    timestamp: str | None = None
    extra: pydantic.JsonValue = None


class EnvManagerLogEvent(KnownEvent):
    """Log line from the remote environment manager (setup, git, ...)."""

    type: Literal['env_manager_log']
    data: EnvManagerLogData | None = None

    def searchable_text(self) -> Iterator[str]:
        if self.data is None:
            return
        if self.data.category:
            yield self.data.category
        if self.data.content:
            yield self.data.content


class UnknownEvent(BaseEvent):
    """
    Fallback for event kinds this client does not know yet.

    Only the 'type' field is modeled; everything else (id, created_at included)
    lands in extra fields untouched, so any payload shape is accepted.
    """

    type: str

    @property
    def kind(self) -> str:
        return UNKNOWN_KIND

    @property
    def raw_kind(self) -> str:
        return self.type

    @property
    def raw_payload(self) -> dict[str, object]:
        return self.get_extra_fields()

    def searchable_text(self) -> Iterator[str]:
        # Label only; the raw payload is not searched.
        yield self.type


# ==============================================================================
# Session Event (Open Discriminated Union)
# ==============================================================================

SessionEvent = Annotated[
    Annotated[SystemEvent, pydantic.Tag('system')]
    | Annotated[UserEvent, pydantic.Tag('user')]
    | Annotated[AssistantEvent, pydantic.Tag('assistant')]
    | Annotated[ToolUseSummaryEvent, pydantic.Tag('tool_use_summary')]
    | Annotated[ToolProgressEvent, pydantic.Tag('tool_progress')]
    | Annotated[ResultEvent, pydantic.Tag('result')]
    | Annotated[ControlResponseEvent, pydantic.Tag('control_response')]
    | Annotated[EnvManagerLogEvent, pydantic.Tag('env_manager_log')]
    | Annotated[UnknownEvent, pydantic.Tag(UNKNOWN_KIND)],
    pydantic.Discriminator(_event_tag),
]

SessionEventAdapter: pydantic.TypeAdapter[SessionEvent] = pydantic.TypeAdapter(SessionEvent)


def _format_validation_error(error: pydantic.ValidationError, limit: int = 5) -> str:
    parts = []
    for detail in error.errors()[:limit]:
        location = '.'.join(str(part) for part in detail['loc'])
        parts.append(f'{location}: {detail["msg"]}')
    if error.error_count() > limit:
        parts.append(f'... and {error.error_count() - limit} more')
    return '; '.join(parts)


def decode_event(record: object, index: int | None = None) -> SessionEvent:
    """
    Decode one raw event record.

    Args:
        record: A JSON object from the events endpoint
        index: Position within its page (for error messages)

    Returns:
        The typed event (UnknownEvent for unrecognized kinds)

    Raises:
        EventDecodeError: If the record is not an object or has no string 'type'
        MalformedKnownEvent: If a known kind's payload does not match its model
    """
    if not isinstance(record, dict):
        raise EventDecodeError(index, f'expected a JSON object, got {type(record).__name__}')
    kind = record.get('type')
    if not isinstance(kind, str):
        raise EventDecodeError(index, "missing string 'type' field")
    try:
        return SessionEventAdapter.validate_python(record)
    except pydantic.ValidationError as e:
        raise MalformedKnownEvent(kind, index, _format_validation_error(e)) from e


def serialize_event(event: SessionEvent) -> dict[str, Any]:
    """Serialize an event back to its wire representation (full fidelity)."""
    return event.model_dump(mode='json', exclude_unset=True)


# ==============================================================================
# Event Pages
# ==============================================================================


class EventsResponse(WireModel):
    """Raw envelope of one events page. Records are decoded one by one by decode_page()."""

    data: Sequence[Any]
    first_id: str | None = None
    last_id: str | None = None
    has_more: bool | None = None


@dataclass(frozen=True)
class EventPage:
    """One decoded page of events. Only lives inside the fetch loop."""

    events: Sequence[SessionEvent]
    has_more: bool
    first_id: str | None = None
    last_id: str | None = None

    @property
    def next_cursor(self) -> str | None:
        """Cursor for the following page: last_id, else the last event's id."""
        if self.last_id:
            return self.last_id
        if self.events:
            return self.events[-1].event_id
        return None


def decode_page(payload: object) -> EventPage:
    """
    Decode an events response body into an EventPage.

    Raises:
        DecodeError: If the envelope is malformed
        EventDecodeError / MalformedKnownEvent: On the first undecodable record
    """
    try:
        envelope = EventsResponse.model_validate(payload)
    except pydantic.ValidationError as e:
        raise DecodeError('events page', _format_validation_error(e)) from e

    events = [decode_event(record, index=i) for i, record in enumerate(envelope.data)]
    return EventPage(
        events=events,
        has_more=envelope.has_more is True,
        first_id=envelope.first_id,
        last_id=envelope.last_id,
    )
