"""
Pydantic models for session metadata and loglines.

Session records come from GET /v1/sessions and GET /v1/sessions/{id}.
Loglines come from GET /v1/session_ingress/session/{id} - a compact,
non-paginated transcript with its own camelCase record shape.

All fields are optional except the session id: the API omits fields freely
and adds new ones without notice (kept as extra fields).
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import pydantic

from teleport_analyzer.schemas.types import WireModel, parse_timestamp

# Statuses observed so far. session_status stays an open string - the API may add more.
KNOWN_SESSION_STATUSES = ('running', 'idle', 'completed', 'failed', 'error')


# ==============================================================================
# Session Context
# ==============================================================================


class SessionSource(WireModel):
    """Repository the session was started from."""

    type: str | None = None
    url: str | None = None
    revision: str | None = None


class GitInfo(WireModel):
    type: str | None = None
    repo: str | None = None
    branches: Sequence[str] | None = None


class SessionOutcome(WireModel):
    """Result of a session (e.g. branches pushed to a repo)."""

    type: str | None = None
    git_info: GitInfo | None = None


class SessionContext(WireModel):
    model: str | None = None
    cwd: str | None = None
    sources: Sequence[SessionSource] | None = None
    outcomes: Sequence[SessionOutcome] | None = None
    allowed_tools: Sequence[str] | None = None
    disallowed_tools: Sequence[str] | None = None
    knowledge_base_ids: Sequence[str] | None = None


# ==============================================================================
# Session
# ==============================================================================


class Session(WireModel):
    """Remote session metadata. Owned by the API; never cached across invocations."""

    id: str
    title: str | None = None
    session_status: str | None = None
    type: str | None = None  # Session type (e.g. 'remote')
    created_at: str | None = None
    updated_at: str | None = None
    environment_id: str | None = None
    session_context: SessionContext | None = None
    metadata: pydantic.JsonValue = None
    active_mount_paths: Sequence[str] | None = None

    @property
    def status(self) -> str:
        return self.session_status or 'unknown'

    @property
    def created(self) -> datetime | None:
        return parse_timestamp(self.created_at)

    @property
    def updated(self) -> datetime | None:
        return parse_timestamp(self.updated_at)

    @property
    def model(self) -> str | None:
        return self.session_context.model if self.session_context else None

    @property
    def repository(self) -> str | None:
        """URL of the first source repository, if any."""
        if not self.session_context or not self.session_context.sources:
            return None
        return self.session_context.sources[0].url

    @property
    def branches(self) -> list[str]:
        """All branch names reported by the session's git outcomes, in order."""
        if not self.session_context or not self.session_context.outcomes:
            return []
        branches: list[str] = []
        for outcome in self.session_context.outcomes:
            if outcome.git_info and outcome.git_info.branches:
                branches.extend(outcome.git_info.branches)
        return branches


class SessionsListResponse(WireModel):
    data: Sequence[Session]


# ==============================================================================
# Loglines (session_ingress)
# ==============================================================================


class Logline(WireModel):
    """Compact transcript line. Additional fields are captured as extras."""

    type: str | None = None
    subtype: str | None = None
    content: str | None = None
    timestamp: str | None = None
    gitBranch: str | None = None
    sessionId: str | None = None
    cwd: str | None = None
    level: str | None = None
    isMeta: bool | None = None
    isSidechain: bool | None = None
    slug: str | None = None
    compactMetadata: pydantic.JsonValue = None


class IngressResponse(WireModel):
    loglines: Sequence[Logline]
