"""
Pydantic models for Claude Code OAuth credentials and the profile endpoint.

The access token is held as SecretStr so it never appears in repr() or logs.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Annotated

import pydantic

from teleport_analyzer.schemas.types import WireModel


class OAuthToken(WireModel):
    """The claudeAiOauth entry of .credentials.json (subscription details kept as extras)."""

    accessToken: Annotated[pydantic.SecretStr, pydantic.Field(strict=False)]
    refreshToken: Annotated[pydantic.SecretStr | None, pydantic.Field(strict=False)] = None
    expiresAt: int | None = None  # Milliseconds since epoch
    scopes: Sequence[str] = ()

    @property
    def is_expired(self) -> bool:
        if self.expiresAt is None:
            return False
        return self.expiresAt / 1000 < time.time()


class OAuthCredentials(WireModel):
    claudeAiOauth: OAuthToken


class OrgInfo(WireModel):
    uuid: str


class ProfileResponse(WireModel):
    """Response of GET /api/oauth/profile (account details kept as extras)."""

    organization: OrgInfo
