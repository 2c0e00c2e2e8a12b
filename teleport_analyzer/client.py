"""
Async client for the Claude sessions API.

Wraps httpx.AsyncClient with the headers the sessions API requires and maps
transport and HTTP failures onto the package's error taxonomy:

    connection failure / timeout  -> NetworkError (endpoint included, no retry)
    401 / 403                     -> AuthError
    404                           -> NotFoundError
    any other 4xx / 5xx           -> ApiStatusError
    body is not the expected JSON -> DecodeError

Endpoints:
    GET /api/oauth/profile                     organization lookup
    GET /v1/sessions                           session list
    GET /v1/sessions/{id}                      session metadata
    GET /v1/sessions/{id}/events?after_id=     paginated events (page size fixed by server)
    GET /v1/session_ingress/session/{id}       loglines (not paginated)
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, TypeVar

import httpx
import pydantic

from teleport_analyzer.exceptions import ApiStatusError, AuthError, DecodeError, NetworkError, NotFoundError
from teleport_analyzer.schemas.auth import ProfileResponse
from teleport_analyzer.schemas.events import EventPage, decode_page
from teleport_analyzer.schemas.sessions import IngressResponse, Logline, Session, SessionsListResponse

BASE_API_URL = 'https://api.anthropic.com'
ANTHROPIC_VERSION = '2023-06-01'
ANTHROPIC_BETA = 'ccr-byoc-2025-07-29'
ORG_HEADER = 'x-organization-uuid'

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


def _base_headers(access_token: str) -> dict[str, str]:
    return {
        'Authorization': f'Bearer {access_token}',
        'anthropic-version': ANTHROPIC_VERSION,
        'anthropic-beta': ANTHROPIC_BETA,
        'Content-Type': 'application/json',
    }


async def _send_get(
    http: httpx.AsyncClient,
    path: str,
    params: dict[str, str] | None = None,
) -> Any:
    """GET a JSON resource, translating every failure mode into a TeleportError."""
    endpoint = f'GET {path}'
    try:
        response = await http.get(path, params=params)
    except httpx.TimeoutException as e:
        raise NetworkError(endpoint, str(e) or type(e).__name__, timeout=True) from e
    except httpx.DecodingError as e:
        raise DecodeError(f'{endpoint} response', f'body could not be decoded: {e}') from e
    except httpx.RequestError as e:
        raise NetworkError(endpoint, str(e) or type(e).__name__) from e

    if response.status_code in (401, 403):
        raise AuthError(
            f'{endpoint} was rejected ({response.status_code}). '
            f"The access token may be expired - run 'claude' to log in again."
        )
    if response.status_code == 404:
        raise NotFoundError(endpoint, response.status_code, response.text)
    if response.is_error:
        raise ApiStatusError(endpoint, response.status_code, response.text)

    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(f'{endpoint} response', f'body is not valid JSON: {e}') from e


M = TypeVar('M', bound=pydantic.BaseModel)


def _validate(model: type[M], payload: Any, context: str) -> M:
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        raise DecodeError(context, str(e)) from e


async def fetch_org_uuid(
    access_token: str,
    *,
    base_url: str = BASE_API_URL,
    timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    Look up the organization UUID for an access token.

    Raises:
        AuthError: If the token is missing or rejected
        NetworkError: If the profile endpoint is unreachable
    """
    if not access_token:
        raise AuthError('No access token available.')
    async with httpx.AsyncClient(
        base_url=base_url, headers=_base_headers(access_token), timeout=timeout, transport=transport
    ) as http:
        payload = await _send_get(http, '/api/oauth/profile')
    return _validate(ProfileResponse, payload, 'profile response').organization.uuid


class SessionsApiClient:
    """
    Client for the sessions API.

    One instance per command invocation; use as an async context manager so the
    underlying connection pool is closed. Nothing is cached between calls.
    """

    def __init__(
        self,
        access_token: str,
        org_uuid: str,
        *,
        base_url: str = BASE_API_URL,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            access_token: OAuth bearer token
            org_uuid: Organization UUID sent in the x-organization-uuid header
            base_url: API root (overridable for testing)
            timeout: Per-request timeout; expiry raises NetworkError(timeout=True)
            transport: Optional httpx transport (httpx.MockTransport in tests)

        Raises:
            AuthError: If either credential is missing (before any request is made)
        """
        if not access_token:
            raise AuthError('No access token available. Log in with Claude Code first.')
        if not org_uuid:
            raise AuthError('No organization UUID available for this account.')

        headers = _base_headers(access_token)
        headers[ORG_HEADER] = org_uuid
        self._http = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    async def __aenter__(self) -> SessionsApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def list_sessions(self) -> list[Session]:
        """Fetch every session visible to the organization (no server-side filters exist)."""
        payload = await _send_get(self._http, '/v1/sessions')
        return list(_validate(SessionsListResponse, payload, 'sessions list').data)

    async def get_session(self, session_id: str) -> Session:
        """Fetch metadata for one session."""
        payload = await _send_get(self._http, f'/v1/sessions/{session_id}')
        return _validate(Session, payload, f'session {session_id}')

    async def get_events_page(self, session_id: str, after_id: str | None = None) -> EventPage:
        """
        Fetch and decode one page of events.

        Args:
            session_id: Session to read
            after_id: Cursor (id of the last event already seen); None for the first page

        Raises:
            MalformedKnownEvent: If any known-kind record on the page is malformed
        """
        params = {'after_id': after_id} if after_id is not None else None
        payload = await _send_get(self._http, f'/v1/sessions/{session_id}/events', params=params)
        return decode_page(payload)

    async def get_loglines(self, session_id: str) -> list[Logline]:
        """Fetch the compact session_ingress loglines for a session."""
        payload = await _send_get(self._http, f'/v1/session_ingress/session/{session_id}')
        return list(_validate(IngressResponse, payload, f'loglines for {session_id}').loglines)
