"""
Shared exceptions for claude-teleport-analyzer.

Exception Hierarchy:
    TeleportError (base)
    ├── AuthError (missing/invalid credentials, rejected token)
    ├── NetworkError (connection failure or timeout)
    ├── ApiStatusError (HTTP 4xx/5xx from the sessions API)
    │   └── NotFoundError (session does not exist)
    ├── DecodeError (response body does not match the API contract)
    │   └── EventDecodeError (a single event record cannot be decoded)
    │       └── MalformedKnownEvent (known event kind with an invalid payload)
    └── InvalidInputError (bad session ID or date filter)

Unknown event kinds are NOT errors - they decode into UnknownEvent.
"""

from __future__ import annotations


class TeleportError(Exception):
    """Base exception for all claude-teleport-analyzer errors."""


class AuthError(TeleportError):
    """Raised when credentials are missing, unreadable, or rejected by the API."""


class NetworkError(TeleportError):
    """Raised when a request fails before an HTTP response is received."""

    def __init__(self, endpoint: str, reason: str, *, timeout: bool = False) -> None:
        self.endpoint = endpoint
        self.reason = reason
        self.timeout = timeout
        kind = 'Timed out' if timeout else 'Failed to connect'
        super().__init__(f'{kind} requesting {endpoint}: {reason}')


class ApiStatusError(TeleportError):
    """Raised when the API answers with an error status."""

    def __init__(self, endpoint: str, status_code: int, body: str) -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        super().__init__(f'{endpoint} failed: {status_code} - {body[:500]}')


class NotFoundError(ApiStatusError):
    """Raised when the requested session does not exist (HTTP 404)."""


class DecodeError(TeleportError):
    """Raised when a response body violates the expected shape."""

    def __init__(self, context: str, detail: str) -> None:
        self.context = context
        self.detail = detail
        super().__init__(f'Failed to decode {context}: {detail}')


class EventDecodeError(DecodeError):
    """Raised when a single event record cannot be decoded at all (not an object, no type)."""

    def __init__(self, index: int | None, detail: str) -> None:
        self.index = index
        context = f'event #{index}' if index is not None else 'event'
        super().__init__(context, detail)


class MalformedKnownEvent(EventDecodeError):
    """Raised when an event of a known kind does not match that kind's payload shape."""

    def __init__(self, kind: str, index: int | None, detail: str) -> None:
        self.kind = kind
        super().__init__(index, f"payload does not match known event kind '{kind}': {detail}")


class InvalidInputError(TeleportError):
    """Raised for malformed user input (session IDs, date filters)."""
