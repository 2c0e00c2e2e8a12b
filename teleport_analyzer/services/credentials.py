"""
Credential resolution for the sessions API.

Lookup order for the access token:
1. TELEPORT_ACCESS_TOKEN environment override
2. macOS Keychain entry written by Claude Code ("Claude Code-credentials")
3. $CLAUDE_CONFIG_DIR/.credentials.json, else ~/.claude/.credentials.json

The organization UUID comes from TELEPORT_ORG_UUID when set, otherwise from
the OAuth profile endpoint.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import httpx
import pydantic

from teleport_analyzer.client import SessionsApiClient, fetch_org_uuid
from teleport_analyzer.config.base import TeleportSettings
from teleport_analyzer.exceptions import AuthError
from teleport_analyzer.protocols import LoggerProtocol, NullLogger
from teleport_analyzer.schemas.auth import OAuthCredentials

CREDENTIALS_FILENAME = '.credentials.json'
KEYCHAIN_SERVICE = 'Claude Code-credentials'


def credentials_file_path(config_dir: Path | None = None) -> Path:
    """Path to .credentials.json, respecting CLAUDE_CONFIG_DIR."""
    if config_dir is not None:
        return config_dir / CREDENTIALS_FILENAME
    return Path.home() / '.claude' / CREDENTIALS_FILENAME


def parse_credentials(raw: str, source: str) -> OAuthCredentials:
    """Parse credentials JSON; source names where it came from for the error message."""
    try:
        return OAuthCredentials.model_validate_json(raw.strip())
    except pydantic.ValidationError as e:
        raise AuthError(f'Failed to parse credentials JSON from {source}: {e.error_count()} validation error(s)') from e


def load_credentials_from_file(path: Path) -> OAuthCredentials:
    """
    Load credentials from a .credentials.json file.

    Raises:
        AuthError: If the file cannot be read or parsed
    """
    try:
        raw = path.read_text(encoding='utf-8')
    except OSError as e:
        raise AuthError(f'Failed to read credentials from {path}: {e}') from e
    return parse_credentials(raw, str(path))


def load_credentials_from_keychain() -> OAuthCredentials | None:
    """
    Load credentials from the macOS Keychain.

    Returns:
        Credentials, or None when not on macOS or no Keychain entry exists
    """
    if sys.platform != 'darwin':
        return None
    try:
        result = subprocess.run(
            ['security', 'find-generic-password', '-s', KEYCHAIN_SERVICE, '-w'],
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return None
    if result.returncode != 0 or not result.stdout.strip():
        return None
    return parse_credentials(result.stdout, 'macOS Keychain')


async def load_access_token(
    settings: TeleportSettings,
    logger: LoggerProtocol | None = None,
) -> pydantic.SecretStr:
    """
    Resolve the OAuth access token.

    Raises:
        AuthError: If no credentials are found anywhere
    """
    logger = logger or NullLogger()

    if settings.ACCESS_TOKEN is not None and settings.ACCESS_TOKEN.get_secret_value():
        await logger.info('Using access token from TELEPORT_ACCESS_TOKEN')
        return settings.ACCESS_TOKEN

    credentials = load_credentials_from_keychain()
    if credentials is not None:
        await logger.info('Using credentials from macOS Keychain')
    else:
        path = credentials_file_path(settings.CLAUDE_CONFIG_DIR)
        if not path.exists():
            checked = 'macOS Keychain and ' if sys.platform == 'darwin' else ''
            raise AuthError(
                f'No Claude Code credentials found. Checked {checked}{path}. '
                f"Make sure you're logged in with 'claude' first."
            )
        credentials = load_credentials_from_file(path)
        await logger.info(f'Using credentials from {path}')

    token = credentials.claudeAiOauth
    if token.is_expired:
        await logger.warning('Stored access token looks expired; requests may be rejected')
    return token.accessToken


def request_timeout(settings: TeleportSettings) -> httpx.Timeout:
    return httpx.Timeout(settings.REQUEST_TIMEOUT, connect=settings.CONNECT_TIMEOUT)


async def create_client(
    settings: TeleportSettings,
    logger: LoggerProtocol | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SessionsApiClient:
    """
    Build an authenticated SessionsApiClient.

    Args:
        settings: Application settings (endpoint, timeouts, credential overrides)
        logger: Optional logger for credential source messages
        transport: Optional httpx transport (tests)

    Raises:
        AuthError: If the token or organization cannot be resolved
        NetworkError: If the profile endpoint is unreachable
    """
    logger = logger or NullLogger()
    token = (await load_access_token(settings, logger)).get_secret_value()
    timeout = request_timeout(settings)

    org_uuid = settings.ORG_UUID
    if not org_uuid:
        await logger.info('Looking up organization for access token')
        org_uuid = await fetch_org_uuid(token, base_url=settings.BASE_URL, timeout=timeout, transport=transport)

    return SessionsApiClient(token, org_uuid, base_url=settings.BASE_URL, timeout=timeout, transport=transport)
