"""
Configuration for claude-teleport-analyzer.

Settings come from TELEPORT_* environment variables (or a .env file) and
cover the API endpoint, timeouts and the credential overrides.
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

T = TypeVar('T', bound='TeleportSettings')


class TeleportSettings(pydantic_settings.BaseSettings):
    """Shared configuration for the API client and the CLI."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix='TELEPORT_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='ignore',  # .env files are shared with other tools
    )

    # Application metadata
    APP_NAME: str = 'claude-teleport-analyzer'
    VERSION: str = '0.1.0'

    # Sessions API
    BASE_URL: str = 'https://api.anthropic.com'
    REQUEST_TIMEOUT: float = 30.0  # Seconds per request, no retries
    CONNECT_TIMEOUT: float = 10.0

    # Credential overrides (skip keychain / credentials file when set)
    ACCESS_TOKEN: pydantic.SecretStr | None = None
    ORG_UUID: str | None = None

    # Claude Code config directory (default: ~/.claude), shared with Claude Code itself
    CLAUDE_CONFIG_DIR: pathlib.Path | None = pydantic.Field(None, validation_alias='CLAUDE_CONFIG_DIR')

    @pydantic.field_validator('REQUEST_TIMEOUT', 'CONNECT_TIMEOUT')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Timeouts must be positive - a zero timeout would fail every request."""
        if v <= 0:
            raise ValueError('timeouts must be greater than 0 seconds')
        return v


def get_settings(settings_class: type[T] = TeleportSettings, env_file: str | None = None) -> T:  # type: ignore[assignment]
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset, loads from environment variables (and ./.env if present).

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)  # type: ignore[call-arg]


def lazy_settings(settings_class: type[T]) -> T:
    """
    Lazy settings - defers instantiation until first access.

    Args:
        settings_class: Settings class to instantiate

    Returns:
        Proxy that instantiates settings on first access
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))


# Module-level singleton (lazy-loaded)
settings = lazy_settings(TeleportSettings)
