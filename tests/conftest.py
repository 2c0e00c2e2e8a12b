"""Pytest fixtures."""

from __future__ import annotations

import pytest

from tests.helpers import MockSessionsApi


@pytest.fixture
def mock_api() -> MockSessionsApi:
    return MockSessionsApi()
