from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from linear_mcp.auth import LinearAuth
from linear_mcp.config import Settings
from linear_mcp.graphql.client import LinearGraphQLClient


@pytest.fixture
def settings() -> Settings:
    return Settings(access_token="lin_api_test")


@pytest.fixture
def auth(settings: Settings) -> LinearAuth:
    return LinearAuth.from_settings(settings)


@pytest.fixture
def unauthenticated_auth() -> LinearAuth:
    return LinearAuth(Settings())


@pytest.fixture
def mock_client() -> MagicMock:
    """GraphQL client double; every async method is an AsyncMock."""
    return MagicMock(spec=LinearGraphQLClient)
