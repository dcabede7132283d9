"""Pytest configuration and fixtures for StoryFeed tests.

This module provides reusable fixtures for:
- Settings overrides
- Async test client against the ASGI app
- A controllable clock for cache expiry
- Mocked upstream client
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from storyfeed.config import Settings
from storyfeed.main import create_app
from storyfeed.services.hackernews import HackerNewsClient, Story
from tests.mocks.clock import FakeClock

# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test-specific settings."""
    return Settings(
        app_env="development",  # type: ignore[arg-type]
        debug=True,
        log_level="DEBUG",  # type: ignore[arg-type]
        log_format="console",  # type: ignore[arg-type]
        hackernews_base_url="https://hn.test/v0",
        hackernews_timeout=2.0,
    )


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """Create a test FastAPI application with test settings."""
    return create_app(settings=test_settings)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing.

    This client makes requests to the test app without starting a server.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# =============================================================================
# Cache Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Return a clock that only moves when told to."""
    return FakeClock()


# =============================================================================
# Upstream Fixtures
# =============================================================================


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock HackerNewsClient.

    ``fetch_story`` returns ``Title {id}`` stories unless overridden.
    """
    client = MagicMock(spec=HackerNewsClient)
    client.list_story_ids = AsyncMock(return_value=[1, 2, 3, 4, 5])
    client.fetch_story = AsyncMock(
        side_effect=lambda story_id: Story(id=story_id, title=f"Title {story_id}")
    )
    client.close = AsyncMock(return_value=None)
    return client
