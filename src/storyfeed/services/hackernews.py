"""Hacker News API client service.

This service provides async access to the public Hacker News Firebase API:
the newest story identifiers and single item lookups. It performs no caching
and no retries; callers decide how to cache and how to react to failures.

See: https://github.com/HackerNews/API
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from storyfeed.config import Settings, get_settings
from storyfeed.core.exceptions import (
    MalformedResponseError,
    UpstreamConnectionError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)

logger = structlog.get_logger(__name__)


# -----------------------------------------------------------------------------
# DTOs (Canonical Internal Models)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Story:
    """A single upstream item reduced to the fields the feed exposes.

    A story with an empty title is considered invalid and never returned.
    """

    id: int
    title: str = ""
    url: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.title)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {"id": self.id, "title": self.title, "url": self.url}

    @classmethod
    def from_payload(cls, data: Any) -> "Story":
        """Create from an upstream item payload.

        Raises:
            MalformedResponseError: If the payload is not an item object
        """
        if not isinstance(data, dict):
            raise MalformedResponseError("Item payload is not a JSON object")

        story_id = data.get("id")
        if not isinstance(story_id, int) or isinstance(story_id, bool):
            raise MalformedResponseError("Item payload has no integer id")

        title = data.get("title") or ""
        url = data.get("url") or ""
        if not isinstance(title, str) or not isinstance(url, str):
            raise MalformedResponseError(
                "Item title and url must be strings",
                details={"id": story_id},
            )

        return cls(id=story_id, title=title, url=url)


# -----------------------------------------------------------------------------
# Hacker News Client
# -----------------------------------------------------------------------------


class HackerNewsClient:
    """Async client for the Hacker News API.

    Uses a lazily created, pooled ``httpx.AsyncClient``. Transport failures
    are mapped to the ``TransientFetchError`` family so the HTTP layer can
    report them as service-unavailable.

    Usage:
        ```python
        client = HackerNewsClient()
        ids = await client.list_story_ids()
        story = await client.fetch_story(ids[0])
        await client.close()
        ```
    """

    NEW_STORIES_PATH = "/newstories.json"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings (defaults to the cached settings)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``
        """
        self._settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def _user_agent(self) -> str:
        """User-Agent header sent upstream."""
        return f"{self._settings.app_name}/{self._settings.app_version}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._settings.hackernews_base_url,
                timeout=self._settings.hackernews_timeout,
                headers={"User-Agent": self._user_agent},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def list_story_ids(self) -> list[int]:
        """Fetch the identifiers of the newest stories, newest first.

        Returns:
            Ordered list of story identifiers

        Raises:
            TransientFetchError: On network, timeout or non-2xx errors
            MalformedResponseError: If the payload is not a list of integers
        """
        data = await self._get_json(self.NEW_STORIES_PATH)

        if not isinstance(data, list) or not all(
            isinstance(i, int) and not isinstance(i, bool) for i in data
        ):
            logger.error("hackernews_malformed_ids", path=self.NEW_STORIES_PATH)
            raise MalformedResponseError(
                "Story id list is not an array of integers",
                path=self.NEW_STORIES_PATH,
            )

        logger.debug("hackernews_ids_fetched", count=len(data))
        return data

    async def fetch_story(self, story_id: int) -> Story | None:
        """Fetch a single item.

        Args:
            story_id: Upstream item identifier

        Returns:
            The story, or None when the upstream has no such item

        Raises:
            TransientFetchError: On network, timeout or non-2xx errors
            MalformedResponseError: If the payload is not an item object
        """
        data = await self._get_json(f"/item/{story_id}.json")
        if data is None:
            logger.debug("hackernews_item_absent", story_id=story_id)
            return None
        return Story.from_payload(data)

    # -------------------------------------------------------------------------
    # Private Methods - API Fetching
    # -------------------------------------------------------------------------

    async def _get_json(self, path: str) -> Any:
        """GET ``path`` and decode the JSON body, mapping failures."""
        client = await self._get_client()

        try:
            response = await client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "hackernews_request_failed",
                status_code=e.response.status_code,
                path=path,
            )
            raise UpstreamStatusError(e.response.status_code, path=path) from e
        except httpx.TimeoutException as e:
            logger.error("hackernews_request_timeout", error=str(e), path=path)
            raise UpstreamTimeoutError(path=path) from e
        except httpx.RequestError as e:
            logger.error("hackernews_request_error", error=str(e), path=path)
            raise UpstreamConnectionError(path=path) from e

        try:
            return response.json()
        except ValueError as e:
            logger.error("hackernews_invalid_json", path=path)
            raise MalformedResponseError("Response body is not JSON", path=path) from e
