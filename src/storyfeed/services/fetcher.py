"""Bounded concurrent story fetching.

Fans out one cache-backed lookup per identifier while keeping at most
``MAX_CONCURRENT_REQUESTS`` lookups in flight. Results come back in input
order, not completion order.
"""

import asyncio
from collections.abc import Sequence

import structlog

from storyfeed.services.cache import CacheService
from storyfeed.services.hackernews import HackerNewsClient, Story

logger = structlog.get_logger(__name__)


class BoundedFetcher:
    """Fetch many stories through the cache with a concurrency ceiling.

    Absent items and items without a title are dropped. Transport failures
    are not: if any lookup fails, the whole batch fails once every lookup
    has settled.
    """

    MAX_CONCURRENT_REQUESTS = 10

    def __init__(
        self,
        client: HackerNewsClient,
        cache: CacheService,
        max_concurrency: int = MAX_CONCURRENT_REQUESTS,
    ) -> None:
        """Initialize the fetcher.

        Args:
            client: Upstream client used on cache misses
            cache: Shared cache holding per-story entries
            max_concurrency: Maximum simultaneous lookups per batch
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.client = client
        self.cache = cache
        self.max_concurrency = max_concurrency

    async def fetch_story(self, story_id: int) -> Story | None:
        """Fetch one story through the cache."""
        return await self.cache.get_or_populate(
            CacheService.story_key(story_id),
            CacheService.TTL_STORY,
            lambda: self.client.fetch_story(story_id),
        )

    async def fetch_many(self, ids: Sequence[int]) -> list[Story]:
        """Fetch the stories for ``ids`` preserving their order.

        Args:
            ids: Ordered story identifiers

        Returns:
            Valid stories in the order of ``ids``

        Raises:
            TransientFetchError: The first failure, in input order, of any lookup
        """
        if not ids:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(story_id: int) -> Story | None:
            async with semaphore:
                return await self.fetch_story(story_id)

        # gather keeps argument order; wait for every lookup before deciding
        results = await asyncio.gather(
            *(bounded(story_id) for story_id in ids),
            return_exceptions=True,
        )

        stories: list[Story] = []
        for story_id, result in zip(ids, results):
            if isinstance(result, BaseException):
                logger.error(
                    "fetch_many_failed",
                    story_id=story_id,
                    batch_size=len(ids),
                    error=str(result),
                )
                raise result
            if result is not None and result.is_valid:
                stories.append(result)

        logger.debug(
            "fetch_many_completed",
            requested=len(ids),
            returned=len(stories),
        )
        return stories
