"""Tests for BoundedFetcher.

Covers input-order preservation, invalid item exclusion, the concurrency
ceiling and failure propagation.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from storyfeed.core.exceptions import UpstreamConnectionError, UpstreamTimeoutError
from storyfeed.services.cache import CacheService
from storyfeed.services.fetcher import BoundedFetcher
from storyfeed.services.hackernews import Story

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def cache() -> CacheService:
    return CacheService()


@pytest.fixture
def fetcher(mock_client: MagicMock, cache: CacheService) -> BoundedFetcher:
    return BoundedFetcher(mock_client, cache)


# =============================================================================
# Ordering and Filtering Tests
# =============================================================================


class TestFetchMany:
    """Tests for fetch_many results."""

    @pytest.mark.asyncio
    async def test_empty_ids(self, fetcher: BoundedFetcher, mock_client: MagicMock) -> None:
        assert await fetcher.fetch_many([]) == []
        mock_client.fetch_story.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_preserves_input_order_not_completion_order(
        self, fetcher: BoundedFetcher, mock_client: MagicMock
    ) -> None:
        """Test that slower early fetches still come first."""
        delays = {5: 0.03, 3: 0.0, 9: 0.01}

        async def fetch_story(story_id: int) -> Story:
            await asyncio.sleep(delays[story_id])
            return Story(id=story_id, title=f"Story {story_id}")

        mock_client.fetch_story = AsyncMock(side_effect=fetch_story)

        stories = await fetcher.fetch_many([5, 3, 9])

        assert [s.id for s in stories] == [5, 3, 9]

    @pytest.mark.asyncio
    async def test_drops_absent_and_untitled_items(
        self, fetcher: BoundedFetcher, mock_client: MagicMock
    ) -> None:
        items = {
            1: Story(id=1, title="Kept"),
            2: None,
            3: Story(id=3, title=""),
            4: Story(id=4, title="Also kept", url="https://example.com"),
        }
        mock_client.fetch_story = AsyncMock(side_effect=lambda story_id: items[story_id])

        stories = await fetcher.fetch_many([1, 2, 3, 4])

        assert stories == [items[1], items[4]]

    @pytest.mark.asyncio
    async def test_uses_cache_for_repeated_ids(
        self, fetcher: BoundedFetcher, mock_client: MagicMock, cache: CacheService
    ) -> None:
        await fetcher.fetch_many([1, 2])
        await fetcher.fetch_many([1, 2, 3])

        assert mock_client.fetch_story.await_count == 3
        assert cache.get(CacheService.story_key(3))[0] is True

    @pytest.mark.asyncio
    async def test_absent_items_are_cached(
        self, fetcher: BoundedFetcher, mock_client: MagicMock
    ) -> None:
        mock_client.fetch_story = AsyncMock(return_value=None)

        await fetcher.fetch_many([42])
        await fetcher.fetch_many([42])

        mock_client.fetch_story.assert_awaited_once_with(42)


# =============================================================================
# Concurrency Tests
# =============================================================================


class TestConcurrencyBound:
    """Tests for the in-flight ceiling."""

    def test_default_ceiling_is_ten(
        self, mock_client: MagicMock, cache: CacheService
    ) -> None:
        assert BoundedFetcher(mock_client, cache).max_concurrency == 10

    def test_rejects_non_positive_ceiling(
        self, mock_client: MagicMock, cache: CacheService
    ) -> None:
        with pytest.raises(ValueError):
            BoundedFetcher(mock_client, cache, max_concurrency=0)

    @pytest.mark.asyncio
    async def test_never_exceeds_ceiling(
        self, fetcher: BoundedFetcher, mock_client: MagicMock
    ) -> None:
        """Test that 50 ids never have more than 10 upstream calls in flight."""
        in_flight = 0
        peak = 0

        async def fetch_story(story_id: int) -> Story:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1
            return Story(id=story_id, title=f"Story {story_id}")

        mock_client.fetch_story = AsyncMock(side_effect=fetch_story)

        stories = await fetcher.fetch_many(list(range(50)))

        assert len(stories) == 50
        assert peak == 10
        assert in_flight == 0

    @pytest.mark.asyncio
    async def test_custom_ceiling(
        self, mock_client: MagicMock, cache: CacheService
    ) -> None:
        in_flight = 0
        peak = 0

        async def fetch_story(story_id: int) -> Story:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return Story(id=story_id, title="t")

        mock_client.fetch_story = AsyncMock(side_effect=fetch_story)
        fetcher = BoundedFetcher(mock_client, cache, max_concurrency=3)

        await fetcher.fetch_many(list(range(20)))

        assert peak <= 3


# =============================================================================
# Failure Tests
# =============================================================================


class TestFailurePropagation:
    """Tests that transport failures fail the batch."""

    @pytest.mark.asyncio
    async def test_transient_error_propagates(
        self, fetcher: BoundedFetcher, mock_client: MagicMock
    ) -> None:
        async def fetch_story(story_id: int) -> Story:
            if story_id == 2:
                raise UpstreamConnectionError(path=f"/item/{story_id}.json")
            return Story(id=story_id, title="ok")

        mock_client.fetch_story = AsyncMock(side_effect=fetch_story)

        with pytest.raises(UpstreamConnectionError):
            await fetcher.fetch_many([1, 2, 3])

    @pytest.mark.asyncio
    async def test_waits_for_whole_batch_before_failing(
        self, fetcher: BoundedFetcher, mock_client: MagicMock
    ) -> None:
        finished: list[int] = []

        async def fetch_story(story_id: int) -> Story:
            if story_id == 1:
                raise UpstreamTimeoutError()
            await asyncio.sleep(0.01)
            finished.append(story_id)
            return Story(id=story_id, title="ok")

        mock_client.fetch_story = AsyncMock(side_effect=fetch_story)

        with pytest.raises(UpstreamTimeoutError):
            await fetcher.fetch_many([1, 2, 3])

        assert sorted(finished) == [2, 3]

    @pytest.mark.asyncio
    async def test_first_failure_in_input_order_wins(
        self, fetcher: BoundedFetcher, mock_client: MagicMock
    ) -> None:
        async def fetch_story(story_id: int) -> Story:
            if story_id == 1:
                await asyncio.sleep(0.01)
                raise UpstreamTimeoutError()
            raise UpstreamConnectionError()

        mock_client.fetch_story = AsyncMock(side_effect=fetch_story)

        with pytest.raises(UpstreamTimeoutError):
            await fetcher.fetch_many([1, 2])

    @pytest.mark.asyncio
    async def test_slots_released_after_failures(
        self, mock_client: MagicMock, cache: CacheService
    ) -> None:
        """Test that failing lookups do not starve the rest of the batch."""
        fetcher = BoundedFetcher(mock_client, cache, max_concurrency=1)
        seen: list[int] = []

        async def fetch_story(story_id: int) -> Story:
            seen.append(story_id)
            if story_id % 2:
                raise UpstreamConnectionError()
            return Story(id=story_id, title="ok")

        mock_client.fetch_story = AsyncMock(side_effect=fetch_story)

        with pytest.raises(UpstreamConnectionError):
            await fetcher.fetch_many([0, 1, 2, 3, 4])

        assert sorted(seen) == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_failed_item_not_cached(
        self, fetcher: BoundedFetcher, mock_client: MagicMock, cache: CacheService
    ) -> None:
        mock_client.fetch_story = AsyncMock(side_effect=UpstreamTimeoutError())

        with pytest.raises(UpstreamTimeoutError):
            await fetcher.fetch_many([7])

        assert cache.get(CacheService.story_key(7)) == (False, None)
