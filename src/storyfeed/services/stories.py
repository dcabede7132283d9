"""Story aggregation service.

Orchestrates the fetch-cache-aggregate pipeline behind the HTTP API:

    ids (cached) -> cap -> bounded fetch (cached per story) -> filter -> paginate

The upstream cap is applied before filtering, so a search term can only match
stories among the first ``MAX_UPSTREAM_ITEMS`` identifiers.
"""

from dataclasses import dataclass, field

import structlog

from storyfeed.core.exceptions import InvalidArgumentError
from storyfeed.services.cache import CacheService
from storyfeed.services.fetcher import BoundedFetcher
from storyfeed.services.hackernews import HackerNewsClient, Story

logger = structlog.get_logger(__name__)


@dataclass
class ResultPage:
    """One page of stories plus the size of the filtered, capped set."""

    stories: list[Story] = field(default_factory=list)
    total_count: int = 0


class StoryService:
    """Service for paginated and searchable newest stories.

    Usage:
        ```python
        cache = CacheService()
        client = HackerNewsClient()
        service = StoryService(client, cache)
        page = await service.get_results(page=1, page_size=20, search_term="python")
        ```
    """

    MAX_UPSTREAM_ITEMS = 200

    def __init__(
        self,
        client: HackerNewsClient,
        cache: CacheService,
        fetcher: BoundedFetcher | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            client: Upstream client for the identifier list
            cache: Cache shared with the fetcher and across requests
            fetcher: Bounded fetcher (built from client and cache if omitted)
        """
        self.client = client
        self.cache = cache
        self.fetcher = fetcher or BoundedFetcher(client, cache)

    async def get_results(
        self,
        page: int,
        page_size: int,
        search_term: str | None = None,
    ) -> ResultPage:
        """Get one page of the newest stories, optionally filtered by title.

        Args:
            page: 1-based page number
            page_size: Stories per page
            search_term: Optional case-insensitive title substring

        Returns:
            ResultPage with the requested slice and the filtered total

        Raises:
            InvalidArgumentError: If page or page_size is below 1
            TransientFetchError: If the upstream cannot be read
        """
        if page < 1 or page_size < 1:
            raise InvalidArgumentError(
                "Page and page size must be positive integers",
                details={"page": page, "page_size": page_size},
            )

        stories = await self._load_stories()
        stories = self.filter_by_title(stories, search_term)
        total_count = len(stories)

        offset = (page - 1) * page_size
        page_stories = stories[offset : offset + page_size]

        logger.info(
            "stories_page_built",
            page=page,
            page_size=page_size,
            search_term=search_term,
            total_count=total_count,
            returned=len(page_stories),
        )

        return ResultPage(stories=page_stories, total_count=total_count)

    async def search_stories(self, term: str | None) -> list[Story]:
        """Return every story whose title contains ``term``.

        A blank term matches nothing and performs no I/O.

        Args:
            term: Case-insensitive title substring

        Returns:
            Matching stories in upstream order
        """
        if not term or not term.strip():
            return []

        stories = self.filter_by_title(await self._load_stories(), term)
        logger.info("stories_searched", search_term=term, matches=len(stories))
        return stories

    @staticmethod
    def filter_by_title(stories: list[Story], search_term: str | None) -> list[Story]:
        """Keep stories whose title contains ``search_term``, ignoring case.

        A blank or missing term keeps everything.
        """
        if not search_term or not search_term.strip():
            return stories

        needle = search_term.lower()
        return [s for s in stories if needle in s.title.lower()]

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    async def _load_stories(self) -> list[Story]:
        """Cached ids, capped, then fetched through the bounded fetcher."""
        ids = await self.cache.get_or_populate(
            CacheService.story_ids_key(),
            CacheService.TTL_STORY_IDS,
            self._fetch_story_ids,
        )
        capped = list(ids[: self.MAX_UPSTREAM_ITEMS])
        return await self.fetcher.fetch_many(capped)

    async def _fetch_story_ids(self) -> tuple[int, ...]:
        ids = await self.client.list_story_ids()
        return tuple(ids)
