"""Services package for StoryFeed.

This module exports the fetch-cache-aggregate pipeline components.
"""

from storyfeed.services.cache import CacheService
from storyfeed.services.fetcher import BoundedFetcher
from storyfeed.services.hackernews import HackerNewsClient, Story
from storyfeed.services.stories import ResultPage, StoryService

__all__ = [
    # Cache
    "CacheService",
    # Upstream
    "HackerNewsClient",
    "Story",
    # Pipeline
    "BoundedFetcher",
    "ResultPage",
    "StoryService",
]
