"""CacheService - in-process caching with a fixed TTL per entry.

This service provides a small, task-safe caching layer for the story
pipeline with:
- Per-entry absolute expiry (read after expiry == read of absent key)
- Get-or-populate semantics with failure-safe population
- Lazy eviction of expired entries on read
- A periodic sweep on write that drops expired entries under any key

The store lives in the process. Each uvicorn worker owns its own cache, so a
story may be fetched once per worker; that is acceptable for a five minute
TTL over an idempotent upstream.

Cache Key Types:
    - hn:newstories - Newest story identifiers (5m TTL)
    - hn:item:{id} - A single story, or None when the upstream has no such item (5m TTL)
"""

import time
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CacheEntry(NamedTuple):
    """Immutable (value, expiry) pair. Replaced wholesale, never mutated."""

    value: Any
    expires_at: float


class CacheService:
    """In-process key-value cache with per-entry expiration.

    Concurrent ``get_or_populate`` calls for the same key may both run the
    population routine; the store converges on the last write. Reads and
    writes never await, so the dict is only ever touched by one task at a
    time under asyncio.

    Usage with FastAPI:
        ```python
        from storyfeed.dependencies import get_cache_service

        @router.get("/stories")
        async def stories(cache: CacheService = Depends(get_cache_service)):
            ...
        ```
    """

    # TTL constants (in seconds)
    TTL_STORY_IDS = 300  # 5 minutes
    TTL_STORY = 300  # 5 minutes

    # Drop every expired entry once per this many writes
    SWEEP_INTERVAL = 100

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the cache service.

        Args:
            clock: Monotonic time source in seconds (overridable in tests)
        """
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._writes = 0

    def __len__(self) -> int:
        return len(self._store)

    def get(self, cache_key: str) -> tuple[bool, Any]:
        """Look up a live entry.

        ``None`` is a valid cached value, so presence is reported separately.

        Returns:
            Tuple of (found, value). value is None when not found.
        """
        entry = self._store.get(cache_key)
        if entry is None:
            return False, None

        if self._clock() >= entry.expires_at:
            del self._store[cache_key]
            logger.debug("cache_expired", cache_key=cache_key)
            return False, None

        return True, entry.value

    def set(self, cache_key: str, value: Any, ttl: int) -> None:
        """Store a value with expiry ``now + ttl``.

        Args:
            cache_key: Cache key
            value: Value to cache (stored by reference; treat as immutable)
            ttl: Time-to-live in seconds
        """
        now = self._clock()
        self._store[cache_key] = CacheEntry(value, now + ttl)
        logger.debug("cache_set", cache_key=cache_key, ttl=ttl)

        self._writes += 1
        if self._writes % self.SWEEP_INTERVAL == 0:
            self._sweep(now)

    def _sweep(self, now: float) -> None:
        """Drop expired entries, including keys that will never be read again.

        The store is rebuilt rather than mutated while iterating.
        """
        before = len(self._store)
        self._store = {
            key: entry
            for key, entry in self._store.items()
            if entry.expires_at > now
        }
        dropped = before - len(self._store)
        if dropped:
            logger.debug("cache_swept", dropped=dropped, remaining=len(self._store))

    async def get_or_populate(
        self,
        cache_key: str,
        ttl: int,
        populate: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the live entry for ``cache_key`` or populate it.

        On a miss ``populate`` is awaited and its result stored for ``ttl``
        seconds. If ``populate`` raises, nothing is stored and the exception
        propagates, so the next call retries.

        Args:
            cache_key: Cache key
            ttl: Time-to-live in seconds for a freshly populated entry
            populate: Zero-argument coroutine function producing the value

        Returns:
            The cached or freshly populated value
        """
        found, value = self.get(cache_key)
        if found:
            logger.debug("cache_hit", cache_key=cache_key)
            return value

        logger.debug("cache_miss", cache_key=cache_key)
        value = await populate()
        self.set(cache_key, value, ttl)
        return value

    def invalidate(self, cache_key: str) -> None:
        """Delete a specific cache key.

        Args:
            cache_key: Key to delete
        """
        if self._store.pop(cache_key, None) is not None:
            logger.debug("cache_invalidated", cache_key=cache_key)

    def clear(self) -> None:
        """Drop every entry."""
        count = len(self._store)
        self._store.clear()
        logger.debug("cache_cleared", count=count)

    # -------------------------------------------------------------------------
    # Cache Key Generators
    # -------------------------------------------------------------------------

    @staticmethod
    def story_ids_key() -> str:
        """Cache key for the newest story identifier list.

        Returns:
            Cache key ("hn:newstories")
        """
        return "hn:newstories"

    @staticmethod
    def story_key(story_id: int) -> str:
        """Generate cache key for a single story.

        Args:
            story_id: Upstream item identifier

        Returns:
            Cache key (e.g., "hn:item:8863")
        """
        return f"hn:item:{story_id}"
