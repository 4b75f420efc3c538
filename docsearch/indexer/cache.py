"""Process-wide index cache.

Holds the most recently built ``SearchIndex`` and rebuilds lazily. Callers
that arrive while a build is running await that same build instead of
starting another one.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from docsearch.indexer.models import SearchIndex, utc_now

logger = logging.getLogger(__name__)


class RefreshPolicy:
    """Decides whether a cached index must be rebuilt."""

    def is_stale(self, index: SearchIndex, now: datetime) -> bool:
        raise NotImplementedError


class NeverExpire(RefreshPolicy):
    """Keep the first built index for the lifetime of the process."""

    def is_stale(self, index: SearchIndex, now: datetime) -> bool:
        return False


class MaxAgePolicy(RefreshPolicy):
    """Rebuild once the index is older than ``max_age``."""

    def __init__(self, max_age: timedelta):
        if max_age <= timedelta(0):
            raise ValueError("max_age must be positive")
        self.max_age = max_age

    def is_stale(self, index: SearchIndex, now: datetime) -> bool:
        return now - index.generated_at >= self.max_age


class IndexCache:
    """Memoizes the result of an async index build function.

    Args:
        build: Coroutine function producing a fresh index
        clock: Time source used for staleness checks
        policy: Refresh policy, ``NeverExpire`` by default
    """

    def __init__(self,
                 build: Callable[[], Awaitable[SearchIndex]],
                 clock: Callable[[], datetime] = utc_now,
                 policy: Optional[RefreshPolicy] = None):
        self._build = build
        self._clock = clock
        self.policy = policy or NeverExpire()
        self._index: Optional[SearchIndex] = None
        self._pending: Optional[asyncio.Future] = None
        self.build_count = 0

    @property
    def current(self) -> Optional[SearchIndex]:
        """The cached index, without triggering a build."""
        return self._index

    async def get_or_build(self) -> SearchIndex:
        """Return the cached index, building it first if needed.

        Raises:
            Whatever the build function raises; failures are not cached
        """
        index = self._index
        if index is not None and not self.policy.is_stale(index, self._clock()):
            return index

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._run_build())

        # shield: one cancelled waiter must not cancel the build for the rest
        return await asyncio.shield(self._pending)

    async def _run_build(self) -> SearchIndex:
        self.build_count += 1
        logger.info("Building search index", extra={"build": self.build_count})
        try:
            index = await self._build()
        except Exception as e:
            logger.error(f"Search index build failed: {e}", extra={"build": self.build_count})
            raise
        finally:
            self._pending = None

        # Replace the reference in one step; readers never see a partial index
        self._index = index
        return index
