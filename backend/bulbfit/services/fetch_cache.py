"""
Per-session fetch cache with per-category cancellation.

- One logical fetch per distinct cache key; repeats are served from memory.
- At most one pending request per category. Issuing a new one cancels the
  previous request first.
- A cancelled request's completion (value or error) is discarded: it never
  writes the cache and never touches loading flags.
- Failed requests clear their loading flag, leave no cache entry and are
  logged, not raised.

No eviction: a session only walks a bounded number of filter combinations.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


class FetchStatus(str, Enum):
    OK = "ok"
    CACHED = "cached"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class FetchOutcome:
    status: FetchStatus
    value: Any = None
    error: str | None = None

    @property
    def usable(self) -> bool:
        """True when the value may be written into selection state."""
        return self.status in (FetchStatus.OK, FetchStatus.CACHED)


class CancelToken:
    """Handle for one in-flight request of a category."""

    def __init__(self, category: str, cache_key: str):
        self.category = category
        self.cache_key = cache_key
        self.cancelled = False
        self.task: asyncio.Future | None = None

    def cancel(self) -> None:
        self.cancelled = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


class FetchCache:
    """Session-scoped memoization map plus in-flight tracking."""

    def __init__(self):
        self._cache: dict[str, Any] = {}
        self._inflight: dict[str, CancelToken] = {}
        self._loading: dict[str, bool] = {}

    # ── Cache ──────────────────────────────────────────────────────

    def has(self, key: str) -> bool:
        return key in self._cache

    def get(self, key: str, default: Any = None) -> Any:
        value = self._cache.get(key, _MISSING)
        return default if value is _MISSING else value

    def __len__(self) -> int:
        return len(self._cache)

    # ── Loading / in-flight ────────────────────────────────────────

    def is_loading(self, category: str) -> bool:
        return self._loading.get(category, False)

    @property
    def loading(self) -> dict[str, bool]:
        return dict(self._loading)

    def in_flight(self, category: str) -> CancelToken | None:
        return self._inflight.get(category)

    def cancel(self, category: str) -> bool:
        """
        Cancel the pending request for a category, if any.

        Clears the category's loading flag since no replacement request is
        being issued. Returns True when something was cancelled.
        """
        token = self._inflight.pop(category, None)
        if token is None:
            return False
        token.cancel()
        self._loading[category] = False
        logger.debug(f"Cancelled {category} fetch for {token.cache_key}")
        return True

    def cancel_all(self) -> None:
        for category in list(self._inflight):
            self.cancel(category)

    # ── Resolve ────────────────────────────────────────────────────

    def resolve(
        self,
        category: str,
        key: str,
        query_fn: Callable[[], Awaitable[Any]],
    ) -> Awaitable[FetchOutcome]:
        """
        Start (or short-circuit) a fetch and return an awaitable outcome.

        Bookkeeping happens at call time: on a cache miss the previous request
        for the category is cancelled, the new request is scheduled and the
        loading flag is set before this method returns. A cache hit performs
        no I/O and leaves loading flags alone.

        Must be called from within a running event loop.
        """
        if key in self._cache:
            return self._cached(self._cache[key])

        previous = self._inflight.get(category)
        if previous is not None:
            previous.cancel()
            logger.debug(f"Superseded {category} fetch {previous.cache_key} -> {key}")

        token = CancelToken(category, key)
        token.task = asyncio.ensure_future(query_fn())
        self._inflight[category] = token
        self._loading[category] = True
        return self._settle(token)

    async def _cached(self, value: Any) -> FetchOutcome:
        return FetchOutcome(FetchStatus.CACHED, value)

    async def _settle(self, token: CancelToken) -> FetchOutcome:
        try:
            value = await token.task
        except asyncio.CancelledError:
            if token.cancelled:
                return FetchOutcome(FetchStatus.CANCELLED)
            # The awaiting task itself was cancelled (shutdown)
            self._finish(token)
            raise
        except Exception as e:
            if token.cancelled:
                return FetchOutcome(FetchStatus.CANCELLED)
            self._finish(token)
            logger.warning(f"{token.category} fetch failed for {token.cache_key}: {e}")
            return FetchOutcome(FetchStatus.FAILED, error=str(e))

        if token.cancelled:
            logger.debug(f"Discarding late {token.category} result for {token.cache_key}")
            return FetchOutcome(FetchStatus.CANCELLED)

        self._cache[token.cache_key] = value
        self._finish(token)
        return FetchOutcome(FetchStatus.OK, value)

    def _finish(self, token: CancelToken) -> None:
        if self._inflight.get(token.category) is token:
            del self._inflight[token.category]
            self._loading[token.category] = False
