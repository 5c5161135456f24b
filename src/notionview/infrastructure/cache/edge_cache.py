"""In-process response cache with stale-while-revalidate.

Responses of the GET routes are cached per request URL and token. A hit
younger than ``fresh_seconds`` is served as-is; an older hit is served
immediately while a background task rebuilds the entry. Only 2xx payloads
are stored, so errors are never cached and never replace a good entry.
"""

import asyncio
import hashlib
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable
from urllib.parse import quote, urlencode

from notionview.core.logging import get_logger
from notionview.domain.exceptions import UpstreamFetchError

logger = get_logger(__name__)

SERVICE_UNAVAILABLE_BODY = {
    "error": "Service temporarily unavailable",
    "message": "Failed to fetch data from Notion. Please try again later.",
}


class CacheStatus(str, Enum):
    HIT = "HIT"
    STALE = "STALE"
    MISS = "MISS"
    BYPASS = "BYPASS"


@dataclass
class EdgePayload:
    """Status code and JSON body produced by a route."""

    status_code: int
    body: Any

    @property
    def is_cacheable(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class CacheEntry:
    """Cached payload with the time it was stored."""

    payload: EdgePayload
    stored_at: float


@dataclass
class EdgeResult:
    payload: EdgePayload
    cache_status: CacheStatus


Producer = Callable[[], Awaitable[EdgePayload]]


class EdgeCache:
    """Cache-aside store with background revalidation of stale entries.

    Args:
        fresh_seconds: Age below which a hit is served without revalidation.
        max_entries: Oldest entries are evicted beyond this size.
        enabled: When False every request runs the producer directly.
    """

    def __init__(self, fresh_seconds: int = 0, max_entries: int = 1000, enabled: bool = True):
        self.fresh_seconds = fresh_seconds
        self.max_entries = max_entries
        self.enabled = enabled
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._refreshing: set[str] = set()
        self._tasks: set[asyncio.Task] = set()

    @staticmethod
    def make_key(path: str, query_params: list[tuple[str, str]], token: str | None = None) -> str:
        """Build a cache key from the request path, sorted query and token digest."""
        query = urlencode(sorted(query_params))
        token_digest = hashlib.sha256(token.encode()).hexdigest()[:16] if token else "public"
        return f"{quote(path, safe='/')}?{query}#{token_digest}"

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, payload: EdgePayload) -> bool:
        """Store a payload if it is cacheable.

        Returns:
            True when the payload was stored.
        """
        if not payload.is_cacheable:
            return False
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(payload=payload, stored_at=time.time())
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
        return True

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return time.time() - entry.stored_at < self.fresh_seconds

    async def serve(self, key: str, produce: Producer) -> EdgeResult:
        """Serve ``key`` from cache or by running ``produce``.

        An upstream failure on a cache miss becomes a 503 payload.
        """
        if not self.enabled:
            return EdgeResult(await produce(), CacheStatus.BYPASS)

        entry = self.get(key)
        if entry is not None:
            if self.is_fresh(entry):
                return EdgeResult(entry.payload, CacheStatus.HIT)
            self._schedule_refresh(key, produce)
            return EdgeResult(entry.payload, CacheStatus.STALE)

        try:
            payload = await produce()
        except UpstreamFetchError as e:
            logger.error("Failed to fetch fresh data", cache_key=key, error=str(e))
            return EdgeResult(EdgePayload(503, dict(SERVICE_UNAVAILABLE_BODY)), CacheStatus.MISS)

        self.set(key, payload)
        return EdgeResult(payload, CacheStatus.MISS)

    def _schedule_refresh(self, key: str, produce: Producer) -> None:
        if key in self._refreshing:
            return
        self._refreshing.add(key)
        task = asyncio.create_task(self._refresh(key, produce))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Returning cached response, revalidating in background", cache_key=key)

    async def _refresh(self, key: str, produce: Producer) -> None:
        try:
            payload = await produce()
            if not self.set(key, payload):
                logger.warning(
                    "Background revalidation returned a non-cacheable response",
                    cache_key=key,
                    status_code=payload.status_code,
                )
        except Exception as e:
            logger.error("Background revalidation failed", cache_key=key, error=str(e))
        finally:
            self._refreshing.discard(key)

    async def drain(self) -> None:
        """Wait for all pending background refreshes."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
