"""Response caching for the HTTP edge."""

from notionview.infrastructure.cache.edge_cache import (
    CacheStatus,
    EdgeCache,
    EdgePayload,
    EdgeResult,
)

__all__ = ["CacheStatus", "EdgeCache", "EdgePayload", "EdgeResult"]
