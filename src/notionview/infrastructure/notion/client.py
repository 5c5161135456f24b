"""Async client for Notion's private ``api/v3`` endpoints.

All endpoints are JSON ``POST`` requests. Private workspaces are reached by
forwarding the caller's ``token_v2`` session cookie.
"""

import asyncio
from typing import Any

import httpx

from notionview.core.config import Settings
from notionview.core.logging import get_logger
from notionview.domain.entities.user import NotionUser
from notionview.domain.exceptions import UpstreamFetchError

logger = get_logger(__name__)

LOAD_PAGE_CHUNK_BODY = {
    "limit": 100,
    "cursor": {"stack": []},
    "chunkNumber": 0,
    "verticalColumns": False,
}

SEARCH_FILTER_DEFAULTS = {
    "isDeletedOnly": False,
    "excludeTemplates": True,
    "isNavigableOnly": True,
    "requireEditPermissions": False,
    "ancestors": [],
    "createdBy": [],
    "editedBy": [],
    "lastEditedTime": {},
    "createdTime": {},
}


class NotionClient:
    """Record store backed by the Notion API.

    Args:
        http_client: Shared ``httpx.AsyncClient``. Created (and owned) when omitted.
        base_url: API root, e.g. ``https://www.notion.so/api/v3``.
        timeout: Seconds before a pending call is cancelled.
        referer: Optional ``referer`` header (some public sites require it).
        origin: Optional ``origin`` header.
        user_time_zone: Time zone used by collection queries for date filters.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        base_url: str = "https://www.notion.so/api/v3",
        timeout: float = 25.0,
        referer: str | None = None,
        origin: str | None = None,
        user_time_zone: str = "UTC",
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.referer = referer
        self.origin = origin
        self.user_time_zone = user_time_zone

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: httpx.AsyncClient | None = None
    ) -> "NotionClient":
        return cls(
            http_client,
            base_url=settings.notion_api_url,
            timeout=settings.notion_timeout_seconds,
            referer=settings.notion_referer,
            origin=settings.notion_origin,
            user_time_zone=settings.user_time_zone,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"content-type": "application/json"}
        if self.referer:
            headers["referer"] = self.referer
        if self.origin:
            headers["origin"] = self.origin
        if token:
            headers["cookie"] = f"token_v2={token}"
        return headers

    async def fetch(self, resource: str, body: dict[str, Any], token: str | None = None) -> dict[str, Any]:
        """POST ``body`` to ``resource`` and return the decoded JSON object.

        Raises:
            UpstreamFetchError: On timeout, transport error, non-2xx status
                or a body that is not a JSON object.
        """
        url = f"{self.base_url}/{resource}"
        try:
            response = await asyncio.wait_for(
                self._http.post(
                    url, json=body, headers=self._headers(token), timeout=self.timeout
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Notion request timed out", resource=resource, timeout=self.timeout)
            raise UpstreamFetchError(resource, f"timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            logger.warning("Notion request failed", resource=resource, error=str(e))
            raise UpstreamFetchError(resource, str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.warning(
                "Notion returned an error status",
                resource=resource,
                status_code=response.status_code,
            )
            raise UpstreamFetchError(resource, "unexpected response status", response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFetchError(resource, "response body is not valid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamFetchError(resource, "response body is not a JSON object")
        return data

    async def load_page_chunk(self, page_id: str, token: str | None = None) -> dict[str, Any]:
        return await self.fetch("loadPageChunk", {"pageId": page_id, **LOAD_PAGE_CHUNK_BODY}, token)

    async def query_collection(
        self,
        collection_id: str,
        collection_view_id: str,
        token: str | None = None,
        *,
        query_filter: dict[str, Any] | None = None,
        sort: list[Any] | None = None,
        limit: int = 999,
    ) -> dict[str, Any]:
        """Run a reducer query for a collection view.

        ``query_filter`` is the merged view filter; only its ``filters`` list is
        forwarded, combined with ``and``.
        """
        filters = (query_filter or {}).get("filters") or []
        body = {
            "collection": {"id": collection_id},
            "collectionView": {"id": collection_view_id},
            "loader": {
                "type": "reducer",
                "reducers": {
                    "collection_group_results": {
                        "type": "results",
                        "limit": limit,
                        "loadContentCover": True,
                    },
                    "table:uncategorized:title:count": {
                        "type": "aggregation",
                        "aggregation": {"property": "title", "aggregator": "count"},
                    },
                },
                "searchQuery": "",
                "userTimeZone": self.user_time_zone,
                "filter": {"operator": "and", "filters": filters},
                "sort": sort or [],
                "limit": limit,
            },
        }
        return await self.fetch("queryCollection", body, token)

    async def get_users(self, user_ids: list[str], token: str | None = None) -> list[NotionUser]:
        """Resolve user IDs with one ``getRecordValues`` call; unknown IDs are skipped."""
        if not user_ids:
            return []
        response = await self.fetch(
            "getRecordValues",
            {"requests": [{"id": user_id, "table": "notion_user"} for user_id in user_ids]},
            token,
        )
        users = []
        for record in response.get("results") or []:
            user = NotionUser.from_record(record)
            if user is not None:
                users.append(user)
        return users

    async def sync_blocks(self, block_ids: list[str], token: str | None = None) -> dict[str, Any]:
        return await self.fetch(
            "syncRecordValues",
            {
                "requests": [
                    {"pointer": {"table": "block", "id": block_id}, "id": block_id, "table": "block", "version": -1}
                    for block_id in block_ids
                ]
            },
            token,
        )

    async def get_signed_file_url(
        self, url: str, block_id: str, token: str | None = None
    ) -> str | None:
        """Exchange a stored file URL for a time-limited signed URL."""
        response = await self.fetch(
            "getSignedFileUrls",
            {"urls": [{"url": url, "permissionRecord": {"table": "block", "id": block_id}}]},
            token,
        )
        signed_urls = response.get("signedUrls")
        if isinstance(signed_urls, list) and signed_urls and isinstance(signed_urls[0], str):
            return signed_urls[0]
        return None

    async def search(
        self,
        ancestor_id: str,
        query: str = "",
        limit: int = 20,
        filters: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        body = {
            "type": "BlocksInAncestor",
            "source": "quick_find_public",
            "ancestorId": ancestor_id,
            "filters": {**SEARCH_FILTER_DEFAULTS, **(filters or {})},
            "sort": "Relevance",
            "limit": limit,
            "query": query,
        }
        return await self.fetch("search", body, token)
