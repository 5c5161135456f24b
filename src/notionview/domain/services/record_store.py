"""Interface of the upstream record store used by the domain services.

The concrete implementation is ``notionview.infrastructure.notion.NotionClient``;
tests substitute in-memory fakes. Every method raises
``UpstreamFetchError`` on transport, timeout or status failures.
"""

from typing import Any, Protocol

from notionview.domain.entities.user import NotionUser


class RecordStore(Protocol):
    async def load_page_chunk(self, page_id: str, token: str | None = None) -> dict[str, Any]:
        ...

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
        ...

    async def get_users(self, user_ids: list[str], token: str | None = None) -> list[NotionUser]:
        ...

    async def sync_blocks(self, block_ids: list[str], token: str | None = None) -> dict[str, Any]:
        ...

    async def get_signed_file_url(
        self, url: str, block_id: str, token: str | None = None
    ) -> str | None:
        ...

    async def search(
        self,
        ancestor_id: str,
        query: str = "",
        limit: int = 20,
        filters: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        ...
