"""Search API routes."""

from fastapi import APIRouter, Query, status

from notionview.domain.services.identifiers import parse_page_id
from notionview.infrastructure.api.dependencies import Notion
from notionview.infrastructure.cache.edge_cache import EdgePayload

router = APIRouter()


@router.get("", status_code=status.HTTP_200_OK)
async def search(
    notion: Notion,
    ancestor_id: str = Query(..., alias="ancestorId", description="Page to search within"),
    query: str = Query(default="", description="Search text"),
    limit: int | None = Query(default=None, ge=1, le=100, description="Maximum number of results"),
):
    """Full text search below an ancestor page."""
    ancestor_uuid = parse_page_id(ancestor_id)

    async def produce() -> EdgePayload:
        results = await notion.store.search(
            ancestor_uuid,
            query,
            limit or notion.settings.search_default_limit,
            token=notion.token,
        )
        return EdgePayload(status.HTTP_200_OK, results)

    return await notion.respond(produce)
