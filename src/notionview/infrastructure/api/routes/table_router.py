"""Table API routes."""

from fastapi import APIRouter, Query, status

from notionview.application.services import CollectionQueryService
from notionview.core.logging import get_logger
from notionview.domain.exceptions import NotionViewError
from notionview.domain.services.identifiers import parse_page_id
from notionview.infrastructure.api.dependencies import Notion
from notionview.infrastructure.api.errors import error_payload
from notionview.infrastructure.cache.edge_cache import EdgePayload

logger = get_logger(__name__)

router = APIRouter()


@router.get("/{page_id}", status_code=status.HTTP_200_OK)
async def get_table(
    page_id: str,
    notion: Notion,
    limit: int | None = Query(default=None, ge=1, description="Maximum number of rows"),
):
    """Return the rows of the page's first collection view as a bare array."""
    page_uuid = parse_page_id(page_id)
    service = CollectionQueryService(
        notion.store, asset_base_url=notion.settings.notion_asset_base_url
    )

    async def produce() -> EdgePayload:
        try:
            rows = await service.table_rows(
                page_uuid, notion.token, limit or notion.settings.default_row_limit
            )
        except NotionViewError as e:
            logger.warning("Table query failed", page_id=page_uuid, error=str(e))
            return error_payload(e, page_id=page_uuid)
        return EdgePayload(status.HTTP_200_OK, rows)

    return await notion.respond(produce)
