"""Page API routes."""

from fastapi import APIRouter, status

from notionview.application.services import PageService
from notionview.core.logging import LoggingContext, get_logger
from notionview.domain.exceptions import NotionViewError
from notionview.domain.services.identifiers import parse_page_id
from notionview.infrastructure.api.dependencies import Notion
from notionview.infrastructure.api.errors import error_payload
from notionview.infrastructure.cache.edge_cache import EdgePayload

logger = get_logger(__name__)

router = APIRouter()


@router.get("/{page_id}", status_code=status.HTTP_200_OK)
async def get_page(page_id: str, notion: Notion):
    """Return all blocks of a page, with embedded collections expanded."""
    page_uuid = parse_page_id(page_id)
    service = PageService(
        notion.store,
        row_limit=notion.settings.default_row_limit,
        asset_base_url=notion.settings.notion_asset_base_url,
    )

    async def produce() -> EdgePayload:
        with LoggingContext(page_id=page_uuid):
            try:
                blocks = await service.get_page(page_uuid, notion.token)
            except NotionViewError as e:
                logger.warning("Page load failed", error=str(e), exc_type=type(e).__name__)
                return error_payload(e, page_id=page_uuid)
            logger.debug("Page loaded", block_count=len(blocks))
        return EdgePayload(status.HTTP_200_OK, blocks)

    return await notion.respond(produce)
