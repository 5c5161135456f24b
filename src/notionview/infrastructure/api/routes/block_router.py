"""Block API routes."""

from fastapi import APIRouter, status

from notionview.domain.entities.block import RecordMap
from notionview.domain.exceptions import RecordNotFoundError
from notionview.domain.services.identifiers import parse_page_id
from notionview.infrastructure.api.dependencies import Notion
from notionview.infrastructure.api.errors import error_payload
from notionview.infrastructure.cache.edge_cache import EdgePayload

router = APIRouter()


@router.get("/{block_id}", status_code=status.HTTP_200_OK)
async def get_block(block_id: str, notion: Notion):
    """Return one block record exactly as Notion stores it."""
    block_uuid = parse_page_id(block_id)

    async def produce() -> EdgePayload:
        response = await notion.store.sync_blocks([block_uuid], notion.token)
        block = RecordMap.from_payload(response.get("recordMap")).block(block_uuid)
        if block is None:
            return error_payload(RecordNotFoundError(f"Block not found: {block_uuid}"))
        return EdgePayload(status.HTTP_200_OK, block.to_record())

    return await notion.respond(produce)
