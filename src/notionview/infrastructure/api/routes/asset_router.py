"""Asset API routes.

Signs a stored file URL so it can be fetched without a Notion session.
"""

from fastapi import APIRouter, Query, status

from notionview.domain.exceptions import RecordNotFoundError
from notionview.domain.services.identifiers import parse_page_id
from notionview.infrastructure.api.dependencies import Notion
from notionview.infrastructure.api.errors import error_payload
from notionview.infrastructure.cache.edge_cache import EdgePayload

router = APIRouter()


@router.get("", status_code=status.HTTP_200_OK)
async def get_asset(
    notion: Notion,
    url: str = Query(..., description="Stored file URL"),
    block_id: str = Query(..., alias="blockId", description="Block that owns the file"),
):
    block_uuid = parse_page_id(block_id)

    async def produce() -> EdgePayload:
        signed_url = await notion.store.get_signed_file_url(url, block_uuid, notion.token)
        if not signed_url:
            return error_payload(RecordNotFoundError("No signed URL returned for asset"))
        return EdgePayload(status.HTTP_200_OK, {"url": url, "signedUrl": signed_url})

    return await notion.respond(produce)
