"""Collection API routes.

Returns the rows of a page's collection view together with the schema,
column order, views and the effective filter and sort.
"""

import json
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from notionview.application.services import CollectionQuery, CollectionQueryService
from notionview.core.logging import LoggingContext, get_logger
from notionview.domain.exceptions import NotionViewError
from notionview.domain.services.identifiers import parse_page_id
from notionview.infrastructure.api.dependencies import Notion
from notionview.infrastructure.api.errors import error_payload
from notionview.infrastructure.cache.edge_cache import EdgePayload

logger = get_logger(__name__)

router = APIRouter()


def parse_json_list(raw: str | None, name: str) -> list[Any] | None:
    """Parse a JSON array query parameter.

    Raises:
        HTTPException: 400 if the value is not a JSON array.
    """
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        value = None
    if not isinstance(value, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Query parameter '{name}' must be a JSON array",
        )
    return value


def parse_payload_keys(raw: str | None) -> list[str]:
    return [key.strip() for key in (raw or "").split(",") if key.strip()]


@router.get(
    "/{page_id}",
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Invalid page ID or query parameter"},
        401: {"description": "No collection on the page"},
        404: {"description": "Page block not found"},
        502: {"description": "Malformed upstream response"},
        503: {"description": "Notion is unavailable"},
    },
)
async def get_collection(
    page_id: str,
    notion: Notion,
    view: str | None = Query(default=None, description="Name of the collection view"),
    limit: int | None = Query(default=None, ge=1, description="Maximum number of rows"),
    payload: str | None = Query(default=None, description="Comma separated result keys"),
    filters: str | None = Query(default=None, description="JSON array of extra filters"),
    sort: str | None = Query(default=None, description="JSON array replacing the view sort"),
):
    """Query the collection view on a page."""
    page_uuid = parse_page_id(page_id)
    options = CollectionQuery(
        view_name=view,
        limit=limit or notion.settings.default_row_limit,
        filters=parse_json_list(filters, "filters") or [],
        sort=parse_json_list(sort, "sort"),
        payload=parse_payload_keys(payload),
    )
    service = CollectionQueryService(
        notion.store, asset_base_url=notion.settings.notion_asset_base_url
    )

    async def produce() -> EdgePayload:
        with LoggingContext(page_id=page_uuid):
            try:
                result = await service.query(page_uuid, notion.token, options)
            except NotionViewError as e:
                logger.warning("Collection query failed", error=str(e), exc_type=type(e).__name__)
                return error_payload(e, page_id=page_uuid)
        return EdgePayload(status.HTTP_200_OK, result)

    return await notion.respond(produce)
