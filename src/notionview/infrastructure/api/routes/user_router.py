"""User API routes."""

from fastapi import APIRouter, status

from notionview.domain.exceptions import RecordNotFoundError
from notionview.domain.services.identifiers import parse_page_id
from notionview.infrastructure.api.dependencies import Notion
from notionview.infrastructure.api.errors import error_payload
from notionview.infrastructure.cache.edge_cache import EdgePayload

router = APIRouter()


@router.get("/{user_id}", status_code=status.HTTP_200_OK)
async def get_user(user_id: str, notion: Notion):
    """Resolve a workspace member by ID."""
    user_uuid = parse_page_id(user_id)

    async def produce() -> EdgePayload:
        users = await notion.store.get_users([user_uuid], notion.token)
        if not users:
            return error_payload(RecordNotFoundError(f"User not found: {user_uuid}"))
        return EdgePayload(status.HTTP_200_OK, users[0].to_dict())

    return await notion.respond(produce)
