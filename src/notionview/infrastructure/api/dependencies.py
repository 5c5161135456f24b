"""FastAPI dependencies for upstream access, caching and credentials.

Shared objects live on ``app.state``. They are created in the application
lifespan and lazily here when a request arrives without one (tests drive
the app through ``ASGITransport``, which skips the lifespan).
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from notionview.core.config import Settings, get_settings
from notionview.core.logging import get_logger
from notionview.domain.services.record_store import RecordStore
from notionview.infrastructure.cache.edge_cache import EdgeCache, Producer
from notionview.infrastructure.api.responses import NotionJSONResponse, build_response
from notionview.infrastructure.notion.client import NotionClient

logger = get_logger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    if not hasattr(request.app.state, "settings"):
        request.app.state.settings = get_settings()
    return request.app.state.settings


def get_notion_client(request: Request) -> RecordStore:
    """Get the shared Notion client from app state."""
    if not hasattr(request.app.state, "notion_client"):
        request.app.state.notion_client = NotionClient.from_settings(get_app_settings(request))
    return request.app.state.notion_client


def get_edge_cache(request: Request) -> EdgeCache:
    """Get the response cache from app state."""
    if not hasattr(request.app.state, "edge_cache"):
        settings = get_app_settings(request)
        request.app.state.edge_cache = EdgeCache(
            fresh_seconds=settings.cache_fresh_seconds,
            max_entries=settings.cache_max_entries,
            enabled=settings.cache_enabled,
        )
    return request.app.state.edge_cache


async def get_notion_token(
    settings: Annotated[Settings, Depends(get_app_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the Notion ``token_v2`` from an ``Authorization: Bearer`` header.

    Raises:
        HTTPException: 401 if the token is missing and ``require_token`` is set.
    """
    token = None
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]

    if token is None and settings.require_token:
        logger.info("Request rejected: missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


@dataclass
class NotionContext:
    """Everything a route needs to answer from Notion through the edge cache."""

    request: Request
    settings: Settings
    store: RecordStore
    cache: EdgeCache
    token: str | None

    async def respond(self, produce: Producer) -> NotionJSONResponse:
        """Serve the request from the edge cache, running ``produce`` on a miss."""
        key = self.cache.make_key(
            self.request.url.path,
            list(self.request.query_params.multi_items()),
            self.token,
        )
        result = await self.cache.serve(key, produce)
        return build_response(result, self.settings)


async def get_notion_context(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[RecordStore, Depends(get_notion_client)],
    cache: Annotated[EdgeCache, Depends(get_edge_cache)],
    token: Annotated[str | None, Depends(get_notion_token)],
) -> NotionContext:
    return NotionContext(request=request, settings=settings, store=store, cache=cache, token=token)


# Type alias for dependency injection
Notion = Annotated[NotionContext, Depends(get_notion_context)]
