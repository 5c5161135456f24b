"""Mapping of domain errors to HTTP error payloads."""

from fastapi import status

from notionview.domain.exceptions import (
    CollectionNotFoundError,
    InvalidIdentifierError,
    MalformedResponseError,
    NotionViewError,
    RecordNotFoundError,
    UpstreamFetchError,
)
from notionview.infrastructure.cache.edge_cache import EdgePayload

UPSTREAM_PAGE_ERROR = "Failed to fetch data from Notion. The API may be temporarily unavailable."
UPSTREAM_COLLECTION_ERROR = "Failed to fetch collection data from Notion"

_STATUS_CODES: list[tuple[type[NotionViewError], int]] = [
    (InvalidIdentifierError, status.HTTP_400_BAD_REQUEST),
    (CollectionNotFoundError, status.HTTP_401_UNAUTHORIZED),
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (MalformedResponseError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamFetchError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_code_for(exc: NotionViewError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_payload(exc: NotionViewError, page_id: str | None = None) -> EdgePayload:
    """Build the ``{error, message?, pageId?}`` payload for a domain error."""
    if isinstance(exc, UpstreamFetchError):
        if exc.resource == "queryCollection":
            body = {"error": UPSTREAM_COLLECTION_ERROR, "message": str(exc)}
        else:
            body = {"error": UPSTREAM_PAGE_ERROR, "message": str(exc)}
    else:
        body = {"error": str(exc)}
    if page_id is not None:
        body["pageId"] = page_id
    return EdgePayload(status_code_for(exc), body)
