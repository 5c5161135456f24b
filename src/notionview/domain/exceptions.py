"""Exceptions raised while loading and transforming Notion records."""


class NotionViewError(Exception):
    """Base class for all notionview errors."""


class UpstreamFetchError(NotionViewError):
    """Raised when a call to the Notion API fails.

    Covers transport errors, timeouts, non-2xx responses and bodies that are
    not valid JSON.
    """

    def __init__(self, resource: str, message: str, status_code: int | None = None):
        self.resource = resource
        self.status_code = status_code
        detail = f"{resource}: {message}"
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        super().__init__(detail)


class MalformedResponseError(NotionViewError):
    """Raised when an upstream payload lacks the shape we rely on."""


class InvalidIdentifierError(NotionViewError, ValueError):
    """Raised when a page or block ID cannot be normalized to a UUID."""


class RecordNotFoundError(NotionViewError):
    """Raised when a requested page, block or user is missing from the response."""


class CollectionNotFoundError(NotionViewError):
    """Raised when a page has no collection or no collection view to query."""
