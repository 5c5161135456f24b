"""Application services combining the record store with the domain services."""

from notionview.application.services.collection_query_service import (
    CollectionQuery,
    CollectionQueryService,
)
from notionview.application.services.page_service import PageService, load_record_map

__all__ = ["CollectionQuery", "CollectionQueryService", "PageService", "load_record_map"]
