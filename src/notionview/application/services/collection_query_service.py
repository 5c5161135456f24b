"""Collection query orchestration for the collection and table routes."""

from dataclasses import dataclass, field
from typing import Any

from notionview.application.services.page_service import load_record_map
from notionview.core.logging import get_logger
from notionview.core.query import (
    apply_filters,
    build_query_filter,
    build_query_sort,
    merge_columns,
    order_views,
    project_payload,
    select_view,
)
from notionview.domain.entities.block import Block, RecordMap
from notionview.domain.entities.collection import Collection, CollectionView
from notionview.domain.exceptions import CollectionNotFoundError
from notionview.domain.services.record_store import RecordStore
from notionview.domain.services.row_assembler import assemble_collection
from notionview.domain.services.value_decoder import DEFAULT_ASSET_BASE_URL

logger = get_logger(__name__)


@dataclass
class CollectionQuery:
    """Caller options for a collection query.

    Attributes:
        view_name: Name of the view to use; the first view when absent or unknown.
        limit: Maximum number of rows requested upstream.
        filters: Extra filter entries, view or flat shape, appended to the view filters.
        sort: Sort that replaces the view's stored sort.
        payload: Top-level result keys to return; everything when empty.
    """

    view_name: str | None = None
    limit: int = 999
    filters: list[Any] = field(default_factory=list)
    sort: list[Any] | None = None
    payload: list[str] = field(default_factory=list)


@dataclass
class ResolvedCollection:
    collection: Collection
    views: list[CollectionView]
    view: CollectionView


def resolve_collection(
    record_map: RecordMap, page_block: Block, page_id: str, view_name: str | None = None
) -> ResolvedCollection:
    """Find the collection on a page and the view to query.

    Raises:
        CollectionNotFoundError: If the page carries no collection or no view.
    """
    collection = record_map.collection(page_block.collection_id)
    views = order_views(record_map, page_block)
    view = select_view(views, view_name)
    if collection is None or view is None:
        raise CollectionNotFoundError(f"No table found on Notion page: {page_id}")
    return ResolvedCollection(collection=collection, views=views, view=view)


class CollectionQueryService:
    """Runs a page's collection view and shapes the result."""

    def __init__(self, store: RecordStore, *, asset_base_url: str = DEFAULT_ASSET_BASE_URL):
        self.store = store
        self.asset_base_url = asset_base_url

    async def query(
        self, page_id: str, token: str | None = None, options: CollectionQuery | None = None
    ) -> dict[str, Any]:
        """Query the collection on ``page_id`` through its selected view.

        View filters are sent upstream and applied again locally to the
        decoded rows, so a view filter the API ignores still narrows the
        result.

        Raises:
            UpstreamFetchError: If the page or the collection query fails.
            MalformedResponseError: If the page response has no record map.
            RecordNotFoundError: If the page block is missing.
            CollectionNotFoundError: If the page has no collection.
        """
        options = options or CollectionQuery()
        record_map, page_block = await load_record_map(self.store, page_id, token)
        resolved = resolve_collection(record_map, page_block, page_id, options.view_name)
        view = resolved.view

        query_filter = build_query_filter(view, options.filters, resolved.collection.schema)
        query_sort = options.sort if options.sort is not None else build_query_sort(view)

        data = await assemble_collection(
            self.store,
            resolved.collection,
            view.id,
            token,
            query_filter=query_filter,
            sort=query_sort,
            limit=options.limit,
            asset_base_url=self.asset_base_url,
        )
        rows = apply_filters(data.rows, query_filter.get("filters"), resolved.collection.schema)
        if len(rows) != len(data.rows):
            logger.debug(
                "Rows narrowed by view filters",
                page_id=page_id,
                before=len(data.rows),
                after=len(rows),
            )

        result = {
            **data.to_dict(),
            "rows": rows,
            "columns": merge_columns(view, resolved.collection),
            "collection": resolved.collection.record,
            "sort": view.page_sort,
            "query_filter": query_filter,
            "query_sort": query_sort,
            "views": [candidate.value for candidate in resolved.views],
        }
        return project_payload(result, options.payload)

    async def table_rows(
        self, page_id: str, token: str | None = None, limit: int = 999
    ) -> list[dict[str, Any]]:
        """Rows of the page's first collection view, without view filters."""
        record_map, page_block = await load_record_map(self.store, page_id, token)
        resolved = resolve_collection(record_map, page_block, page_id)
        data = await assemble_collection(
            self.store,
            resolved.collection,
            resolved.view.id,
            token,
            limit=limit,
            asset_base_url=self.asset_base_url,
        )
        return data.rows
