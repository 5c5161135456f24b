"""Page loading and full block tree expansion.

``loadPageChunk`` only returns the first chunk of a page. The page route
keeps asking ``syncRecordValues`` for children that are referenced but not
yet loaded until the tree is complete, then attaches the raw rows of every
embedded collection.
"""

from typing import Any

from notionview.core.logging import get_logger
from notionview.core.query import order_views
from notionview.domain.entities.block import Block, RecordMap
from notionview.domain.exceptions import (
    MalformedResponseError,
    NotionViewError,
    RecordNotFoundError,
)
from notionview.domain.services.record_store import RecordStore
from notionview.domain.services.row_assembler import assemble_collection
from notionview.domain.services.value_decoder import DEFAULT_ASSET_BASE_URL

logger = get_logger(__name__)

MAX_SYNC_ROUNDS = 50


async def load_record_map(
    store: RecordStore, page_id: str, token: str | None = None
) -> tuple[RecordMap, Block]:
    """Fetch the first chunk of a page.

    Returns:
        The record map and the page block itself.

    Raises:
        UpstreamFetchError: If the page chunk cannot be fetched.
        MalformedResponseError: If the response has no ``recordMap``.
        RecordNotFoundError: If the page block is missing from the response.
    """
    response = await store.load_page_chunk(page_id, token)
    if not isinstance(response.get("recordMap"), dict):
        logger.warning("Page chunk without recordMap", page_id=page_id)
        raise MalformedResponseError("Invalid response from Notion API")

    record_map = RecordMap.from_payload(response["recordMap"])
    page_block = record_map.block(page_id)
    if page_block is None:
        raise RecordNotFoundError("Page block not found in Notion response")
    return record_map, page_block


def pending_children(record_map: RecordMap, page_id: str) -> list[str]:
    """Child IDs referenced by loaded blocks but not present in the arena.

    Children of nested pages are not followed; only the requested page is
    expanded.
    """
    pending: dict[str, None] = {}
    for block_id, block in record_map.blocks.items():
        if block.type == "page" and block_id != page_id:
            continue
        for child_id in block.content:
            if child_id not in record_map.blocks:
                pending.setdefault(child_id, None)
    return list(pending)


class PageService:
    """Builds the block map served by the page route."""

    def __init__(
        self,
        store: RecordStore,
        *,
        row_limit: int = 999,
        asset_base_url: str = DEFAULT_ASSET_BASE_URL,
    ):
        self.store = store
        self.row_limit = row_limit
        self.asset_base_url = asset_base_url

    async def get_page(self, page_id: str, token: str | None = None) -> dict[str, Any]:
        """Return every block of the page keyed by ID.

        Embedded ``collection_view`` blocks gain a ``collection`` entry with
        the collection title, schema, views and raw rows.
        """
        record_map, _ = await load_record_map(self.store, page_id, token)
        await self.load_children(record_map, page_id, token)

        blocks = record_map.block_records()
        if record_map.collections and record_map.collection_views:
            for block in list(record_map.blocks.values()):
                if block.type != "collection_view":
                    continue
                collection = await self.embedded_collection(block, token)
                if collection is not None:
                    blocks[block.id] = {**blocks[block.id], "collection": collection}
        return blocks

    async def load_children(self, record_map: RecordMap, page_id: str, token: str | None = None) -> None:
        """Sync missing children into ``record_map`` until nothing new arrives."""
        for _ in range(MAX_SYNC_ROUNDS):
            pending = pending_children(record_map, page_id)
            if not pending:
                return
            response = await self.store.sync_blocks(pending, token)
            added = record_map.merge_blocks(RecordMap.from_payload(response.get("recordMap")).blocks)
            logger.debug("Synced page children", page_id=page_id, requested=len(pending), added=added)
            if not added:
                return
        logger.warning("Stopped expanding page after too many rounds", page_id=page_id)

    async def embedded_collection(self, block: Block, token: str | None = None) -> dict[str, Any] | None:
        """Load the collection behind an embedded view block.

        Failures are logged and leave the block without a ``collection`` entry.
        """
        try:
            record_map, collection_block = await load_record_map(self.store, block.id, token)
            collection = record_map.collection(collection_block.collection_id)
            views = order_views(record_map, collection_block)
            if collection is None or not views:
                return None
            data = await assemble_collection(
                self.store,
                collection,
                views[0].id,
                token,
                limit=self.row_limit,
                raw_mode=True,
                asset_base_url=self.asset_base_url,
            )
        except NotionViewError as e:
            logger.warning("Failed to load embedded collection", block_id=block.id, error=str(e))
            return None

        return {
            "title": collection.raw_name,
            "schema": collection.raw_schema,
            "types": [view.value for view in views],
            "data": data.rows,
        }
