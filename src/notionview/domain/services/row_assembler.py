"""Row assembly for collection queries.

Turns a ``queryCollection`` response into row dicts keyed by column display
name. Only blocks whose ``parent_id`` is the collection and that carry
properties become rows; anything else in the reducer results is dropped.
"""

from dataclasses import dataclass
from typing import Any

from notionview.core.logging import get_logger
from notionview.domain.entities.block import Block, RecordMap
from notionview.domain.entities.collection import Collection, ColumnType
from notionview.domain.services.record_store import RecordStore
from notionview.domain.services.reference_resolver import (
    CoverReference,
    CreatorReference,
    PersonReference,
    ReferenceBatch,
    resolve_references,
)
from notionview.domain.services.value_decoder import DEFAULT_ASSET_BASE_URL, decode_value

logger = get_logger(__name__)


@dataclass
class CollectionData:
    """Assembled rows of one collection query.

    Attributes:
        rows: Decoded rows, in reducer result order.
        schema: Raw collection schema.
        name: Plain-text collection name.
        table_arr: Raw block records for every returned ID that exists in the record map.
    """

    rows: list[dict[str, Any]]
    schema: dict[str, Any]
    name: str
    table_arr: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": self.rows,
            "schema": self.schema,
            "name": self.name,
            "tableArr": self.table_arr,
        }


def reducer_block_ids(response: Any) -> list[str] | None:
    """Extract ``result.reducerResults.collection_group_results.blockIds``.

    Returns:
        The ID list, or None when the response does not have that shape.
    """
    try:
        block_ids = response["result"]["reducerResults"]["collection_group_results"]["blockIds"]
    except (KeyError, TypeError):
        return None
    if not isinstance(block_ids, list):
        return None
    return [block_id for block_id in block_ids if isinstance(block_id, str)]


def is_collection_member(block: Block, collection: Collection) -> bool:
    return block.parent_id == collection.id and bool(block.properties)


def build_rows(
    blocks: list[Block],
    collection: Collection,
    *,
    raw_mode: bool = False,
    asset_base_url: str = DEFAULT_ASSET_BASE_URL,
) -> tuple[list[dict[str, Any]], ReferenceBatch]:
    """Decode member blocks into rows and collect their references.

    Columns are written in schema order, so when two keys share a display
    name the later one wins. Property keys missing from the schema are kept
    raw under their internal key unless that key is already taken by ``id``,
    ``format`` or a decoded column.
    """
    rows: list[dict[str, Any]] = []
    batch = ReferenceBatch()
    unknown_keys: dict[str, None] = {}
    shadowed_keys: dict[str, None] = {}

    for index, block in enumerate(blocks):
        row: dict[str, Any] = {"id": block.id, "format": block.format}
        people: dict[str, list[str]] = {}
        properties = block.properties

        for key, column in collection.schema.items():
            value = properties.get(key)
            if value is None:
                continue
            decoded = decode_value(
                value,
                column.type,
                block,
                raw_mode=raw_mode,
                asset_base_url=asset_base_url,
            )
            row[column.name] = decoded
            people.pop(column.name, None)
            if not raw_mode and column.type == ColumnType.PERSON.value and decoded:
                people[column.name] = decoded

        for key, value in properties.items():
            if key in collection.schema:
                continue
            if key in row:
                shadowed_keys.setdefault(key, None)
                continue
            unknown_keys.setdefault(key, None)
            row[key] = value

        for field_name, user_ids in people.items():
            batch.person_fields.append(PersonReference(index, field_name, user_ids))

        cover = (block.format or {}).get("page_cover")
        if isinstance(cover, str) and cover:
            batch.covers.append(CoverReference(index, cover, block.id))

        if block.created_by_id:
            batch.creators.append(CreatorReference(index, block.created_by_id))

        rows.append(row)

    if unknown_keys:
        logger.warning(
            "Properties without schema entry passed through raw",
            collection_id=collection.id,
            property_keys=list(unknown_keys),
        )
    if shadowed_keys:
        logger.warning(
            "Properties without schema entry dropped to avoid overwriting row fields",
            collection_id=collection.id,
            property_keys=list(shadowed_keys),
        )

    return rows, batch


async def assemble_collection(
    store: RecordStore,
    collection: Collection,
    collection_view_id: str,
    token: str | None = None,
    *,
    query_filter: dict[str, Any] | None = None,
    sort: list[Any] | None = None,
    limit: int = 999,
    raw_mode: bool = False,
    asset_base_url: str = DEFAULT_ASSET_BASE_URL,
) -> CollectionData:
    """Query a collection view and build its rows.

    Raises:
        UpstreamFetchError: If the collection query itself fails.
    """
    response = await store.query_collection(
        collection.id,
        collection_view_id,
        token,
        query_filter=query_filter,
        sort=sort,
        limit=limit,
    )

    block_ids = reducer_block_ids(response)
    if block_ids is None:
        logger.warning(
            "No block IDs found in collection response",
            collection_id=collection.id,
            collection_view_id=collection_view_id,
        )
        return CollectionData(rows=[], schema=collection.raw_schema, name=collection.name, table_arr=[])

    record_map = RecordMap.from_payload(response.get("recordMap"))
    blocks = [block for block in map(record_map.block, block_ids) if block is not None]
    members = [block for block in blocks if is_collection_member(block, collection)]

    rows, batch = build_rows(
        members,
        collection,
        raw_mode=raw_mode,
        asset_base_url=asset_base_url,
    )
    await resolve_references(rows, batch, store, token)

    logger.debug(
        "Collection assembled",
        collection_id=collection.id,
        returned=len(block_ids),
        rows=len(rows),
    )
    return CollectionData(
        rows=rows,
        schema=collection.raw_schema,
        name=collection.name,
        table_arr=[block.to_record() for block in blocks],
    )
