"""Block and record map entities.

Notion returns records as an adjacency map (``id -> {role, value}``) that
may contain cycles: pages list children in ``content``, rows point to their
collection via ``parent_id`` and relations point to arbitrary blocks. We keep
that shape as an arena of ``Block`` objects keyed by ID and follow every
reference with a plain lookup.
"""

from dataclasses import dataclass, field
from typing import Any

from notionview.domain.entities.collection import Collection, CollectionView
from notionview.domain.entities.record import unwrap_record


@dataclass
class Block:
    """A single node of the record graph.

    Attributes:
        id: Block UUID.
        value: Raw upstream value (type dependent fields).
        role: Permission role reported by the API, if any.
    """

    id: str
    value: dict[str, Any]
    role: str | None = None

    @classmethod
    def from_record(cls, record: Any) -> "Block | None":
        value, role = unwrap_record(record)
        if value is None:
            return None
        return cls(id=value["id"], value=value, role=role)

    @property
    def type(self) -> str | None:
        return self.value.get("type")

    @property
    def parent_id(self) -> str | None:
        return self.value.get("parent_id")

    @property
    def collection_id(self) -> str | None:
        return self.value.get("collection_id")

    @property
    def created_by_id(self) -> str | None:
        return self.value.get("created_by_id")

    @property
    def properties(self) -> dict[str, Any]:
        properties = self.value.get("properties")
        return properties if isinstance(properties, dict) else {}

    @property
    def format(self) -> dict[str, Any] | None:
        block_format = self.value.get("format")
        return block_format if isinstance(block_format, dict) else None

    @property
    def view_ids(self) -> list[str]:
        view_ids = self.value.get("view_ids")
        return list(view_ids) if isinstance(view_ids, list) else []

    @property
    def content(self) -> list[str]:
        content = self.value.get("content")
        return list(content) if isinstance(content, list) else []

    def to_record(self) -> dict[str, Any]:
        """Serialize back to the upstream ``{role, value}`` shape."""
        record: dict[str, Any] = {"value": self.value}
        if self.role is not None:
            record["role"] = self.role
        return record


@dataclass
class RecordMap:
    """Arena of records returned by any Notion API call.

    Collections and views are kept as raw records since responses echo them
    back unchanged; typed views are built on demand.
    """

    blocks: dict[str, Block] = field(default_factory=dict)
    collections: dict[str, dict[str, Any]] = field(default_factory=dict)
    collection_views: dict[str, dict[str, Any]] = field(default_factory=dict)
    notion_users: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, record_map: Any) -> "RecordMap":
        """Build the arena from a response's ``recordMap`` object.

        Entries that are not well-formed records are skipped.
        """
        if not isinstance(record_map, dict):
            return cls()

        blocks: dict[str, Block] = {}
        for block_id, record in (record_map.get("block") or {}).items():
            block = Block.from_record(record)
            if block is not None:
                blocks[block_id] = block

        def _records(table: str) -> dict[str, dict[str, Any]]:
            entries = record_map.get(table) or {}
            return {key: record for key, record in entries.items() if isinstance(record, dict)}

        return cls(
            blocks=blocks,
            collections=_records("collection"),
            collection_views=_records("collection_view"),
            notion_users=_records("notion_user"),
        )

    def block(self, block_id: str) -> Block | None:
        return self.blocks.get(block_id)

    def merge_blocks(self, blocks: dict[str, Block]) -> int:
        """Add blocks that are not yet in the arena.

        Returns:
            Number of newly added blocks.
        """
        added = 0
        for block_id, block in blocks.items():
            if block_id not in self.blocks:
                self.blocks[block_id] = block
                added += 1
        return added

    def block_records(self) -> dict[str, dict[str, Any]]:
        return {block_id: block.to_record() for block_id, block in self.blocks.items()}

    def collection(self, collection_id: str | None) -> Collection | None:
        """Return the collection with the given ID, falling back to the first one."""
        first: Collection | None = None
        for record in self.collections.values():
            candidate = Collection.from_record(record)
            if candidate is None:
                continue
            if collection_id and candidate.id == collection_id:
                return candidate
            if first is None:
                first = candidate
        return first

    def views(self) -> list[CollectionView]:
        """All collection views in record order."""
        views = []
        for record in self.collection_views.values():
            view = CollectionView.from_record(record)
            if view is not None:
                views.append(view)
        return views
