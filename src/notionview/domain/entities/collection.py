"""Collection, column schema and collection view entities."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from notionview.domain.entities.record import unwrap_record
from notionview.domain.entities.rich_text import get_text_content


class ColumnType(str, Enum):
    """Property types the value decoder understands."""

    TEXT = "text"
    TITLE = "title"
    PERSON = "person"
    CHECKBOX = "checkbox"
    DATE = "date"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    URL = "url"
    NUMBER = "number"
    RELATION = "relation"
    FILE = "file"


@dataclass
class ColumnSchema:
    """One schema entry: internal property key -> display name and type.

    ``type`` holds the raw type string so unknown types survive until decode
    time, where they map to the unsupported marker.
    """

    key: str
    name: str
    type: str
    options: list[dict[str, Any]] | None = None

    @classmethod
    def from_entry(cls, key: str, entry: Any) -> "ColumnSchema | None":
        if not isinstance(entry, dict):
            return None
        return cls(
            key=key,
            name=str(entry.get("name") or key),
            type=str(entry.get("type") or ""),
            options=entry.get("options"),
        )


@dataclass
class Collection:
    """A table-like entity whose member blocks are its rows.

    Attributes:
        id: Collection UUID.
        name: Plain-text collection title.
        schema: Typed schema, keyed by internal property key, in declaration order.
        raw_schema: Schema exactly as returned by the API.
        record: The raw upstream record, echoed back in collection responses.
        raw_name: The title as a rich value.
    """

    id: str
    name: str
    schema: dict[str, ColumnSchema]
    raw_schema: dict[str, Any]
    record: dict[str, Any]
    raw_name: Any = None

    @classmethod
    def from_record(cls, record: Any) -> "Collection | None":
        value, _ = unwrap_record(record)
        if value is None:
            return None
        raw_schema = value.get("schema") if isinstance(value.get("schema"), dict) else {}
        schema = {}
        for key, entry in raw_schema.items():
            column = ColumnSchema.from_entry(key, entry)
            if column is not None:
                schema[key] = column
        return cls(
            id=value["id"],
            name=get_text_content(value.get("name")),
            schema=schema,
            raw_schema=raw_schema,
            record=record,
            raw_name=value.get("name"),
        )

    def display_name(self, key: str) -> str | None:
        column = self.schema.get(key)
        return column.name if column else None


@dataclass
class CollectionView:
    """One saved presentation of a collection (table, gallery, board...)."""

    id: str
    value: dict[str, Any]

    @classmethod
    def from_record(cls, record: Any) -> "CollectionView | None":
        value, _ = unwrap_record(record)
        if value is None:
            return None
        return cls(id=value["id"], value=value)

    @property
    def name(self) -> str | None:
        return self.value.get("name")

    @property
    def type(self) -> str | None:
        return self.value.get("type")

    @property
    def format(self) -> dict[str, Any]:
        view_format = self.value.get("format")
        return view_format if isinstance(view_format, dict) else {}

    @property
    def query2(self) -> dict[str, Any]:
        query = self.value.get("query2")
        return query if isinstance(query, dict) else {}

    @property
    def page_sort(self) -> list[str] | None:
        return self.value.get("page_sort")
