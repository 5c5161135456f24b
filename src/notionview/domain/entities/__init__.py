"""Domain entities for notionview.

Entities are plain dataclasses wrapping Notion's record graph. They have no
dependencies on infrastructure or external frameworks.
"""

from notionview.domain.entities.block import Block, RecordMap
from notionview.domain.entities.collection import (
    Collection,
    CollectionView,
    ColumnSchema,
    ColumnType,
)
from notionview.domain.entities.user import NotionUser

__all__ = [
    "Block",
    "Collection",
    "CollectionView",
    "ColumnSchema",
    "ColumnType",
    "NotionUser",
    "RecordMap",
]
