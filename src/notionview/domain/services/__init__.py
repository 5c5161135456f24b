"""Domain services for notionview.

Services decode and assemble Notion records. They only talk to the
upstream API through the ``RecordStore`` interface.
"""

from notionview.domain.services.identifiers import id_to_uuid, parse_page_id
from notionview.domain.services.record_store import RecordStore
from notionview.domain.services.reference_resolver import (
    CREATED_BY_FIELD,
    ReferenceBatch,
    resolve_references,
)
from notionview.domain.services.row_assembler import (
    CollectionData,
    assemble_collection,
    build_rows,
)
from notionview.domain.services.value_decoder import (
    UNSUPPORTED,
    MarkType,
    decode_value,
    get_formatted_text_content,
)

__all__ = [
    "CREATED_BY_FIELD",
    "CollectionData",
    "MarkType",
    "RecordStore",
    "ReferenceBatch",
    "UNSUPPORTED",
    "assemble_collection",
    "build_rows",
    "decode_value",
    "get_formatted_text_content",
    "id_to_uuid",
    "parse_page_id",
    "resolve_references",
]
