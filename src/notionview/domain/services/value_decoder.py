"""Decoding of Notion rich values into typed column values.

Every property of a row block is stored as a rich value (see
``notionview.domain.entities.rich_text``). The collection schema tells us the
column type, and each type has its own extraction rule:

* ``title``: plain text, marks dropped.
* ``text``: text with marks rendered as inline HTML.
* ``checkbox``: ``True`` iff the text is ``"Yes"``.
* ``date``: payload of the ``d`` mark, ``""`` when missing.
* ``select`` / ``email`` / ``phone_number`` / ``url``: first fragment text.
* ``multi_select``: first fragment text split on commas.
* ``number``: numeric parse, ``nan`` when not numeric.
* ``person``: user IDs from the mark payloads (resolved later in a batch).
* ``relation``: block IDs from ``‣`` mention fragments.
* ``file``: ``{name, url[, rawUrl]}`` entries with signed-asset URLs.

Anything else decodes to :data:`UNSUPPORTED`. ``decode_value`` never raises;
malformed input yields the empty value of the column type.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from notionview.core.logging import get_logger
from notionview.domain.entities.block import Block
from notionview.domain.entities.collection import ColumnType
from notionview.domain.entities.rich_text import (
    first_mark_arg,
    fragment_marks,
    fragment_text,
    get_text_content,
)

logger = get_logger(__name__)

UNSUPPORTED = "Not supported"

NUMBER_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
LINK_GLYPH = "‣"
DEFAULT_ASSET_BASE_URL = "https://www.notion.so"

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"
_ASSET_PARAMS = ("table", "id", "cache")


class MarkType(str, Enum):
    """Inline mark tags found in rich values."""

    BOLD = "b"
    ITALIC = "i"
    STRIKETHROUGH = "s"
    CODE = "c"
    COLOR = "h"
    LINK = "a"
    DATE = "d"
    USER = "u"
    PAGE = "p"


_MARK_RENDERERS: dict[str, Callable[[str, Any], str]] = {
    MarkType.BOLD.value: lambda inner, _: f"<b>{inner}</b>",
    MarkType.ITALIC.value: lambda inner, _: f"<em>{inner}</em>",
    MarkType.STRIKETHROUGH.value: lambda inner, _: f"<s>{inner}</s>",
    MarkType.CODE.value: lambda inner, _: f'<code class="notion-inline-code">{inner}</code>',
    MarkType.COLOR.value: lambda inner, color: f'<span class="notion-{color}">{inner}</span>',
    MarkType.LINK.value: lambda inner, href: f'<a class="notion-link" href="{href}">{inner}</a>',
}


@dataclass(frozen=True)
class DecodeContext:
    """Per-row information some decoders need."""

    row_id: str
    asset_base_url: str = DEFAULT_ASSET_BASE_URL


def render_fragment(fragment: Any) -> str:
    """Render one fragment, wrapping its text in each mark from the last to the first."""
    text = fragment_text(fragment)
    for mark in reversed(fragment_marks(fragment)):
        renderer = _MARK_RENDERERS.get(mark[0])
        if renderer is not None:
            text = renderer(text, mark[1] if len(mark) > 1 else None)
    return text


def get_formatted_text_content(value: Any) -> str:
    """Concatenate all fragments with their marks rendered as inline HTML."""
    if not isinstance(value, list):
        return ""
    return "".join(render_fragment(fragment) for fragment in value)


def build_asset_url(raw_url: str, block_id: str, base_url: str = DEFAULT_ASSET_BASE_URL) -> str:
    """Build the signed-asset URL for a file stored on a block.

    Stored paths starting with ``/image`` are used as-is, anything else is
    URL-encoded under ``/image/``. The ``table``, ``id`` and ``cache`` query
    parameters always point the permission check at the owning block.
    """
    if raw_url.startswith("/image"):
        path = raw_url
    else:
        path = f"/image/{quote(raw_url, safe=_URI_COMPONENT_SAFE)}"
    parts = urlsplit(f"{base_url.rstrip('/')}{path}")
    query = [
        (key, val)
        for key, val in parse_qsl(parts.query, keep_blank_values=True)
        if key not in _ASSET_PARAMS
    ]
    query.extend([("table", "block"), ("id", block_id), ("cache", "v2")])
    return urlunsplit(parts._replace(query=urlencode(query)))


def _first_text(value: list[Any]) -> str:
    return fragment_text(value[0]) if value else ""


def _decode_text(value: list[Any], context: DecodeContext) -> str:
    return get_formatted_text_content(value)


def _decode_title(value: list[Any], context: DecodeContext) -> str:
    return get_text_content(value)


def _decode_checkbox(value: list[Any], context: DecodeContext) -> bool:
    return _first_text(value) == "Yes"


def _decode_date(value: list[Any], context: DecodeContext) -> Any:
    if not value:
        return ""
    marks = fragment_marks(value[0])
    if marks and marks[0][0] == MarkType.DATE.value and len(marks[0]) > 1:
        return marks[0][1]
    return ""


def _decode_plain(value: list[Any], context: DecodeContext) -> str:
    return _first_text(value)


def _decode_multi_select(value: list[Any], context: DecodeContext) -> list[str]:
    text = _first_text(value)
    return text.split(",") if text else []


def _decode_number(value: list[Any], context: DecodeContext) -> int | float:
    text = _first_text(value).strip()
    if not NUMBER_PATTERN.fullmatch(text):
        return math.nan
    try:
        return int(text)
    except ValueError:
        return float(text)


def _decode_person(value: list[Any], context: DecodeContext) -> list[str]:
    user_ids = []
    for fragment in value:
        user_id = first_mark_arg(fragment)
        if isinstance(user_id, str):
            user_ids.append(user_id)
    return user_ids


def _decode_relation(value: list[Any], context: DecodeContext) -> list[str]:
    block_ids = []
    for fragment in value:
        if fragment_text(fragment) != LINK_GLYPH:
            continue
        block_id = first_mark_arg(fragment)
        if isinstance(block_id, str):
            block_ids.append(block_id)
    return block_ids


def _decode_file(value: list[Any], context: DecodeContext) -> list[dict[str, str]]:
    if not value:
        return []
    if not fragment_marks(value[0]):
        # Embedded external link rather than an uploaded file
        link = fragment_text(value[0])
        return [{"name": link, "url": link}] if link else []

    files = []
    for fragment in value:
        raw_url = first_mark_arg(fragment)
        if not isinstance(raw_url, str):
            continue
        files.append(
            {
                "name": fragment_text(fragment),
                "url": build_asset_url(raw_url, context.row_id, context.asset_base_url),
                "rawUrl": raw_url,
            }
        )
    return files


_DECODERS: dict[ColumnType, Callable[[list[Any], DecodeContext], Any]] = {
    ColumnType.TEXT: _decode_text,
    ColumnType.TITLE: _decode_title,
    ColumnType.PERSON: _decode_person,
    ColumnType.CHECKBOX: _decode_checkbox,
    ColumnType.DATE: _decode_date,
    ColumnType.SELECT: _decode_plain,
    ColumnType.EMAIL: _decode_plain,
    ColumnType.PHONE_NUMBER: _decode_plain,
    ColumnType.URL: _decode_plain,
    ColumnType.MULTI_SELECT: _decode_multi_select,
    ColumnType.NUMBER: _decode_number,
    ColumnType.RELATION: _decode_relation,
    ColumnType.FILE: _decode_file,
}

_LIST_TYPES = frozenset(
    {ColumnType.PERSON, ColumnType.MULTI_SELECT, ColumnType.RELATION, ColumnType.FILE}
)


def empty_value(column_type: ColumnType) -> Any:
    """Value returned for a malformed rich value of the given type."""
    if column_type in _LIST_TYPES:
        return []
    if column_type is ColumnType.CHECKBOX:
        return False
    if column_type is ColumnType.NUMBER:
        return math.nan
    return ""


def decode_value(
    value: Any,
    column_type: str,
    row: Block,
    *,
    raw_mode: bool = False,
    asset_base_url: str = DEFAULT_ASSET_BASE_URL,
) -> Any:
    """Decode a rich value according to its column type.

    Args:
        value: The raw rich value from ``block.value.properties``.
        column_type: Declared schema type of the column.
        row: The block that owns the value (used for file URLs).
        raw_mode: Return ``value`` untouched.
        asset_base_url: Origin used when building file URLs.

    Returns:
        The decoded value, the empty value of the type for malformed input,
        or ``UNSUPPORTED`` for types without a decoder.
    """
    if raw_mode:
        return value

    try:
        kind = ColumnType(column_type)
    except ValueError:
        logger.debug("Unsupported property type", column_type=column_type, block_id=row.id)
        return UNSUPPORTED

    if not isinstance(value, list):
        logger.debug("Rich value is not a list", column_type=kind.value, block_id=row.id)
        return empty_value(kind)

    try:
        return _DECODERS[kind](value, DecodeContext(row_id=row.id, asset_base_url=asset_base_url))
    except (IndexError, KeyError, TypeError, ValueError, AttributeError) as e:
        logger.debug(
            "Malformed rich value",
            column_type=kind.value,
            block_id=row.id,
            error=str(e),
        )
        return empty_value(kind)
