"""Normalization of Notion page and block identifiers."""

import re

from notionview.domain.exceptions import InvalidIdentifierError

_HEX_ID = re.compile(r"^[0-9a-fA-F]{32}$")


def id_to_uuid(raw_id: str) -> str:
    """Format a 32 character hex ID as a dashed UUID."""
    return f"{raw_id[:8]}-{raw_id[8:12]}-{raw_id[12:16]}-{raw_id[16:20]}-{raw_id[20:]}"


def parse_page_id(value: str) -> str:
    """Normalize a page ID, dashed UUID or page URL slug to a dashed UUID.

    Slugs such as ``My-Page-0123456789abcdef0123456789abcdef`` are accepted
    because only the last 32 characters (dashes removed) are used.

    Raises:
        InvalidIdentifierError: If no 32 character hex ID can be extracted.
    """
    raw_id = (value or "").replace("-", "")[-32:]
    if not _HEX_ID.match(raw_id):
        raise InvalidIdentifierError(f"Invalid Notion ID: {value!r}")
    return id_to_uuid(raw_id.lower())
