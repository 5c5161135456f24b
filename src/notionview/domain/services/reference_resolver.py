"""Batched resolution of user and asset references in assembled rows.

Row assembly records every reference it encounters in a ``ReferenceBatch``
instead of fetching it. Resolution then issues:

* at most one ``get_users`` call for all person fields and creators,
* one signed-URL call per distinct page cover, all running concurrently.

Lookup failures never fail the request: person fields and ``Created By``
end up empty, covers keep their stored URL.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from notionview.core.logging import get_logger
from notionview.domain.entities.user import NotionUser
from notionview.domain.exceptions import UpstreamFetchError
from notionview.domain.services.record_store import RecordStore

logger = get_logger(__name__)

CREATED_BY_FIELD = "Created By"


@dataclass
class PersonReference:
    row_index: int
    field_name: str
    user_ids: list[str]


@dataclass
class CreatorReference:
    row_index: int
    user_id: str


@dataclass
class CoverReference:
    row_index: int
    url: str
    block_id: str


@dataclass
class ReferenceBatch:
    """References collected while assembling one batch of rows."""

    person_fields: list[PersonReference] = field(default_factory=list)
    creators: list[CreatorReference] = field(default_factory=list)
    covers: list[CoverReference] = field(default_factory=list)

    def user_ids(self) -> list[str]:
        """All referenced user IDs, deduplicated, in first-seen order."""
        seen: dict[str, None] = {}
        for person in self.person_fields:
            for user_id in person.user_ids:
                seen.setdefault(user_id, None)
        for creator in self.creators:
            seen.setdefault(creator.user_id, None)
        return list(seen)


async def fetch_user_map(
    batch: ReferenceBatch, store: RecordStore, token: str | None = None
) -> dict[str, NotionUser]:
    """Look up every referenced user with a single batched call."""
    user_ids = batch.user_ids()
    if not user_ids:
        return {}
    try:
        users = await store.get_users(user_ids, token)
    except UpstreamFetchError as e:
        logger.warning(
            "User lookup failed, continuing without user data",
            user_count=len(user_ids),
            error=str(e),
        )
        return {}
    return {user.id: user for user in users}


def splice_users(
    rows: list[dict[str, Any]], batch: ReferenceBatch, user_map: dict[str, NotionUser]
) -> None:
    """Replace person IDs with user objects and set ``Created By`` on each row."""
    for person in batch.person_fields:
        rows[person.row_index][person.field_name] = [
            user_map[user_id].to_dict() for user_id in person.user_ids if user_id in user_map
        ]
    for creator in batch.creators:
        user = user_map.get(creator.user_id)
        rows[creator.row_index][CREATED_BY_FIELD] = [user.to_dict()] if user else []


async def resolve_covers(
    rows: list[dict[str, Any]],
    batch: ReferenceBatch,
    store: RecordStore,
    token: str | None = None,
) -> None:
    """Swap page cover URLs for signed URLs, one concurrent call per distinct cover."""
    pending: dict[tuple[str, str], list[int]] = {}
    for cover in batch.covers:
        pending.setdefault((cover.url, cover.block_id), []).append(cover.row_index)
    if not pending:
        return

    async def _resolve(url: str, block_id: str, row_indexes: list[int]) -> None:
        try:
            signed_url = await store.get_signed_file_url(url, block_id, token)
        except UpstreamFetchError as e:
            logger.warning("Failed to sign page cover", block_id=block_id, error=str(e))
            return
        if not signed_url:
            return
        for index in row_indexes:
            row = rows[index]
            # Copy so the raw block format shared with tableArr stays untouched
            row["format"] = {**(row.get("format") or {}), "page_cover": signed_url}

    await asyncio.gather(
        *(_resolve(url, block_id, indexes) for (url, block_id), indexes in pending.items())
    )


async def resolve_references(
    rows: list[dict[str, Any]],
    batch: ReferenceBatch,
    store: RecordStore,
    token: str | None = None,
) -> None:
    """Resolve users first, then page covers, splicing results into ``rows``."""
    user_map = await fetch_user_map(batch, store, token)
    splice_users(rows, batch, user_map)
    await resolve_covers(rows, batch, store, token)
