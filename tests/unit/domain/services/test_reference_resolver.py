"""Unit tests for batched user and cover resolution."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from notionview.domain.entities.user import NotionUser
from notionview.domain.exceptions import UpstreamFetchError
from notionview.domain.services.reference_resolver import (
    CREATED_BY_FIELD,
    CoverReference,
    CreatorReference,
    PersonReference,
    ReferenceBatch,
    resolve_references,
)


@pytest.fixture
def store():
    mock_store = MagicMock()
    mock_store.get_users = AsyncMock(
        return_value=[
            NotionUser(id="u1", first_name="Ada", last_name="Lovelace"),
            NotionUser(id="u2", first_name="Alan"),
        ]
    )
    mock_store.get_signed_file_url = AsyncMock(side_effect=lambda url, block_id, token=None: f"{url}?signed")
    return mock_store


def test_user_ids_are_deduplicated_in_first_seen_order():
    batch = ReferenceBatch(
        person_fields=[PersonReference(0, "Owner", ["u2", "u1"]), PersonReference(1, "Owner", ["u1"])],
        creators=[CreatorReference(0, "u3"), CreatorReference(1, "u2")],
    )
    assert batch.user_ids() == ["u2", "u1", "u3"]


@pytest.mark.asyncio
async def test_users_resolved_with_single_call(store):
    rows = [{"id": "r1", "Owner": ["u1", "u2"]}, {"id": "r2", "Owner": ["u1"]}]
    batch = ReferenceBatch(
        person_fields=[PersonReference(0, "Owner", ["u1", "u2"]), PersonReference(1, "Owner", ["u1"])],
        creators=[CreatorReference(0, "u2"), CreatorReference(1, "unknown")],
    )

    await resolve_references(rows, batch, store, "tok")

    store.get_users.assert_awaited_once_with(["u1", "u2", "unknown"], "tok")
    assert [user["fullName"] for user in rows[0]["Owner"]] == ["Ada Lovelace", "Alan"]
    assert rows[0][CREATED_BY_FIELD][0]["firstName"] == "Alan"
    assert rows[0][CREATED_BY_FIELD][0]["lastName"] is None
    assert rows[1][CREATED_BY_FIELD] == []


@pytest.mark.asyncio
async def test_no_user_lookup_without_references(store):
    await resolve_references([{"id": "r1"}], ReferenceBatch(), store)

    store.get_users.assert_not_awaited()
    store.get_signed_file_url.assert_not_awaited()


@pytest.mark.asyncio
async def test_user_lookup_failure_is_swallowed(store):
    store.get_users.side_effect = UpstreamFetchError("getRecordValues", "boom")
    rows = [{"id": "r1", "Owner": ["u1"]}]
    batch = ReferenceBatch(
        person_fields=[PersonReference(0, "Owner", ["u1"])],
        creators=[CreatorReference(0, "u1")],
    )

    await resolve_references(rows, batch, store)

    assert rows[0]["Owner"] == []
    assert rows[0][CREATED_BY_FIELD] == []


@pytest.mark.asyncio
async def test_covers_are_signed_without_touching_raw_format(store):
    raw_format = {"page_cover": "/cover.png", "page_icon": "x"}
    rows = [{"id": "r1", "format": raw_format}]
    batch = ReferenceBatch(covers=[CoverReference(0, "/cover.png", "r1")])

    await resolve_references(rows, batch, store)

    assert rows[0]["format"] == {"page_cover": "/cover.png?signed", "page_icon": "x"}
    assert raw_format["page_cover"] == "/cover.png"


@pytest.mark.asyncio
async def test_cover_failures_keep_stored_url(store):
    async def sign(url, block_id, token=None):
        if block_id == "r1":
            raise UpstreamFetchError("getSignedFileUrls", "boom")
        return f"{url}?signed"

    store.get_signed_file_url.side_effect = sign
    rows = [{"id": "r1", "format": {"page_cover": "/a.png"}}, {"id": "r2", "format": {"page_cover": "/b.png"}}]
    batch = ReferenceBatch(covers=[CoverReference(0, "/a.png", "r1"), CoverReference(1, "/b.png", "r2")])

    await resolve_references(rows, batch, store)

    assert rows[0]["format"]["page_cover"] == "/a.png"
    assert rows[1]["format"]["page_cover"] == "/b.png?signed"


@pytest.mark.asyncio
async def test_covers_resolved_concurrently(store):
    in_flight = 0
    peak = 0

    async def sign(url, block_id, token=None):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return f"{url}?signed"

    store.get_signed_file_url.side_effect = sign
    rows = [{"id": f"r{i}", "format": {"page_cover": f"/{i}.png"}} for i in range(5)]
    batch = ReferenceBatch(covers=[CoverReference(i, f"/{i}.png", f"r{i}") for i in range(5)])

    await resolve_references(rows, batch, store)

    assert peak == 5
    assert store.get_signed_file_url.await_count == 5


@pytest.mark.asyncio
async def test_duplicate_covers_signed_once(store):
    rows = [{"id": "r1", "format": {"page_cover": "/a.png"}}, {"id": "r1", "format": {"page_cover": "/a.png"}}]
    batch = ReferenceBatch(covers=[CoverReference(0, "/a.png", "r1"), CoverReference(1, "/a.png", "r1")])

    await resolve_references(rows, batch, store)

    store.get_signed_file_url.assert_awaited_once()
    assert rows[1]["format"]["page_cover"] == "/a.png?signed"
