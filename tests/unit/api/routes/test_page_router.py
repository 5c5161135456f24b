"""Unit tests for the page route."""

import pytest
from fastapi import status

from conftest import COLLECTION_ID, PAGE_ID, PAGE_UUID, make_page_chunk
from notionview.domain.exceptions import UpstreamFetchError

EMBED_ID = "e0000000-0000-4000-8000-000000000002"


def block_record(block_id: str, **value) -> dict:
    return {"role": "reader", "value": {"id": block_id, **value}}


@pytest.fixture
def page_store(store):
    """Store serving a page with nested text blocks and an embedded collection."""
    workspace = make_page_chunk()["recordMap"]
    chunks = {
        PAGE_UUID: {
            "recordMap": {
                **workspace,
                "block": {PAGE_UUID: block_record(PAGE_UUID, type="page", content=[EMBED_ID, "text-1"])},
            }
        },
        EMBED_ID: {
            "recordMap": {
                **workspace,
                "block": {
                    EMBED_ID: block_record(
                        EMBED_ID,
                        type="collection_view",
                        collection_id=COLLECTION_ID,
                        view_ids=["view-all"],
                    )
                },
            }
        },
    }
    synced = [
        {
            "recordMap": {
                "block": {
                    EMBED_ID: chunks[EMBED_ID]["recordMap"]["block"][EMBED_ID],
                    "text-1": block_record("text-1", type="text", content=["text-2"]),
                }
            }
        },
        {"recordMap": {"block": {"text-2": block_record("text-2", type="text")}}},
    ]
    store.load_page_chunk.side_effect = lambda page_id, token=None: chunks[page_id]
    store.sync_blocks.side_effect = synced
    return store


@pytest.mark.asyncio
async def test_page_loads_children_iteratively(client, page_store):
    response = await client.get(f"/v1/page/{PAGE_ID}")

    assert response.status_code == status.HTTP_200_OK
    blocks = response.json()
    assert set(blocks) == {PAGE_UUID, EMBED_ID, "text-1", "text-2"}
    assert page_store.sync_blocks.await_count == 2
    assert page_store.sync_blocks.await_args_list[0].args[0] == [EMBED_ID, "text-1"]
    assert page_store.sync_blocks.await_args_list[1].args[0] == ["text-2"]


@pytest.mark.asyncio
async def test_page_embeds_collection_with_raw_rows(client, page_store):
    response = await client.get(f"/v1/page/{PAGE_ID}")

    embedded = response.json()[EMBED_ID]["collection"]
    assert embedded["title"] == [["Tasks"]]
    assert embedded["schema"]["title"]["name"] == "Name"
    assert [view["id"] for view in embedded["types"]] == ["view-all"]
    assert embedded["data"][0]["Name"] == [["Alpha"]]


@pytest.mark.asyncio
async def test_page_embedded_collection_failure_is_skipped(client, page_store):
    page_store.query_collection.side_effect = UpstreamFetchError("queryCollection", "boom")

    response = await client.get(f"/v1/page/{PAGE_ID}")

    assert response.status_code == status.HTTP_200_OK
    assert "collection" not in response.json()[EMBED_ID]


@pytest.mark.asyncio
async def test_page_fetch_failure_is_503(client, store):
    store.load_page_chunk.side_effect = UpstreamFetchError("loadPageChunk", "timed out after 25.0s")

    response = await client.get(f"/v1/page/{PAGE_ID}")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["pageId"] == PAGE_UUID


@pytest.mark.asyncio
async def test_page_stops_when_sync_adds_nothing(client, store, page_chunk):
    page_chunk["recordMap"]["block"][PAGE_UUID]["value"]["content"] = ["ghost"]
    store.load_page_chunk.side_effect = None
    store.load_page_chunk.return_value = page_chunk

    response = await client.get(f"/v1/page/{PAGE_ID}")

    assert response.status_code == status.HTTP_200_OK
    store.sync_blocks.assert_awaited_once()
