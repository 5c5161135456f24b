"""Unit tests for the collection and table routes."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from fastapi import status

from conftest import COLLECTION_ID, PAGE_ID, PAGE_UUID
from notionview.domain.exceptions import UpstreamFetchError
from notionview.infrastructure.api.dependencies import get_notion_client
from notionview.infrastructure.notion.client import NotionClient

COLLECTION_URL = f"/v1/collection/{PAGE_ID}"


@pytest.mark.asyncio
async def test_collection_returns_full_result(client, store):
    response = await client.get(COLLECTION_URL, headers={"Authorization": "Bearer tok"})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert set(data) == {
        "rows",
        "schema",
        "name",
        "tableArr",
        "columns",
        "collection",
        "sort",
        "query_filter",
        "query_sort",
        "views",
    }
    assert [row["Name"] for row in data["rows"]] == ["Alpha", "Beta"]
    assert data["rows"][1]["Score"] is None
    assert data["name"] == "Tasks"
    assert data["columns"][0]["name"] == "Name"
    assert data["collection"]["value"]["id"] == COLLECTION_ID
    assert data["sort"] == ["row-1", "row-2"]
    assert data["query_sort"] == [{"property": "title", "direction": "ascending"}]
    assert [view["id"] for view in data["views"]] == ["view-all", "view-alpha"]

    store.load_page_chunk.assert_awaited_once_with(PAGE_UUID, "tok")
    args, kwargs = store.query_collection.await_args
    assert args == (COLLECTION_ID, "view-all", "tok")
    assert kwargs["limit"] == 999


@pytest.mark.asyncio
async def test_collection_named_view_applies_property_filters(client, store):
    response = await client.get(COLLECTION_URL, params={"view": "Alpha only", "limit": "5"})

    data = response.json()
    assert [row["id"] for row in data["rows"]] == ["row-1"]
    assert data["query_filter"]["filters"][0]["property"] == "title"
    assert store.query_collection.await_args.kwargs["limit"] == 5


@pytest.mark.asyncio
async def test_collection_caller_filters_and_sort(client, store):
    filters = [{"operator": "boolean_is_false", "property": "done"}]
    sort = [{"property": "score", "direction": "descending"}]

    response = await client.get(
        COLLECTION_URL, params={"filters": json.dumps(filters), "sort": json.dumps(sort)}
    )

    data = response.json()
    assert [row["id"] for row in data["rows"]] == ["row-2"]
    assert data["query_sort"] == sort
    assert store.query_collection.await_args.kwargs["sort"] == sort


@pytest.mark.asyncio
async def test_collection_caller_filters_sent_upstream_by_schema_key(client, store):
    filters = [{"operator": "string_contains", "property": "Name", "value": {"value": "Al"}}]

    response = await client.get(COLLECTION_URL, params={"filters": json.dumps(filters)})

    expected = [{"property": "title", "filter": {"operator": "string_contains", "value": {"value": "Al"}}}]
    sent = store.query_collection.await_args.kwargs["query_filter"]
    assert sent["filters"] == expected
    data = response.json()
    assert data["query_filter"]["filters"] == expected
    assert [row["id"] for row in data["rows"]] == ["row-1"]


@pytest.mark.asyncio
async def test_collection_payload_projection(client):
    response = await client.get(COLLECTION_URL, params={"payload": "rows,name,unknown"})

    assert response.status_code == status.HTTP_200_OK
    assert set(response.json()) == {"rows", "name"}


@pytest.mark.asyncio
async def test_collection_invalid_filters_param(client):
    response = await client.get(COLLECTION_URL, params={"filters": "{not json"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "filters" in response.json()["error"]


@pytest.mark.asyncio
async def test_collection_invalid_page_id(client, store):
    response = await client.get("/v1/collection/not-a-page")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Invalid Notion ID" in response.json()["error"]
    store.load_page_chunk.assert_not_awaited()


@pytest.mark.asyncio
async def test_collection_upstream_failure_is_503_and_not_cached(client, store):
    store.load_page_chunk.side_effect = UpstreamFetchError("loadPageChunk", "boom")

    first = await client.get(COLLECTION_URL)
    second = await client.get(COLLECTION_URL)

    assert first.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert first.json()["pageId"] == PAGE_UUID
    assert first.headers["cache-control"] == "no-store"
    assert second.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert store.load_page_chunk.await_count == 2


@pytest.mark.asyncio
async def test_collection_page_timeout_is_503(app, client):
    async def slow_post(*args, **kwargs):
        await asyncio.sleep(1)

    http_client = MagicMock()
    http_client.post = slow_post
    app.dependency_overrides[get_notion_client] = lambda: NotionClient(http_client, timeout=0.05)

    response = await client.get(COLLECTION_URL)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert "timed out" in response.json()["message"]


@pytest.mark.asyncio
async def test_collection_malformed_page_is_502(client, store):
    store.load_page_chunk.side_effect = None
    store.load_page_chunk.return_value = {"errorId": "x"}

    response = await client.get(COLLECTION_URL)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {"error": "Invalid response from Notion API", "pageId": PAGE_UUID}


@pytest.mark.asyncio
async def test_collection_missing_page_block_is_404(client, store, page_chunk):
    page_chunk["recordMap"]["block"] = {}
    store.load_page_chunk.side_effect = None
    store.load_page_chunk.return_value = page_chunk

    response = await client.get(COLLECTION_URL)

    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_collection_without_collection_is_401(client, store, page_chunk):
    del page_chunk["recordMap"]["collection"]
    store.load_page_chunk.side_effect = None
    store.load_page_chunk.return_value = page_chunk

    response = await client.get(COLLECTION_URL)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == f"No table found on Notion page: {PAGE_UUID}"


@pytest.mark.asyncio
async def test_collection_query_failure_is_503(client, store):
    store.query_collection.side_effect = UpstreamFetchError("queryCollection", "boom", 500)

    response = await client.get(COLLECTION_URL)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["error"] == "Failed to fetch collection data from Notion"


@pytest.mark.asyncio
async def test_collection_cache_headers(client, store):
    first = await client.get(COLLECTION_URL)
    second = await client.get(COLLECTION_URL)

    assert first.headers["x-cache"] == "MISS"
    assert second.headers["x-cache"] == "HIT"
    assert first.headers["cache-control"].startswith("public, s-maxage=86400")
    assert first.headers["x-correlation-id"].startswith("cid_")
    assert store.load_page_chunk.await_count == 1


@pytest.mark.asyncio
async def test_cache_is_keyed_by_token(client, store):
    await client.get(COLLECTION_URL, headers={"Authorization": "Bearer a"})
    response = await client.get(COLLECTION_URL, headers={"Authorization": "Bearer b"})

    assert response.headers["x-cache"] == "MISS"
    assert store.load_page_chunk.await_count == 2


@pytest.mark.asyncio
async def test_required_token_missing_is_401(app, client, store):
    app.state.settings = app.state.settings.model_copy(update={"require_token": True})

    response = await client.get(COLLECTION_URL)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Missing bearer token"}
    store.load_page_chunk.assert_not_awaited()


@pytest.mark.asyncio
async def test_table_returns_bare_rows(client, store):
    response = await client.get(f"/v1/table/{PAGE_ID}")

    assert response.status_code == status.HTTP_200_OK
    rows = response.json()
    assert isinstance(rows, list)
    assert [row["id"] for row in rows] == ["row-1", "row-2"]
    assert rows[0]["Created By"][0]["fullName"] == "Alan Turing"


@pytest.mark.asyncio
async def test_table_without_collection_is_401(client, store, page_chunk):
    page_chunk["recordMap"]["collection_view"] = {}
    store.load_page_chunk.side_effect = None
    store.load_page_chunk.return_value = page_chunk

    response = await client.get(f"/v1/table/{PAGE_ID}")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
