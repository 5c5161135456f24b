"""Pytest configuration for all tests.

Provides a small Notion workspace (one page with a two-view collection)
as upstream payloads, a mocked record store serving them, and an ASGI
client for the application wired to that store.
"""

import copy
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from notionview.core.config import Settings
from notionview.domain.entities.user import NotionUser

PAGE_ID = "0123456789abcdef0123456789abcdef"
PAGE_UUID = "01234567-89ab-cdef-0123-456789abcdef"
COLLECTION_ID = "c0ffee00-0000-4000-8000-000000000001"

SCHEMA = {
    "title": {"name": "Name", "type": "title"},
    "tags": {"name": "Tags", "type": "multi_select"},
    "done": {"name": "Done", "type": "checkbox"},
    "owner": {"name": "Owner", "type": "person"},
    "score": {"name": "Score", "type": "number"},
}

ALL_VIEW = {
    "id": "view-all",
    "name": "All",
    "type": "table",
    "format": {
        "table_properties": [
            {"property": "title", "visible": True, "width": 240},
            {"property": "score", "visible": True},
        ]
    },
    "query2": {"sort": [{"property": "title", "direction": "ascending"}]},
    "page_sort": ["row-1", "row-2"],
}

ALPHA_VIEW = {
    "id": "view-alpha",
    "name": "Alpha only",
    "type": "gallery",
    "format": {
        "property_filters": [
            {
                "id": "f-1",
                "filter": {
                    "property": "title",
                    "filter": {
                        "operator": "string_contains",
                        "value": {"type": "exact", "value": "Al"},
                    },
                },
            }
        ]
    },
}


def make_page_chunk() -> dict:
    return {
        "recordMap": {
            "block": {
                PAGE_UUID: {
                    "role": "reader",
                    "value": {
                        "id": PAGE_UUID,
                        "type": "collection_view_page",
                        "collection_id": COLLECTION_ID,
                        "view_ids": ["view-all", "view-alpha"],
                    },
                }
            },
            "collection": {
                COLLECTION_ID: {
                    "role": "reader",
                    "value": {"id": COLLECTION_ID, "name": [["Tasks"]], "schema": SCHEMA},
                }
            },
            "collection_view": {
                "view-alpha": {"role": "reader", "value": ALPHA_VIEW},
                "view-all": {"role": "reader", "value": ALL_VIEW},
            },
        }
    }


def make_row(row_id: str, properties: dict, **extra) -> dict:
    return {
        "role": "reader",
        "value": {
            "id": row_id,
            "type": "page",
            "parent_id": COLLECTION_ID,
            "parent_table": "collection",
            "properties": properties,
            **extra,
        },
    }


def make_collection_response() -> dict:
    return {
        "result": {
            "reducerResults": {
                "collection_group_results": {
                    "type": "results",
                    "blockIds": ["row-1", "row-2", "stray", "missing"],
                }
            }
        },
        "recordMap": {
            "block": {
                "row-1": make_row(
                    "row-1",
                    {
                        "title": [["Alpha"]],
                        "tags": [["red,blue"]],
                        "done": [["Yes"]],
                        "owner": [["‣", [["u", "user-1"]]]],
                        "score": [["3"]],
                    },
                    created_by_id="user-2",
                    format={"page_cover": "/images/cover.png"},
                ),
                "row-2": make_row(
                    "row-2",
                    {"title": [["Beta"]], "done": [["No"]], "score": [["n/a"]]},
                    created_by_id="user-1",
                ),
                "stray": {
                    "role": "reader",
                    "value": {"id": "stray", "type": "text", "parent_id": "elsewhere"},
                },
            }
        },
    }


@pytest.fixture
def page_chunk() -> dict:
    return make_page_chunk()


@pytest.fixture
def collection_response() -> dict:
    return make_collection_response()


@pytest.fixture
def users() -> list[NotionUser]:
    return [
        NotionUser(id="user-1", first_name="Ada", last_name="Lovelace"),
        NotionUser(id="user-2", first_name="Alan", last_name="Turing", profile_photo="https://x/a.png"),
    ]


@pytest.fixture
def store(page_chunk, collection_response, users) -> MagicMock:
    """Record store mock serving the sample workspace."""
    mock_store = MagicMock()
    mock_store.load_page_chunk = AsyncMock(side_effect=lambda *args, **kwargs: copy.deepcopy(page_chunk))
    mock_store.query_collection = AsyncMock(
        side_effect=lambda *args, **kwargs: copy.deepcopy(collection_response)
    )
    mock_store.get_users = AsyncMock(return_value=users)
    mock_store.sync_blocks = AsyncMock(return_value={"recordMap": {"block": {}}})
    mock_store.get_signed_file_url = AsyncMock(return_value="https://signed.example/cover.png")
    mock_store.search = AsyncMock(return_value={"results": [], "total": 0})
    return mock_store


@pytest.fixture
def settings() -> Settings:
    """Settings for tests: fresh cache entries never expire during a test."""
    return Settings(
        environment="testing",
        log_format="json",
        cache_enabled=True,
        cache_fresh_seconds=3600,
        require_token=False,
    )


@pytest.fixture
def app(settings, store):
    """Application wired to the mocked record store."""
    from notionview.infrastructure.api.app import create_app
    from notionview.infrastructure.api.dependencies import get_notion_client

    application = create_app(settings)
    application.dependency_overrides[get_notion_client] = lambda: store
    yield application
    application.dependency_overrides = {}


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the application."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
