"""Unit tests for page loading."""

import pytest

from conftest import PAGE_UUID
from notionview.application.services.page_service import load_record_map, pending_children
from notionview.domain.entities.block import Block, RecordMap
from notionview.domain.exceptions import MalformedResponseError, RecordNotFoundError


def test_pending_children_skips_nested_pages():
    record_map = RecordMap(
        blocks={
            "root": Block("root", {"id": "root", "type": "page", "content": ["sub", "a"]}),
            "sub": Block("sub", {"id": "sub", "type": "page", "content": ["sub-child"]}),
            "a": Block("a", {"id": "a", "type": "toggle", "content": ["b", "a"]}),
        }
    )

    assert pending_children(record_map, "root") == ["b"]


@pytest.mark.asyncio
async def test_load_record_map(store):
    record_map, page = await load_record_map(store, PAGE_UUID, "tok")

    assert page.id == PAGE_UUID
    assert record_map.collection(page.collection_id).name == "Tasks"


@pytest.mark.asyncio
async def test_load_record_map_without_record_map(store):
    store.load_page_chunk.side_effect = None
    store.load_page_chunk.return_value = {}

    with pytest.raises(MalformedResponseError):
        await load_record_map(store, PAGE_UUID)


@pytest.mark.asyncio
async def test_load_record_map_without_page_block(store):
    with pytest.raises(RecordNotFoundError):
        await load_record_map(store, "other-page")
