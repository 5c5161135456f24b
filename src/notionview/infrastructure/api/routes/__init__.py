"""API Routes for notionview."""

from .asset_router import router as asset_router
from .block_router import router as block_router
from .collection_router import router as collection_router
from .page_router import router as page_router
from .search_router import router as search_router
from .table_router import router as table_router
from .user_router import router as user_router

__all__ = [
    "asset_router",
    "block_router",
    "collection_router",
    "page_router",
    "search_router",
    "table_router",
    "user_router",
]
