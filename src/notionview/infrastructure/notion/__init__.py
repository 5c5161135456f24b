"""Notion API client."""

from notionview.infrastructure.notion.client import NotionClient

__all__ = ["NotionClient"]
