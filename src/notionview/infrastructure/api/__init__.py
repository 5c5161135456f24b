"""HTTP API for notionview."""
