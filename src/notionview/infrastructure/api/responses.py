"""JSON responses for the HTTP edge."""

import json
import math
from typing import Any

from fastapi.responses import JSONResponse

from notionview.core.config import Settings
from notionview.infrastructure.cache.edge_cache import EdgeResult


def sanitize_json(value: Any) -> Any:
    """Replace NaN and infinite floats with None, recursively."""
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    if isinstance(value, dict):
        return {key: sanitize_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_json(item) for item in value]
    return value


class NotionJSONResponse(JSONResponse):
    """JSONResponse that emits ``null`` for non-finite numbers."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            sanitize_json(content),
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


def build_response(result: EdgeResult, settings: Settings) -> NotionJSONResponse:
    """Render an edge result with cache headers.

    Successful payloads get the public Cache-Control policy; errors are
    marked ``no-store`` so intermediaries never keep them.
    """
    payload = result.payload
    cache_control = settings.cache_control if payload.is_cacheable else "no-store"
    return NotionJSONResponse(
        content=payload.body,
        status_code=payload.status_code,
        headers={"Cache-Control": cache_control, "X-Cache": result.cache_status.value},
    )
