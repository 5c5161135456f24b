"""Upstream record envelope handling."""

from typing import Any


def unwrap_record(record: Any) -> tuple[dict[str, Any] | None, str | None]:
    """Return ``(value, role)`` for an upstream ``{role, value}`` record.

    Newer API responses nest the record one level deeper
    (``{"value": {"value": {...}, "role": ...}}``); both shapes are accepted.
    The value is ``None`` unless it is a dict carrying an ``id``.
    """
    if not isinstance(record, dict):
        return None, None
    value = record.get("value")
    role = record.get("role")
    if isinstance(value, dict) and isinstance(value.get("value"), dict) and "id" not in value:
        role = value.get("role", role)
        value = value["value"]
    if not isinstance(value, dict) or not value.get("id"):
        return None, role
    return value, role
