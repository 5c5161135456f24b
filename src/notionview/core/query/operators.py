"""Filter operators for collection view filters.

Each operator is a predicate ``(cell, target) -> bool`` where ``cell`` is the
decoded row value (``MISSING`` when the row has no such column) and
``target`` is the filter's comparison value.
"""

import calendar
import math
from datetime import date, datetime, timedelta
from typing import Any, Callable

MISSING: Any = object()

Predicate = Callable[[Any, Any], bool]


def is_blank(cell: Any) -> bool:
    """True for absent, null, empty string and empty list cells."""
    return cell is MISSING or cell is None or cell == "" or cell == []


def _contains(cell: Any, target: Any) -> bool:
    if target is None:
        return False
    if isinstance(cell, str):
        return str(target) in cell
    if isinstance(cell, list):
        for item in cell:
            if item == target:
                return True
            if isinstance(item, dict) and target in (item.get("id"), item.get("name")):
                return True
    return False


def as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _equals(cell: Any, target: Any) -> bool:
    if cell is MISSING:
        return False
    if cell == target:
        return True
    left, right = as_number(cell), as_number(target)
    return left is not None and right is not None and left == right


def _shift_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


def _relative_date(keyword: str, today: date | None = None) -> date | None:
    today = today or date.today()
    offsets = {
        "today": lambda: today,
        "tomorrow": lambda: today + timedelta(days=1),
        "yesterday": lambda: today - timedelta(days=1),
        "one_week_ago": lambda: today - timedelta(weeks=1),
        "one_week_from_now": lambda: today + timedelta(weeks=1),
        "one_month_ago": lambda: _shift_months(today, -1),
        "one_month_from_now": lambda: _shift_months(today, 1),
    }
    resolver = offsets.get(keyword)
    return resolver() if resolver else None


def as_date(value: Any, today: date | None = None) -> date | None:
    """Coerce a date payload, ISO string or relative keyword to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, dict):
        return as_date(value.get("start_date") or value.get("value"), today)
    if isinstance(value, str) and value:
        relative = _relative_date(value, today)
        if relative is not None:
            return relative
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def _compare_numbers(cell: Any, target: Any, compare: Callable[[float, float], bool]) -> bool:
    left, right = as_number(cell), as_number(target)
    if left is None or right is None or math.isnan(left) or math.isnan(right):
        return False
    return compare(left, right)


def _starts_with(cell: Any, target: Any) -> bool:
    return isinstance(cell, str) and isinstance(target, str) and cell.startswith(target)


def _ends_with(cell: Any, target: Any) -> bool:
    return isinstance(cell, str) and isinstance(target, str) and cell.endswith(target)


def _date_is_before(cell: Any, target: Any) -> bool:
    left, right = as_date(cell), as_date(target)
    return left is not None and right is not None and left < right


OPERATORS: dict[str, Predicate] = {
    "string_contains": lambda cell, target: not is_blank(cell) and _contains(cell, target),
    "string_is": lambda cell, target: not is_blank(cell) and _equals(cell, target),
    "string_does_not_contain": lambda cell, target: not is_blank(cell) and not _contains(cell, target),
    "string_starts_with": _starts_with,
    "string_ends_with": _ends_with,
    "date_is_before": _date_is_before,
    "number_is_greater": lambda cell, target: _compare_numbers(cell, target, lambda a, b: a > b),
    "number_is_less": lambda cell, target: _compare_numbers(cell, target, lambda a, b: a < b),
    "boolean_is_true": lambda cell, target: cell is True,
    "boolean_is_false": lambda cell, target: cell is False,
    "is_empty": lambda cell, target: is_blank(cell),
    "is_not_empty": lambda cell, target: not is_blank(cell),
    "enum_is": lambda cell, target: _equals(cell, target),
    "enum_is_not": lambda cell, target: not _equals(cell, target),
    "enum_contains": lambda cell, target: not is_blank(cell) and _contains(cell, target),
    "enum_does_not_contain": lambda cell, target: is_blank(cell) or not _contains(cell, target),
}
