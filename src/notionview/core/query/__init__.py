"""Collection view query API."""

from .engine import (
    FilterSpec,
    apply_filter,
    apply_filters,
    build_query_filter,
    build_query_sort,
    merge_columns,
    normalize_filter,
    order_views,
    project_payload,
    select_view,
    to_upstream_filter,
)
from .operators import MISSING, OPERATORS

__all__ = [
    "FilterSpec",
    "MISSING",
    "OPERATORS",
    "apply_filter",
    "apply_filters",
    "build_query_filter",
    "build_query_sort",
    "merge_columns",
    "normalize_filter",
    "order_views",
    "project_payload",
    "select_view",
    "to_upstream_filter",
]
