"""View selection and filter application for collection queries."""

import copy
from dataclasses import dataclass
from functools import reduce
from typing import Any

from notionview.core.logging import get_logger
from notionview.core.query.operators import MISSING, OPERATORS
from notionview.domain.entities.block import Block, RecordMap
from notionview.domain.entities.collection import Collection, CollectionView, ColumnSchema

logger = get_logger(__name__)

Row = dict[str, Any]


@dataclass(frozen=True)
class FilterSpec:
    """A normalized filter entry."""

    column: str
    operator: str
    target: Any


def order_views(record_map: RecordMap, owner: Block | None = None) -> list[CollectionView]:
    """Return views in the order declared on the owning block.

    Falls back to every view in the record map when the block declares no
    ``view_ids`` (or none of them are present).
    """
    views = record_map.views()
    if owner is not None and owner.view_ids:
        by_id = {view.id: view for view in views}
        ordered = [by_id[view_id] for view_id in owner.view_ids if view_id in by_id]
        if ordered:
            return ordered
    return views


def select_view(views: list[CollectionView], view_name: str | None = None) -> CollectionView | None:
    """Pick the view named ``view_name``, else the first view."""
    if not views:
        return None
    if view_name:
        for view in views:
            if view.name == view_name:
                return view
        logger.debug("View not found, using first view", view_name=view_name)
    return views[0]


def build_query_filter(
    view: CollectionView,
    extra_filters: list[Any] | None = None,
    schema: dict[str, ColumnSchema] | None = None,
) -> dict[str, Any]:
    """Merge the stored ``query2.filter`` with the view's ``property_filters``.

    Format-level filters and caller-supplied filters are appended to the
    ``filters`` list; the stored view is never modified. Caller filters are
    rewritten into the upstream shape first (see ``to_upstream_filter``) and
    dropped when they cannot be.
    """
    query_filter = copy.deepcopy(view.query2.get("filter") or {})
    if not isinstance(query_filter, dict):
        query_filter = {}

    appended = [
        copy.deepcopy(entry["filter"])
        for entry in view.format.get("property_filters") or []
        if isinstance(entry, dict) and entry.get("filter")
    ]
    for entry in extra_filters or []:
        upstream = to_upstream_filter(entry, schema)
        if upstream is None:
            logger.warning("Dropping unusable caller filter", entry=entry)
            continue
        appended.append(upstream)

    if appended:
        query_filter["filters"] = list(query_filter.get("filters") or []) + appended
    return query_filter


def build_query_sort(view: CollectionView) -> list[Any]:
    sort = view.query2.get("sort")
    return copy.deepcopy(sort) if isinstance(sort, list) else []


def merge_columns(view: CollectionView, collection: Collection) -> list[dict[str, Any]] | None:
    """Table column order merged with schema entries; None for non-table views."""
    table_properties = view.format.get("table_properties")
    if not isinstance(table_properties, list):
        return None
    columns = []
    for entry in table_properties:
        if not isinstance(entry, dict):
            continue
        schema_entry = collection.raw_schema.get(entry.get("property"), {})
        columns.append({**entry, **(schema_entry if isinstance(schema_entry, dict) else {})})
    return columns


def normalize_filter(entry: Any, schema: dict[str, ColumnSchema] | None = None) -> FilterSpec | None:
    """Normalize a filter entry.

    Accepts the view shape ``{property, filter: {operator, value}}`` and the
    flat shape ``{operator, property, value}``. ``property`` may be an
    internal schema key or a display name. ``value`` may be wrapped as
    ``{type, value}``.
    """
    if not isinstance(entry, dict):
        return None
    body = entry.get("filter") if isinstance(entry.get("filter"), dict) else entry
    operator = body.get("operator")
    prop = entry.get("property")
    if not isinstance(operator, str) or not isinstance(prop, str):
        return None

    column = schema[prop].name if schema and prop in schema else prop
    target = body.get("value")
    if isinstance(target, dict) and "value" in target:
        target = target["value"]
    return FilterSpec(column=column, operator=operator, target=target)


def to_upstream_filter(entry: Any, schema: dict[str, ColumnSchema] | None = None) -> dict[str, Any] | None:
    """Rewrite a filter entry as ``{property: <internal key>, filter: {operator, value}}``.

    This is the only shape ``queryCollection`` reads. Display names are
    mapped back to their schema key. Returns None for malformed entries and
    for properties the schema does not know.
    """
    if normalize_filter(entry, schema) is None:
        return None
    body = entry["filter"] if isinstance(entry.get("filter"), dict) else entry
    prop = entry["property"]
    if schema is not None and prop not in schema:
        prop = next((key for key, column in schema.items() if column.name == prop), None)
        if prop is None:
            return None

    clause: dict[str, Any] = {"operator": body["operator"]}
    if "value" in body:
        value = copy.deepcopy(body["value"])
        if not (isinstance(value, dict) and "value" in value):
            value = {"type": "exact", "value": value}
        clause["value"] = value
    return {"property": prop, "filter": clause}


def apply_filter(rows: list[Row], entry: Any, schema: dict[str, ColumnSchema] | None = None) -> list[Row]:
    """Return the rows matching one filter entry.

    Unknown operators and malformed entries leave the rows unchanged.
    """
    clause = normalize_filter(entry, schema)
    if clause is None:
        logger.debug("Skipping malformed filter entry", entry=entry)
        return rows
    predicate = OPERATORS.get(clause.operator)
    if predicate is None:
        logger.debug("Skipping unsupported filter operator", operator=clause.operator)
        return rows
    return [row for row in rows if predicate(row.get(clause.column, MISSING), clause.target)]


def apply_filters(
    rows: list[Row], filters: list[Any] | None, schema: dict[str, ColumnSchema] | None = None
) -> list[Row]:
    """AND all filters together as a left fold; the input list is not mutated."""
    return reduce(lambda acc, entry: apply_filter(acc, entry, schema), filters or [], list(rows))


def project_payload(result: dict[str, Any], keys: list[str] | None) -> dict[str, Any]:
    """Keep only the requested top-level keys; everything when ``keys`` is empty."""
    if not keys:
        return result
    return {key: result[key] for key in keys if key in result}
