# fastapi_query_params/builder.py

import asyncio
import copy
import logging
from typing import Any, Iterable, Optional

from .core import build_order_by, get_filter_params, parse_advanced_filters
from .operators import INSENSITIVE_MODE, SEARCH_KEY
from .pagination import create_paginated_response, get_pagination_params
from .schemas import FilterOptions, PaginatedResponse, ParsedQuery, QueryConfig, RawParams
from .settings import settings
from .store import Store
from .utils import first_value, nest_path, parse_date, parse_number, split_csv, split_operator_key

logger = logging.getLogger(__name__)

# FilterOptions keys that never become plain equality conditions.
STRUCTURAL_FILTER_KEYS = frozenset({
    "search",
    "dateFrom",
    "dateTo",
    "status",
    "role",
    "searchFields",
    "ranges",
})


def _bounded_fields(filters: FilterOptions, date_range_field: str) -> set[str]:
    """Fields whose range or date bounds take precedence over plain values."""
    fields = set(filters.ranges)
    if filters.date_from or filters.date_to:
        fields.add(date_range_field)
    return fields


def build_where_clause(
    filters: FilterOptions,
    operator_tree: Optional[dict[str, Any]] = None,
    search_fields: Optional[Iterable[str]] = None,
    date_range_field: str = settings.DATE_RANGE_FIELD,
) -> dict[str, Any]:
    """
    Merge extracted filters and an operator tree into one condition tree.

    Order of application:

    1. the ``field[operator]`` tree;
    2. free-text search, OR-ed across ``search_fields``;
    3. ``dateFrom``/``dateTo`` as ``gte``/``lte`` on ``date_range_field``;
    4. ranges, replacing whatever step 1 set for the same field;
    5. status and role;
    6. pass-through fields, except fields bounded by steps 3 and 4.
    """
    where: dict[str, Any] = copy.deepcopy(operator_tree) if operator_tree else {}
    search_fields = list(search_fields or [])

    if filters.search and search_fields:
        where[SEARCH_KEY] = [
            nest_path(field, {"contains": filters.search, "mode": INSENSITIVE_MODE})
            for field in search_fields
        ]

    if filters.date_from or filters.date_to:
        date_range = where.get(date_range_field)
        if not isinstance(date_range, dict):
            date_range = {}
        if filters.date_from:
            date_range["gte"] = filters.date_from
        if filters.date_to:
            date_range["lte"] = filters.date_to
        where[date_range_field] = date_range

    for field, bound in filters.ranges.items():
        where[field] = {"gte": bound.min, "lte": bound.max}

    if filters.status:
        where["status"] = filters.status
    if filters.role:
        where["role"] = filters.role

    bounded = _bounded_fields(filters, date_range_field)
    for key, value in filters.custom.items():
        if key in STRUCTURAL_FILTER_KEYS or key in bounded or split_operator_key(key):
            continue
        where[key] = value

    return where


def _detect_typed_filters(params: RawParams, config: QueryConfig, skip: Iterable[str]):
    """
    Read fields named in the config's typed field lists.

    Returns ``(where_values, filter_values, rejected_fields)``.
    """
    skip = set(skip)
    where: dict[str, Any] = {}
    filters: dict[str, Any] = {}
    rejected: set[str] = set()

    for field in config.filter_fields:
        value = first_value(params.get(field))
        if not value or "[" in value:
            continue
        filters[field] = value
        # Comma-separated values become an IN query
        where[field] = {"in": split_csv(value)} if "," in value else value

    for field in config.boolean_fields:
        value = first_value(params.get(field))
        if value is None:
            continue
        filters[field] = where[field] = value == "true"

    for field in config.number_fields:
        value = first_value(params.get(field))
        if value is None or "[" in value:
            continue
        number = parse_number(value)
        if number is None:
            logger.debug("Ignoring non-numeric value %r for %s", value, field)
            rejected.add(field)
            continue
        filters[field] = where[field] = number

    for field in config.date_fields:
        value = first_value(params.get(field))
        if not value or "[" in value:
            continue
        date = parse_date(value)
        if date is None:
            logger.debug("Ignoring invalid date %r for %s", value, field)
            rejected.add(field)
            continue
        filters[field] = where[field] = date

    for field in skip & where.keys():
        del where[field]

    return where, filters, rejected


def get_query_params(
    params: RawParams,
    search_fields: Optional[Iterable[str]] = None,
    range_fields: Optional[Iterable[str]] = None,
    **pagination_options,
) -> ParsedQuery:
    """
    Extract pagination and filters only, without operator syntax, typed
    field detection or a custom filter hook.
    """
    pagination = get_pagination_params(params, **pagination_options)
    filters = get_filter_params(params, range_fields)
    where = build_where_clause(filters, search_fields=search_fields)
    order_by = build_order_by(pagination.sort_by, pagination.sort_order)

    return ParsedQuery(pagination=pagination, filters=filters, where=where, order_by=order_by)


def parse_query(params: RawParams, config: Optional[QueryConfig] = None) -> ParsedQuery:
    """
    Parse and build a complete query from a raw parameter map.

    Example::

        query = parse_query(params, QueryConfig(
            search_fields=["name", "email"],
            filter_fields=["role", "status"],
            boolean_fields=["isActive"],
            number_fields=["price"],
            date_fields=["createdAt"],
        ))
        items = await store.find_many(query.options)

    The ``custom_filters`` hook runs last and may override any automatic rule.
    """
    config = config or QueryConfig()

    pagination = get_pagination_params(params, **config.pagination_options())
    filters = get_filter_params(params, config.range_fields)
    operator_tree = parse_advanced_filters(params)

    where = build_where_clause(
        filters,
        operator_tree,
        search_fields=config.search_fields,
        date_range_field=config.date_range_field,
    )

    bounded = _bounded_fields(filters, config.date_range_field)
    detected_where, detected_filters, rejected = _detect_typed_filters(params, config, skip=bounded)
    where.update(detected_where)
    for field in rejected:
        # Drop the raw pass-through value of a typed field that failed to parse
        if field not in bounded and where.get(field) == params.get(field):
            del where[field]
    if detected_filters:
        filters = filters.model_copy(update={"custom": {**filters.custom, **detected_filters}})

    if config.custom_filters is not None:
        replaced = config.custom_filters(params, where)
        if replaced is not None:
            where = replaced

    order_by = build_order_by(pagination.sort_by, pagination.sort_order)

    return ParsedQuery(pagination=pagination, filters=filters, where=where, order_by=order_by)


async def execute_paginated_query(
    params: RawParams,
    store: Store,
    config: Optional[QueryConfig] = None,
    select: Any = None,
) -> PaginatedResponse:
    """
    Parse the query, fetch one page and the total count, and wrap both in a
    paginated response. Store errors propagate unchanged.
    """
    query = parse_query(params, config)

    options = dict(query.options)
    if select is not None:
        options["select"] = select

    data, total = await asyncio.gather(
        store.find_many(options),
        store.count({"where": query.where}),
    )

    return create_paginated_response(data, total, query.pagination.page, query.pagination.limit)
