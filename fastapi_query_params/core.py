# fastapi_query_params/core.py

import logging
from typing import Any, Iterable, Optional

from .operators import EXCLUSIVE_OPERATOR, FILTER_OPERATORS
from .schemas import FilterOptions, RangeBound, RawParams, SortBy, SortOrder
from .utils import first_value, nest_path, parse_date, parse_number, split_csv, split_operator_key

logger = logging.getLogger(__name__)

# Query keys consumed by pagination or by a named FilterOptions slot.
RESERVED_PARAMS = frozenset({
    "page",
    "limit",
    "sortBy",
    "sortOrder",
    "search",
    "dateFrom",
    "dateTo",
    "status",
    "role",
})

RANGE_SUFFIX = "Range"

FALLBACK_SORT_ORDER = "desc"


def range_param_name(field: str) -> str:
    return f"{field}{RANGE_SUFFIX}"


def parse_range(value: str) -> Optional[RangeBound]:
    """
    Parse ``"0,500"`` or ``"2024-01-01,2024-12-31"`` into a range.

    Both bounds must be numbers, or both must be dates. Anything else
    returns None.
    """
    parts = split_csv(value)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    min_text, max_text = parts[0], parts[1]

    min_number, max_number = parse_number(min_text), parse_number(max_text)
    if min_number is not None and max_number is not None:
        return RangeBound(min=min_number, max=max_number)

    min_date, max_date = parse_date(min_text), parse_date(max_text)
    if min_date is not None and max_date is not None:
        return RangeBound(min=min_date, max=max_date)

    return None


def get_filter_params(params: RawParams, range_fields: Optional[Iterable[str]] = None) -> FilterOptions:
    """
    Extract filter options from a raw query map.

    Supports range parameters such as ``priceRange=0,500`` or
    ``createdAtRange=2024-01-01,2024-12-31`` for every field named in
    ``range_fields``. Any key without a named slot is passed through verbatim
    in ``FilterOptions.custom``.
    """
    range_fields = list(range_fields or [])
    options: dict[str, Any] = {}

    for key in ("search", "status", "role"):
        value = first_value(params.get(key))
        if value:
            options[key] = value

    for key, slot in (("dateFrom", "date_from"), ("dateTo", "date_to")):
        value = first_value(params.get(key))
        if not value:
            continue
        parsed = parse_date(value)
        if parsed is None:
            logger.debug("Dropping invalid %s value %r", key, value)
            continue
        options[slot] = parsed

    ranges: dict[str, RangeBound] = {}
    for field in range_fields:
        value = first_value(params.get(range_param_name(field)))
        if not value:
            continue
        bound = parse_range(value)
        if bound is None:
            logger.debug("Dropping unparsable range %s=%r", range_param_name(field), value)
            continue
        ranges[field] = bound

    reserved = RESERVED_PARAMS | {range_param_name(field) for field in range_fields}
    custom = {
        key: value
        for key, value in params.items()
        if key not in reserved and value is not None
    }

    return FilterOptions(**options, ranges=ranges, custom=custom)


def parse_advanced_filters(params: RawParams) -> dict[str, Any]:
    """
    Parse ``field[operator]=value`` keys into a condition tree.

    Supports eq, ne, gt, gte, lt, lte, in, notIn, contains, startsWith and
    endsWith, e.g. ``?price[gte]=100&price[lte]=500``,
    ``?status[in]=active,pending`` or ``?name[contains]=john``.

    Operators on the same field accumulate into one object, except ``eq``
    which replaces the whole entry. Keys are visited in the map's order.
    """
    where: dict[str, Any] = {}
    exclusive: set[str] = set()

    for key, raw_value in params.items():
        parts = split_operator_key(key)
        if parts is None:
            continue
        field, operator = parts
        value = first_value(raw_value)
        if value is None:
            continue

        if operator == EXCLUSIVE_OPERATOR:
            where[field] = value
            exclusive.add(field)
            continue

        apply_operator = FILTER_OPERATORS.get(operator)
        if apply_operator is None:
            logger.debug("Ignoring unknown operator %r for field %r", operator, field)
            continue
        if field in exclusive:
            logger.debug("Ignoring %s[%s], field already has an exact match", field, operator)
            continue

        apply_operator(where.setdefault(field, {}), value)

    return where


def _direction_at(sort_order: SortOrder, index: int) -> str:
    if isinstance(sort_order, list):
        if index < len(sort_order) and sort_order[index]:
            return sort_order[index]
        return sort_order[0] if sort_order else FALLBACK_SORT_ORDER
    return sort_order or FALLBACK_SORT_ORDER


def build_order_by(sort_by: SortBy, sort_order: SortOrder):
    """
    Build the order tree.

    ``build_order_by("user.name", "asc")`` gives ``{"user": {"name": "asc"}}``
    and ``build_order_by(["name", "createdAt"], ["asc", "desc"])`` gives
    ``[{"name": "asc"}, {"createdAt": "desc"}]``.
    """
    if isinstance(sort_by, str):
        return nest_path(sort_by, _direction_at(sort_order, 0))

    return [
        nest_path(field, _direction_at(sort_order, index))
        for index, field in enumerate(sort_by)
    ]
