# fastapi_query_params/pagination.py

import logging
import math
from typing import Iterable, Optional, Sequence, TypeVar

from .schemas import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    RawParams,
    SortBy,
    SortOrder,
)
from .settings import settings
from .utils import first_value, parse_int, split_csv

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = {"asc", "desc"}

T = TypeVar("T")


def _split_sort_value(value: str):
    if "," in value:
        return split_csv(value)
    return value.strip()


def _resolve_sort_by(raw_value, default: SortBy, allowed: Sequence[str]) -> SortBy:
    if not raw_value:
        return default

    requested = _split_sort_value(raw_value)
    if not allowed:
        return requested

    fields = requested if isinstance(requested, list) else [requested]
    rejected = [field for field in fields if field not in allowed]
    if rejected:
        logger.debug("Sort fields %s are not allowed, using default %r", rejected, default)
        return default
    return requested


def _resolve_sort_order(raw_value, default: SortOrder) -> SortOrder:
    if not raw_value:
        return default

    requested = _split_sort_value(raw_value.lower())
    directions = requested if isinstance(requested, list) else [requested]
    if any(direction not in SORT_DIRECTIONS for direction in directions):
        logger.debug("Invalid sort order %r, using default %r", raw_value, default)
        return default
    return requested


def get_pagination_params(
    params: RawParams,
    default_limit: int = settings.DEFAULT_LIMIT,
    max_limit: int = settings.MAX_LIMIT,
    default_sort_by: SortBy = settings.DEFAULT_SORT_BY,
    default_sort_order: SortOrder = settings.DEFAULT_SORT_ORDER,
    allowed_sort_fields: Optional[Iterable[str]] = None,
) -> PaginationParams:
    """
    Extract and validate pagination parameters from a raw query map.

    Malformed values never raise, they fall back to the defaults:
    ``?page=abc`` is page 1, ``?limit=5000`` is capped to ``max_limit`` and a
    sort field outside ``allowed_sort_fields`` discards the whole requested
    sort. Several sort keys are given comma-separated:
    ``?sortBy=name,createdAt&sortOrder=asc,desc``.
    """
    allowed = list(allowed_sort_fields or [])

    page = max(1, parse_int(params.get("page")) or 1)
    limit = min(max_limit, max(1, parse_int(params.get("limit")) or default_limit))

    sort_by = _resolve_sort_by(first_value(params.get("sortBy")), default_sort_by, allowed)
    sort_order = _resolve_sort_order(first_value(params.get("sortOrder")), default_sort_order)

    return PaginationParams(
        page=page,
        limit=limit,
        skip=(page - 1) * limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def get_pagination_meta(total: int, page: int, limit: int) -> PaginationMeta:
    total_pages = math.ceil(total / limit)

    return PaginationMeta(
        current_page=page,
        items_per_page=limit,
        total_items=total,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )


def create_paginated_response(data: Sequence[T], total: int, page: int, limit: int) -> PaginatedResponse[T]:
    return PaginatedResponse(
        data=list(data),
        meta=get_pagination_meta(total, page, limit),
    )
