from .builder import build_where_clause, execute_paginated_query, get_query_params, parse_query
from .core import build_order_by, get_filter_params, parse_advanced_filters
from .dependencies import PaginatedQuery, QueryBuilder
from .pagination import create_paginated_response, get_pagination_meta, get_pagination_params
from .params import QueryParams, collect_raw_params
from .schemas import (
    FilterOptions,
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    ParsedQuery,
    QueryConfig,
    RangeBound,
)
from .store import SQLAlchemyStore, Store, build_query

__all__ = [
    "FilterOptions",
    "PaginatedQuery",
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "ParsedQuery",
    "QueryBuilder",
    "QueryConfig",
    "QueryParams",
    "RangeBound",
    "SQLAlchemyStore",
    "Store",
    "build_order_by",
    "build_query",
    "build_where_clause",
    "collect_raw_params",
    "create_paginated_response",
    "execute_paginated_query",
    "get_filter_params",
    "get_pagination_meta",
    "get_pagination_params",
    "get_query_params",
    "parse_advanced_filters",
    "parse_query",
]
