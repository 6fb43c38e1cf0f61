# fastapi_query_params/dependencies.py

from typing import Any, Optional

from fastapi import Depends

from .builder import execute_paginated_query, parse_query
from .params import QueryParams
from .schemas import PaginatedResponse, ParsedQuery, QueryConfig
from .store import Store


def QueryBuilder(config: Optional[QueryConfig] = None):
    def wrapper(params: QueryParams = Depends()) -> ParsedQuery:
        return parse_query(params.raw, config)
    return Depends(wrapper)


def PaginatedQuery(store: Store, config: Optional[QueryConfig] = None, select: Any = None):
    async def wrapper(params: QueryParams = Depends()) -> PaginatedResponse:
        return await execute_paginated_query(params.raw, store, config, select)
    return Depends(wrapper)
