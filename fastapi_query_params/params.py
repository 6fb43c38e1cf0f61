# fastapi_query_params/params.py

from typing import Optional

from fastapi import Query, Request

from .schemas import RawValue


def collect_raw_params(query_params) -> dict[str, RawValue]:
    """
    Read a Starlette ``QueryParams`` into a plain map in declaration order.
    Repeated keys become lists.
    """
    raw: dict[str, RawValue] = {}
    for key, value in query_params.multi_items():
        if key not in raw:
            raw[key] = value
        elif isinstance(raw[key], list):
            raw[key].append(value)
        else:
            raw[key] = [raw[key], value]
    return raw


class QueryParams:
    # The declared parameters only document the well-known keys in OpenAPI.
    # Every key, including field[operator] and {field}Range keys, is read
    # from the request so malformed values fall back instead of failing.
    def __init__(
        self,
        request: Request,
        page: Optional[str] = Query(None, description="Page number, starting at 1."),
        limit: Optional[str] = Query(None, description="Items per page, capped at the configured maximum."),
        sortBy: Optional[str] = Query(None, description="e.g. name, name,createdAt or user.name"),
        sortOrder: Optional[str] = Query(None, description="e.g. asc or asc,desc"),
        search: Optional[str] = Query(None, description="A string searched across the configured search fields."),
        dateFrom: Optional[str] = Query(None, description="ISO date, lower bound of the date range field."),
        dateTo: Optional[str] = Query(None, description="ISO date, upper bound of the date range field."),
    ):
        self.raw = collect_raw_params(request.query_params)
