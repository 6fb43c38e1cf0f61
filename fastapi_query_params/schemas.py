# fastapi_query_params/schemas.py

from datetime import datetime
from typing import Any, Callable, Generic, Literal, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from .settings import settings

SortDirection = Literal["asc", "desc"]
SortBy = Union[str, list[str]]
SortOrder = Union[SortDirection, list[SortDirection]]

RawValue = Union[str, list[str], None]
RawParams = Mapping[str, RawValue]

# Receives the raw parameter map and the condition tree built so far.
# It may edit the tree in place or return a replacement.
CustomFilters = Callable[[RawParams, dict[str, Any]], Optional[dict[str, Any]]]

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------
# Pagination Schemas
# -------------------

class PaginationParams(CamelModel):
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_LIMIT, ge=1)
    skip: int = Field(0, ge=0)
    sort_by: SortBy = settings.DEFAULT_SORT_BY
    sort_order: SortOrder = settings.DEFAULT_SORT_ORDER


class PaginationMeta(CamelModel):
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class PaginatedResponse(CamelModel, Generic[T]):
    data: list[T]
    meta: PaginationMeta


# -------------------
# Filter Schemas
# -------------------

class RangeBound(BaseModel):
    min: Union[int, float, datetime]
    max: Union[int, float, datetime]


class FilterOptions(CamelModel):
    search: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    status: Optional[str] = None
    role: Optional[str] = None
    ranges: dict[str, RangeBound] = Field(default_factory=dict)
    # Pass-through query keys that no named slot recognises.
    custom: dict[str, Any] = Field(default_factory=dict)


# -------------------
# Query Config
# -------------------

class QueryConfig(CamelModel):
    search_fields: list[str] = Field(default_factory=list)
    filter_fields: list[str] = Field(default_factory=list)
    boolean_fields: list[str] = Field(default_factory=list)
    number_fields: list[str] = Field(default_factory=list)
    date_fields: list[str] = Field(default_factory=list)
    date_range_field: str = settings.DATE_RANGE_FIELD
    range_fields: list[str] = Field(default_factory=list)
    default_limit: int = settings.DEFAULT_LIMIT
    max_limit: int = settings.MAX_LIMIT
    default_sort_by: SortBy = settings.DEFAULT_SORT_BY
    default_sort_order: SortOrder = settings.DEFAULT_SORT_ORDER
    allowed_sort_fields: list[str] = Field(default_factory=list)
    custom_filters: Optional[CustomFilters] = Field(default=None, exclude=True)

    def pagination_options(self) -> dict[str, Any]:
        return {
            "default_limit": self.default_limit,
            "max_limit": self.max_limit,
            "default_sort_by": self.default_sort_by,
            "default_sort_order": self.default_sort_order,
            "allowed_sort_fields": self.allowed_sort_fields,
        }


class ParsedQuery(CamelModel):
    pagination: PaginationParams
    filters: FilterOptions
    where: dict[str, Any]
    order_by: Union[dict[str, Any], list[dict[str, Any]]]

    @computed_field
    @property
    def options(self) -> dict[str, Any]:
        """Keyword options ready for ``find_many``."""
        return {
            "where": self.where,
            "orderBy": self.order_by,
            "skip": self.pagination.skip,
            "take": self.pagination.limit,
        }
