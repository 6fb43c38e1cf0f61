# fastapi_query_params/operators.py

from sqlalchemy import and_, func, or_
from sqlalchemy.sql import operators

from .utils import parse_number, split_csv

INSENSITIVE_MODE = "insensitive"

# Reserved condition-tree key holding the OR list of the free-text search.
SEARCH_KEY = "OR"


# ───── Query-string operators: field[operator]=value ─────

def _numeric_or_raw(value):
    number = parse_number(value)
    return value if number is None else number


def _ne_filter(entry: dict, value):
    entry["not"] = value


def _comparison_filter(key: str):
    def apply(entry: dict, value):
        entry[key] = _numeric_or_raw(value)
    return apply


def _list_filter(key: str):
    def apply(entry: dict, value):
        entry[key] = split_csv(value)
    return apply


def _pattern_filter(key: str):
    def apply(entry: dict, value):
        entry[key] = value
        entry["mode"] = INSENSITIVE_MODE
    return apply


# "eq" replaces the whole entry, so the parser handles it itself.
EXCLUSIVE_OPERATOR = "eq"

FILTER_OPERATORS = {
    "ne": _ne_filter,
    "gt": _comparison_filter("gt"),
    "gte": _comparison_filter("gte"),
    "lt": _comparison_filter("lt"),
    "lte": _comparison_filter("lte"),
    "in": _list_filter("in"),
    "notIn": _list_filter("notIn"),
    "contains": _pattern_filter("contains"),
    "startsWith": _pattern_filter("startsWith"),
    "endsWith": _pattern_filter("endsWith"),
}


# ───── Condition tree -> SQLAlchemy ─────

LOGICAL_OPERATORS = {
    "AND": and_,
    "OR": or_,
}

NEGATION_OPERATOR = "NOT"


def _equals_operator(column, value, insensitive):
    if value is None:
        return column.is_(None)
    if insensitive and isinstance(value, str):
        return func.lower(column) == value.lower()
    return column == value


def _not_operator(column, value, insensitive):
    if value is None:
        return column.is_not(None)
    return column != value


def _contains_operator(column, value, insensitive):
    if insensitive:
        return column.icontains(value, autoescape=True)
    return column.contains(value, autoescape=True)


def _startswith_operator(column, value, insensitive):
    if insensitive:
        return column.istartswith(value, autoescape=True)
    return column.startswith(value, autoescape=True)


def _endswith_operator(column, value, insensitive):
    if insensitive:
        return column.iendswith(value, autoescape=True)
    return column.endswith(value, autoescape=True)


COMPARISON_OPERATORS = {
    "equals": _equals_operator,
    "not": _not_operator,
    "gt": lambda col, v, _: operators.gt(col, v),
    "gte": lambda col, v, _: operators.ge(col, v),
    "lt": lambda col, v, _: operators.lt(col, v),
    "lte": lambda col, v, _: operators.le(col, v),
    "in": lambda col, v, _: col.in_(v),
    "notIn": lambda col, v, _: col.not_in(v),
    "contains": _contains_operator,
    "startsWith": _startswith_operator,
    "endsWith": _endswith_operator,
}

# Keys of an operator object that modify the others instead of comparing.
MODIFIER_KEYS = {"mode"}
