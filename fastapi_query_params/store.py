# fastapi_query_params/store.py

import logging
from typing import Any, Mapping, Optional, Protocol, Tuple

from fastapi import HTTPException
from sqlalchemy import Select, and_, asc, desc, func, not_, select, true
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import RelationshipProperty, aliased

from .operators import (
    COMPARISON_OPERATORS,
    INSENSITIVE_MODE,
    LOGICAL_OPERATORS,
    MODIFIER_KEYS,
    NEGATION_OPERATOR,
)

logger = logging.getLogger(__name__)


class Store(Protocol):
    async def find_many(self, options: Mapping[str, Any]) -> list[Any]:
        ...

    async def count(self, options: Mapping[str, Any]) -> int:
        ...


def _attribute_of(model, key: str):
    attribute = getattr(model, key, None)
    if attribute is None or getattr(attribute, "property", None) is None:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid field '{key}' for model '{model.__name__}'"
        )
    return attribute


def _is_relationship(attribute) -> bool:
    return isinstance(attribute.property, RelationshipProperty)


def resolve_and_join_column(model, path: list[str], stmt: Select, joins: dict) -> Tuple[Any, Select]:
    """
    Resolve a dotted path to a column, outer-joining every relationship on
    the way. ``joins`` caches one alias per relationship path.
    To-many relationships cannot be sorted on.
    """
    current_model = model

    for index, key in enumerate(path):
        attribute = _attribute_of(current_model, key)
        if not _is_relationship(attribute):
            if index != len(path) - 1:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid field path: {'.'.join(path)}. '{key}' is not a relationship."
                )
            return attribute, stmt

        if attribute.property.uselist:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot sort by {'.'.join(path)}. '{key}' is a to-many relationship."
            )

        join_path = tuple(path[:index + 1])
        if join_path not in joins:
            joins[join_path] = aliased(attribute.property.mapper.class_)
            stmt = stmt.outerjoin(joins[join_path], attribute)
        current_model = joins[join_path]

    raise HTTPException(
        status_code=400,
        detail=f"Could not resolve a column for {'.'.join(path)}."
    )


def _column_condition(column, key: str, value):
    if isinstance(value, dict):
        insensitive = value.get("mode") == INSENSITIVE_MODE
        expressions = []
        for operator, operand in value.items():
            if operator in MODIFIER_KEYS:
                continue
            if operator not in COMPARISON_OPERATORS:
                raise HTTPException(
                    status_code=400, detail=f"Unknown operator '{operator}' for field '{key}'")
            expressions.append(COMPARISON_OPERATORS[operator](column, operand, insensitive))
        return and_(*expressions) if expressions else true()

    if isinstance(value, (list, tuple)):
        return column.in_(value)

    return COMPARISON_OPERATORS["equals"](column, value, False)


def _sub_conditions(model, key: str, value) -> list:
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        raise HTTPException(
            status_code=400, detail=f"Logical operator '{key}' must be a list")
    conditions = [build_condition(model, sub_tree) for sub_tree in value]
    return [condition for condition in conditions if condition is not None]


def build_condition(model, where: Optional[Mapping[str, Any]]):
    """
    Translate a condition tree into a SQLAlchemy expression.

    Returns None for an empty tree. Dict values on relationship attributes
    are matched through EXISTS (``has``/``any``).
    """
    if not where:
        return None
    if not isinstance(where, Mapping):
        raise HTTPException(status_code=400, detail="Filters must be a dictionary")

    expressions = []
    for key, value in where.items():
        if key in LOGICAL_OPERATORS:
            conditions = _sub_conditions(model, key, value)
            if conditions:
                expressions.append(LOGICAL_OPERATORS[key](*conditions))

        elif key == NEGATION_OPERATOR:
            conditions = _sub_conditions(model, key, value)
            if conditions:
                expressions.append(not_(and_(*conditions)))

        else:
            attribute = _attribute_of(model, key)
            if _is_relationship(attribute):
                if not isinstance(value, Mapping):
                    raise HTTPException(
                        status_code=400, detail=f"Invalid filter format for relation '{key}': {value}")
                related_condition = build_condition(attribute.property.mapper.class_, value)
                if attribute.property.uselist:
                    expressions.append(attribute.any(related_condition))
                else:
                    expressions.append(attribute.has(related_condition))
            else:
                expressions.append(_column_condition(attribute, key, value))

    return and_(*expressions) if expressions else None


def _order_path(key: str, value) -> Tuple[list[str], Any]:
    path = [key]
    while isinstance(value, Mapping):
        if len(value) != 1:
            raise HTTPException(
                status_code=400, detail=f"Sort entry for '{key}' must name exactly one field")
        (key, value), = value.items()
        path.append(key)
    return path, value


def apply_order_by(model, order_by, stmt: Select) -> Select:
    if not order_by:
        return stmt

    entries = order_by if isinstance(order_by, list) else [order_by]
    joins: dict = {}
    for entry in entries:
        for key, value in entry.items():
            path, direction = _order_path(key, value)
            if direction not in ("asc", "desc"):
                raise HTTPException(
                    status_code=400, detail=f"Invalid sort direction '{direction}' for {'.'.join(path)}")
            column, stmt = resolve_and_join_column(model, path, stmt, joins)
            stmt = stmt.order_by(asc(column) if direction == "asc" else desc(column))
    return stmt


def _selected_columns(model, selection):
    if isinstance(selection, Mapping):
        names = [name for name, enabled in selection.items() if enabled]
    else:
        names = list(selection)
    return [_attribute_of(model, name) for name in names]


def build_query(model, options: Mapping[str, Any], stmt: Optional[Select] = None) -> Select:
    """
    Build a SELECT for ``find_many`` options: ``where``, ``orderBy``,
    ``skip``, ``take`` and an optional ``select`` of field names.
    """
    if stmt is None:
        selection = options.get("select")
        stmt = select(*_selected_columns(model, selection)) if selection else select(model)

    condition = build_condition(model, options.get("where"))
    if condition is not None:
        stmt = stmt.where(condition)

    stmt = apply_order_by(model, options.get("orderBy"), stmt)

    if options.get("skip"):
        stmt = stmt.offset(options["skip"])
    if options.get("take") is not None:
        stmt = stmt.limit(options["take"])

    return stmt


def build_count_query(model, options: Mapping[str, Any]) -> Select:
    stmt = select(func.count()).select_from(model)
    condition = build_condition(model, options.get("where"))
    if condition is not None:
        stmt = stmt.where(condition)
    return stmt


class SQLAlchemyStore:
    """
    ``find_many``/``count`` over an async SQLAlchemy model.

    Each call opens its own session, so both may be awaited concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker, model):
        self.session_factory = session_factory
        self.model = model

    async def find_many(self, options: Mapping[str, Any]) -> list[Any]:
        stmt = build_query(self.model, options)
        logger.debug("find_many on %s: %s", self.model.__name__, stmt)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            if options.get("select"):
                return [dict(row) for row in result.mappings().all()]
            return list(result.scalars().all())

    async def count(self, options: Mapping[str, Any]) -> int:
        stmt = build_count_query(self.model, options)
        logger.debug("count on %s: %s", self.model.__name__, stmt)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one()
