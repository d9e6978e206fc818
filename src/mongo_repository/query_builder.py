"""Mongo query builder from condition trees."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .conditions import And, Condition, Filter, Nor, Not, Or, QueryOptions, SortDirection
from .exceptions import FilterCompilationError, PaginationError, ProjectionModeError
from .operators import compile_existence, compile_standard, compile_string

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .conditions import ConditionTree
    from .schema import SchemaIndex

logger = logging.getLogger("mongo_repository.query_builder")

_COMPILERS = [
    compile_standard,
    compile_string,
    compile_existence,
]

_DIRECTIONS: dict[Any, int] = {
    SortDirection.ASC: 1,
    SortDirection.DESC: -1,
    1: 1,
    -1: -1,
}


@dataclass(frozen=True)
class CompiledQuery:
    """Native query document plus find options, ready for the driver."""

    query: dict[str, Any]
    sort: list[tuple[str, int]] = field(default_factory=list)
    skip: int = 0
    limit: int = 0
    projection: dict[str, bool] | None = None

    def find_kwargs(self, *, single: bool = False) -> dict[str, Any]:
        """Keyword arguments for ``find`` (or ``find_one`` when ``single``)."""
        kwargs: dict[str, Any] = {}
        if self.sort:
            kwargs["sort"] = list(self.sort)
        if self.skip:
            kwargs["skip"] = self.skip
        if self.limit and not single:
            kwargs["limit"] = self.limit
        if self.projection is not None:
            kwargs["projection"] = dict(self.projection)
        return kwargs


def _compile_leaf(cond: Condition, schema: SchemaIndex) -> dict[str, Any]:
    """Compile a single field condition to a MongoDB query document."""
    storage_name = schema.resolve(cond.field)
    for compiler in _COMPILERS:
        result = compiler(storage_name, cond.op, cond.value)
        if result is not None:
            return result
    raise FilterCompilationError(f"Unsupported operator {cond.op!r} on {cond.field!r}")


def _compile_group(
    operator: str, children: tuple[ConditionTree, ...], schema: SchemaIndex
) -> dict[str, Any]:
    if not children:
        return {}
    return {operator: [_compile_node(child, schema) for child in children]}


def _compile_node(node: ConditionTree, schema: SchemaIndex) -> dict[str, Any]:
    """Recursively compile a condition tree to a MongoDB filter."""
    match node:
        case Condition():
            return _compile_leaf(node, schema)
        case And(children=children):
            return _compile_group("$and", children, schema)
        case Or(children=children):
            return _compile_group("$or", children, schema)
        case Nor(children=children):
            return _compile_group("$nor", children, schema)
        case Not(child=child):
            return {"$nor": [_compile_node(child, schema)]}
        case _:
            raise FilterCompilationError(f"Not a condition tree node: {node!r}")


def _validate_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise PaginationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


class MongoQueryBuilder:
    """Compiles filters to MongoDB query documents against a SchemaIndex.

    The builder holds no state: compiling the same filter twice yields equal
    output, and one instance can be shared across threads.
    """

    def build_match(self, where: ConditionTree | None, schema: SchemaIndex) -> dict[str, Any]:
        """Build the query document. An empty tree matches every document."""
        if where is None:
            return {}
        return _compile_node(where, schema)

    def build_sort(
        self, order: tuple[tuple[str, Any], ...], schema: SchemaIndex
    ) -> list[tuple[str, int]]:
        """Build MongoDB sort tuples, keeping the caller's ordering."""
        result: list[tuple[str, int]] = []
        for item in order:
            if len(item) != 2:
                raise FilterCompilationError(f"Sort entries are (field, direction) pairs: {item!r}")
            name, direction = item
            if isinstance(direction, str) and not isinstance(direction, SortDirection):
                direction = direction.lower()
                if direction in ("asc", "desc"):
                    direction = SortDirection(direction)
            mongo_direction = _DIRECTIONS.get(direction)
            if mongo_direction is None:
                raise FilterCompilationError(f"Invalid sort direction {direction!r} for {name!r}")
            result.append((schema.resolve(name), mongo_direction))
        return result

    def build_project(
        self, fields: Mapping[str, bool] | None, schema: SchemaIndex
    ) -> dict[str, bool] | None:
        """Build a projection. None means every field is returned."""
        if not fields:
            return None
        modes = set()
        projection: dict[str, bool] = {}
        for name, include in fields.items():
            if not isinstance(include, bool):
                raise ProjectionModeError(f"Projection of {name!r} must be true or false")
            modes.add(include)
            projection[schema.resolve(name)] = include
        if len(modes) > 1:
            raise ProjectionModeError("Projection cannot mix included and excluded fields")
        return projection

    def compile(self, flt: Filter | None, schema: SchemaIndex) -> CompiledQuery:
        """Compile a whole filter; raises without returning a partial query."""
        flt = flt or Filter()
        options = flt.options or QueryOptions()
        skip = _validate_count("skip", options.skip)
        limit = 0 if options.limit is None else _validate_count("limit", options.limit)
        compiled = CompiledQuery(
            query=self.build_match(flt.where, schema),
            sort=self.build_sort(options.order, schema),
            skip=skip,
            limit=limit,
            projection=self.build_project(options.fields, schema),
        )
        logger.debug("Compiled filter for %s: %s", schema.model_name, compiled)
        return compiled
