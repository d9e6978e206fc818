"""
Condition trees and result-shaping options.

A condition tree is a tagged variant: :class:`Condition` leaves combined by
:class:`And`, :class:`Or`, :class:`Nor` and :class:`Not` nodes. Trees are
immutable; the query builder only reads them. ``&``, ``|`` and ``~`` build
combinators from existing nodes::

    tree = Condition("status", "eq", "active") & ~Condition("qty", "lt", 10)

:class:`QueryOptions` carries sort, pagination and projection, and
:class:`Filter` pairs a tree with its options.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from collections.abc import Mapping


class Operator(str, Enum):
    """Leaf operators of the filter language."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    INQ = "inq"
    NIN = "nin"
    BETWEEN = "between"
    EXISTS = "exists"
    LIKE = "like"
    NLIKE = "nlike"
    ILIKE = "ilike"
    NILIKE = "nilike"
    REGEXP = "regexp"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class _Combinable:
    def __and__(self, other: ConditionTree) -> And:
        return And((self, other))  # type: ignore[arg-type]

    def __or__(self, other: ConditionTree) -> Or:
        return Or((self, other))  # type: ignore[arg-type]

    def __invert__(self) -> Not:
        return Not(self)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Condition(_Combinable):
    """Leaf condition: ``field <op> value``."""

    field: str
    op: Operator = Operator.EQ
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.op, Operator):
            object.__setattr__(self, "op", Operator(self.op))


@dataclass(frozen=True)
class _Group(_Combinable):
    children: tuple[ConditionTree, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class And(_Group):
    """All children must match. Empty matches everything."""


@dataclass(frozen=True)
class Or(_Group):
    """At least one child must match. Empty matches everything."""


@dataclass(frozen=True)
class Nor(_Group):
    """No child may match. Empty matches everything."""


@dataclass(frozen=True)
class Not(_Combinable):
    """Negation of a single subtree."""

    child: ConditionTree


ConditionTree = Union[Condition, And, Or, Nor, Not]


def where(**equalities: Any) -> ConditionTree | None:
    """Build an equality tree from keyword arguments (``None`` when empty)."""
    conditions = [Condition(name, Operator.EQ, value) for name, value in equalities.items()]
    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return And(tuple(conditions))


@dataclass(frozen=True)
class QueryOptions:
    """
    Immutable container for result-shaping parameters.

    Attributes:
        order: ``(field, direction)`` pairs in priority order. Direction is
            ``"asc"``/``"desc"`` (any case), a :class:`SortDirection`, or
            ``1``/``-1``.
        skip: Number of documents to skip.
        limit: Maximum number of documents; ``None`` means unbounded.
        fields: Projection, ``{field: True}`` to include only those fields or
            ``{field: False}`` to exclude them. Modes cannot be mixed.
    """

    order: tuple[tuple[str, Any], ...] = ()
    skip: int = 0
    limit: int | None = None
    fields: Mapping[str, bool] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "order", tuple(tuple(item) for item in self.order))

    def with_pagination(self, *, skip: int | None = None, limit: int | None = None) -> QueryOptions:
        """Return a copy with updated pagination parameters."""
        return replace(
            self,
            skip=self.skip if skip is None else skip,
            limit=self.limit if limit is None else limit,
        )

    def with_ordering(self, *order: tuple[str, Any]) -> QueryOptions:
        """Return a copy with the ordering replaced."""
        return replace(self, order=tuple(order))


@dataclass(frozen=True)
class Filter:
    """A condition tree plus the options shaping its results."""

    where: ConditionTree | None = None
    options: QueryOptions = field(default_factory=QueryOptions)

    def and_where(self, *conditions: ConditionTree) -> Filter:
        """Return a copy whose tree is ANDed with ``conditions``."""
        parts = [*conditions] if self.where is None else [*conditions, self.where]
        if not parts:
            return self
        tree = parts[0] if len(parts) == 1 else And(tuple(parts))
        return replace(self, where=tree)
