"""Standard comparison operators for MongoDB query compilation."""

from __future__ import annotations

from typing import Any

from ..conditions import Operator
from ..exceptions import FilterCompilationError

_MONGO_OP_MAP: dict[Operator, str] = {
    Operator.EQ: "$eq",
    Operator.NEQ: "$ne",
    Operator.GT: "$gt",
    Operator.GTE: "$gte",
    Operator.LT: "$lt",
    Operator.LTE: "$lte",
}

_SET_OP_MAP: dict[Operator, str] = {
    Operator.INQ: "$in",
    Operator.NIN: "$nin",
}


def compile_standard(field: str, op: Operator, val: Any) -> dict[str, Any] | None:
    """Compile comparison, set and range operators. Returns None otherwise."""
    mongo_op = _MONGO_OP_MAP.get(op)
    if mongo_op:
        return {field: {mongo_op: val}}

    mongo_op = _SET_OP_MAP.get(op)
    if mongo_op:
        if not isinstance(val, (list, tuple, set, frozenset)):
            raise FilterCompilationError(
                f"{op.value} on {field!r} requires a list of values"
            )
        values = sorted(val, key=repr) if isinstance(val, (set, frozenset)) else list(val)
        return {field: {mongo_op: values}}

    if op == Operator.BETWEEN:
        lo, hi = _validate_range_operand(field, val)
        return {field: {"$gte": lo, "$lte": hi}}

    return None


def _validate_range_operand(field: str, val: Any) -> tuple[Any, Any]:
    if not isinstance(val, (list, tuple)) or len(val) != 2:
        raise FilterCompilationError(f"between on {field!r} requires a list of two values")
    return val[0], val[1]
