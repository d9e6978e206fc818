"""Pattern operators -> $regex, $options (case-insensitive)."""

from __future__ import annotations

import re
from typing import Any

from ..conditions import Operator
from ..exceptions import FilterCompilationError

_PATTERN_OPS = {Operator.LIKE, Operator.NLIKE, Operator.ILIKE, Operator.NILIKE, Operator.REGEXP}
_CASE_INSENSITIVE = {Operator.ILIKE, Operator.NILIKE}
_NEGATED = {Operator.NLIKE, Operator.NILIKE}


def compile_string(field: str, op: Operator, val: Any) -> dict[str, Any] | None:
    """Compile pattern operators to MongoDB $regex. Returns None if not a pattern op.

    Patterns are regular expressions and are passed to the server unchanged.
    """
    if op not in _PATTERN_OPS:
        return None
    if not isinstance(val, (str, re.Pattern)):
        raise FilterCompilationError(f"{op.value} on {field!r} requires a string pattern")
    expr: dict[str, Any] = {"$regex": val}
    if op in _CASE_INSENSITIVE:
        expr["$options"] = "i"
    if op in _NEGATED:
        return {field: {"$not": expr}}
    return {field: expr}
