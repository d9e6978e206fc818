"""Existence checks -> $exists."""

from __future__ import annotations

from typing import Any

from ..conditions import Operator
from ..exceptions import FilterCompilationError


def compile_existence(field: str, op: Operator, val: Any) -> dict[str, Any] | None:
    """Compile the exists operator. Returns None if not an existence op."""
    if op != Operator.EXISTS:
        return None
    if not isinstance(val, bool):
        raise FilterCompilationError(f"exists on {field!r} requires true or false")
    return {field: {"$exists": val}}
