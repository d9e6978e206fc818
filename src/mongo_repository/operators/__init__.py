"""MongoDB operator compilers for condition tree leaves."""

from __future__ import annotations

from .existence import compile_existence
from .standard import compile_standard
from .string import compile_string

__all__ = [
    "compile_standard",
    "compile_string",
    "compile_existence",
]
