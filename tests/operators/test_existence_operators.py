"""Unit tests for the exists operator."""

from __future__ import annotations

import pytest

from mongo_repository.conditions import Operator
from mongo_repository.exceptions import FilterCompilationError
from mongo_repository.operators.existence import compile_existence


class TestExistenceOperator:
    """Tests for exists."""

    @pytest.mark.parametrize("value", [True, False])
    def test_exists(self, value):
        assert compile_existence("owner", Operator.EXISTS, value) == {"owner": {"$exists": value}}

    def test_non_bool_rejected(self):
        with pytest.raises(FilterCompilationError):
            compile_existence("owner", Operator.EXISTS, 1)

    def test_not_existence_operator(self):
        assert compile_existence("owner", Operator.EQ, True) is None
