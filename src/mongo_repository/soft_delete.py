"""Soft-delete visibility predicate and delete-as-update rewrite."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .lifecycle import DELETED_FIELD, SOFT_DELETE
from .update_builder import compile_update

if TYPE_CHECKING:
    from datetime import datetime

    from .lifecycle import LifecyclePolicy

logger = logging.getLogger("mongo_repository.soft_delete")


def visibility_predicate() -> dict[str, Any]:
    """Match documents whose ``deleted`` field holds no timestamp.

    Absent, null and placeholder values are all live; only a BSON date
    hides a document.
    """
    return {DELETED_FIELD: {"$not": {"$type": "date"}}}


class SoftDeleteRewriter:
    """Rewrites queries and deletes for a repository's lifecycle policy.

    Inactive (every method is a pass-through) unless the policy tracks
    ``deleted``.
    """

    def __init__(self, policy: LifecyclePolicy) -> None:
        self._policy = policy

    @property
    def active(self) -> bool:
        return self._policy.deleted

    def rewrite_query(
        self, query: dict[str, Any], *, include_deleted: bool = False
    ) -> dict[str, Any]:
        """AND ``query`` with the visibility predicate."""
        if not self.active or include_deleted:
            return query
        if not query:
            return visibility_predicate()
        return {"$and": [query, visibility_predicate()]}

    def delete_update(self, *, now: datetime | None = None) -> dict[str, Any]:
        """The update that replaces a physical delete."""
        update = compile_update({}, self._policy, SOFT_DELETE, now=now)
        logger.debug("Delete rewritten as update: %s", update)
        return update
