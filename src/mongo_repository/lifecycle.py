"""Lifecycle policy, operation contexts and the soft-delete liveness states."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

CREATED_FIELD = "created"
MODIFIED_FIELD = "modified"
DELETED_FIELD = "deleted"


@dataclass(frozen=True)
class LifecyclePolicy:
    """
    Which bookkeeping fields a repository owns.

    Set once when the repository is built. Owned fields are written only by
    the update and insert builders; caller values for them are discarded.
    """

    created: bool = False
    modified: bool = False
    deleted: bool = False

    @classmethod
    def all(cls) -> LifecyclePolicy:
        return cls(created=True, modified=True, deleted=True)

    @property
    def enabled(self) -> bool:
        return self.created or self.modified or self.deleted

    @property
    def owned_fields(self) -> frozenset[str]:
        owned = set()
        if self.created:
            owned.add(CREATED_FIELD)
        if self.modified:
            owned.add(MODIFIED_FIELD)
        if self.deleted:
            owned.add(DELETED_FIELD)
        return frozenset(owned)


@dataclass(frozen=True)
class OperationContext:
    """
    The lifecycle transition an update performs.

    Attributes:
        upsert: The update may insert; ``created`` goes to ``$setOnInsert``.
        soft_delete: The update marks documents deleted.
        restamp_created: The update deliberately resets ``created`` on
            existing documents. Ignored for upserts.
    """

    upsert: bool = False
    soft_delete: bool = False
    restamp_created: bool = False


UPDATE = OperationContext()
UPSERT = OperationContext(upsert=True)
SOFT_DELETE = OperationContext(soft_delete=True)


class DeletionState(str, Enum):
    """Classification of a stored ``deleted`` value."""

    LIVE = "live"
    DELETED = "deleted"
    INVALID = "invalid"


def deletion_state(document: dict[str, Any]) -> DeletionState:
    """Classify a raw document the way the visibility predicate does.

    Absent or null means live, a datetime means deleted, and any other value
    is an invalid placeholder that the predicate still treats as live.
    """
    value = document.get(DELETED_FIELD)
    if value is None:
        return DeletionState.LIVE
    if isinstance(value, datetime):
        return DeletionState.DELETED
    return DeletionState.INVALID
