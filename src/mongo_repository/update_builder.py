"""
Update and insert document builders.

Both builders are pure: they never mutate their input and hold no state.
The lifecycle policy is passed in on every call and decides which of the
``created``, ``modified`` and ``deleted`` fields the builder owns. Owned
fields supplied by the caller are discarded and re-injected from the clock
or from ``$currentDate``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .exceptions import InvalidUpdateError, MixedUpdateError
from .lifecycle import (
    CREATED_FIELD,
    DELETED_FIELD,
    MODIFIED_FIELD,
    UPDATE,
    LifecyclePolicy,
    OperationContext,
)
from .serialization import to_document

logger = logging.getLogger("mongo_repository.update_builder")

OPERATOR_MARKER = "$"
SET = "$set"
CURRENT_DATE = "$currentDate"
SET_ON_INSERT = "$setOnInsert"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_operator(key: str) -> bool:
    return key.startswith(OPERATOR_MARKER)


def _strip(bucket: Mapping[str, Any], owned: frozenset[str], op: str) -> dict[str, Any]:
    kept = {k: v for k, v in bucket.items() if k not in owned}
    if len(kept) != len(bucket):
        logger.debug(
            "Discarded lifecycle fields %s from %s",
            sorted(set(bucket) - set(kept)),
            op,
        )
    return kept


def compile_update(
    update: Any,
    policy: LifecyclePolicy,
    context: OperationContext = UPDATE,
    *,
    now: datetime | None = None,
    id_field: str = "id",
) -> dict[str, Any]:
    """Normalize an update specification into one MongoDB update document.

    ``update`` is either field-style (``{"name": "x"}``, or a Pydantic model)
    or operator-style (``{"$set": {...}, "$inc": {...}}``), never both.

    Raises:
        MixedUpdateError: Plain fields and ``$`` operators are combined.
        InvalidUpdateError: Nothing is left to update.
    """
    document = to_document(update, id_field=id_field)
    has_commands = any(_is_operator(k) for k in document)
    has_fields = any(not _is_operator(k) for k in document)
    if has_commands and has_fields:
        raise MixedUpdateError()

    owned = policy.owned_fields
    operators: dict[str, Any] = {}
    if has_commands:
        for op, operand in document.items():
            if isinstance(operand, Mapping):
                operators[op] = _strip(operand, owned, op)
            else:
                operators[op] = operand
        set_bucket = operators.pop(SET, {})
    else:
        set_bucket = _strip(document, owned, SET)

    current_date = operators.pop(CURRENT_DATE, {})
    set_on_insert = operators.pop(SET_ON_INSERT, {})
    for bucket in (set_bucket, current_date, set_on_insert):
        if not isinstance(bucket, dict):
            raise InvalidUpdateError(f"Update operators take a document, got {bucket!r}")

    new_update: dict[str, Any] = {}
    if set_bucket:
        new_update[SET] = set_bucket
    for op, operand in operators.items():
        # Buckets emptied by stripping are never sent
        if isinstance(operand, dict) and not operand:
            continue
        new_update[op] = operand

    if policy.enabled:
        if policy.modified:
            current_date[MODIFIED_FIELD] = True
        if policy.deleted and context.soft_delete:
            current_date[DELETED_FIELD] = True
        if policy.created and context.restamp_created and not context.upsert:
            current_date[CREATED_FIELD] = True
    if current_date:
        new_update[CURRENT_DATE] = current_date

    if policy.created and context.upsert:
        set_on_insert[CREATED_FIELD] = now or _utcnow()
    if set_on_insert:
        new_update[SET_ON_INSERT] = set_on_insert

    if not new_update:
        raise InvalidUpdateError("The update has no fields or operators to apply")
    logger.debug("Compiled update (context=%s): %s", context, new_update)
    return new_update


def compile_insert(
    document: Any,
    policy: LifecyclePolicy,
    *,
    now: datetime | None = None,
    id_field: str = "id",
) -> dict[str, Any]:
    """Return a copy of ``document`` with the lifecycle fields initialized.

    ``created`` and ``modified`` get the current time and ``deleted`` is
    explicitly null so the document starts out visible.
    """
    doc = to_document(document, id_field=id_field)
    stamp = now or _utcnow()
    if policy.created:
        doc[CREATED_FIELD] = stamp
    if policy.modified:
        doc[MODIFIED_FIELD] = stamp
    if policy.deleted:
        doc[DELETED_FIELD] = None
    return doc
