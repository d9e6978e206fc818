"""MongoRepository[T]: typed CRUD over one collection with lifecycle bookkeeping."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from .conditions import And, Condition, Filter, Operator, QueryOptions
from .exceptions import DriverError, NotFoundError
from .lifecycle import (
    DELETED_FIELD,
    UPDATE,
    UPSERT,
    DeletionState,
    LifecyclePolicy,
    deletion_state,
)
from .models import resolve_collection_name
from .query_builder import CompiledQuery, MongoQueryBuilder
from .schema import ID_STORAGE_NAME, SchemaIndex
from .serialization import model_from_doc
from .soft_delete import SoftDeleteRewriter
from .update_builder import compile_insert, compile_update

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from .conditions import ConditionTree
    from .connection import MongoConnector
    from .datasource import MongoDatasource

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger("mongo_repository.repository")

DEFAULT_TIMEOUT = 10.0


def _pinned_id(tree: ConditionTree | None, schema: SchemaIndex) -> Condition | None:
    """Return the top-level equality on ``_id`` that an upsert would insert with."""
    match tree:
        case Condition(op=Operator.EQ) if schema.resolve(tree.field) == ID_STORAGE_NAME:
            return tree
        case And(children=children):
            for child in children:
                pinned = _pinned_id(child, schema)
                if pinned is not None:
                    return pinned
    return None


class MongoRepository(Generic[T]):
    """
    Repository over one MongoDB collection for the model ``T``.

    Filters are compiled against the model's :class:`SchemaIndex`; writes go
    through the update and insert builders under the repository's
    :class:`LifecyclePolicy`. With soft delete enabled, reads hide deleted
    documents unless ``include_deleted=True`` and deletes only stamp
    ``deleted``.

    Every driver call runs under ``timeout`` seconds. Driver failures and
    timeouts are raised as :class:`DriverError`.
    """

    def __init__(
        self,
        connector: MongoConnector,
        model_cls: type[T],
        *,
        policy: LifecyclePolicy | None = None,
        collection: str | None = None,
        id_field: str = "id",
        timeout: float = DEFAULT_TIMEOUT,
        query_builder: MongoQueryBuilder | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._connector = connector
        self._model_cls = model_cls
        self._policy = policy or LifecyclePolicy()
        self._collection_name = collection or resolve_collection_name(model_cls)
        self._id_field = id_field
        self._timeout = timeout
        self._query_builder = query_builder or MongoQueryBuilder()
        self._clock = clock
        self._schema = SchemaIndex.from_model(model_cls, id_field=id_field)
        self._soft_delete = SoftDeleteRewriter(self._policy)

    @classmethod
    def from_datasource(
        cls,
        datasource: MongoDatasource,
        model_cls: type[T],
        *,
        policy: LifecyclePolicy | None = None,
        **kwargs: Any,
    ) -> MongoRepository[T]:
        """Register ``model_cls`` on ``datasource`` and build its repository."""
        connector = datasource.register_model(model_cls)
        return cls(connector, model_cls, policy=policy, **kwargs)

    # -- accessors -----------------------------------------------------------

    @property
    def collection(self) -> Any:
        return self._connector.database.get_collection(self._collection_name)

    @property
    def schema(self) -> SchemaIndex:
        return self._schema

    @property
    def policy(self) -> LifecyclePolicy:
        return self._policy

    # -- helpers -------------------------------------------------------------

    def _now(self) -> datetime | None:
        return self._clock() if self._clock else None

    def _compile(self, flt: Filter | None, *, include_deleted: bool = False) -> CompiledQuery:
        compiled = self._query_builder.compile(flt, self._schema)
        query = self._soft_delete.rewrite_query(compiled.query, include_deleted=include_deleted)
        return replace(compiled, query=query)

    def _by_id(self, entity_id: Any) -> Filter:
        return Filter(where=Condition(self._id_field, Operator.EQ, entity_id))

    def _load(self, doc: dict[str, Any]) -> T:
        if self._soft_delete.active and deletion_state(doc) is DeletionState.INVALID:
            logger.warning(
                "Document %s in %s has a non-date deleted value %r; treated as live",
                doc.get(ID_STORAGE_NAME),
                self._collection_name,
                doc.get(DELETED_FIELD),
            )
        return model_from_doc(self._model_cls, doc, id_field=self._id_field)

    async def _run(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise DriverError(
                f"{operation} on {self._collection_name!r} exceeded {self._timeout}s"
            ) from e
        except PyMongoError as e:
            raise DriverError(f"{operation} on {self._collection_name!r} failed: {e}") from e

    # -- reads ---------------------------------------------------------------

    async def find(self, flt: Filter | None = None, *, include_deleted: bool = False) -> list[T]:
        """Return every document matching ``flt`` (an empty list if none)."""
        compiled = self._compile(flt, include_deleted=include_deleted)
        logger.debug("find %s %s", self._collection_name, compiled.query)
        cursor = self.collection.find(compiled.query, **compiled.find_kwargs())

        async def _collect() -> list[dict[str, Any]]:
            return [doc async for doc in cursor]

        docs = await self._run("find", _collect())
        return [self._load(doc) for doc in docs]

    async def _find_one_doc(
        self, flt: Filter | None, *, include_deleted: bool = False
    ) -> dict[str, Any] | None:
        compiled = self._compile(flt, include_deleted=include_deleted)
        logger.debug("find_one %s %s", self._collection_name, compiled.query)
        return await self._run(
            "find_one",
            self.collection.find_one(compiled.query, **compiled.find_kwargs(single=True)),
        )

    async def find_one(
        self, flt: Filter | None = None, *, include_deleted: bool = False
    ) -> T | None:
        """Return the first matching document, or None."""
        doc = await self._find_one_doc(flt, include_deleted=include_deleted)
        return None if doc is None else self._load(doc)

    async def find_by_id(
        self, entity_id: Any, flt: Filter | None = None, *, include_deleted: bool = False
    ) -> T | None:
        """Return the document with ``entity_id``, further narrowed by ``flt``."""
        flt = (flt or Filter()).and_where(Condition(self._id_field, Operator.EQ, entity_id))
        return await self.find_one(flt, include_deleted=include_deleted)

    async def count(self, flt: Filter | None = None, *, include_deleted: bool = False) -> int:
        compiled = self._compile(flt, include_deleted=include_deleted)
        return await self._run("count", self.collection.count_documents(compiled.query))

    async def exists(self, entity_id: Any) -> bool:
        flt = replace(
            self._by_id(entity_id),
            options=QueryOptions(fields={self._id_field: True}),
        )
        return await self._find_one_doc(flt) is not None

    # -- writes --------------------------------------------------------------

    async def insert(self, document: T | dict[str, Any]) -> Any:
        """Insert ``document`` and return its id.

        A string ObjectId is assigned when the document has no id.
        """
        doc = compile_insert(document, self._policy, now=self._now(), id_field=self._id_field)
        if doc.get(ID_STORAGE_NAME) is None:
            doc[ID_STORAGE_NAME] = str(ObjectId())
        result = await self._run("insert", self.collection.insert_one(doc))
        logger.debug("Inserted %s into %s", result.inserted_id, self._collection_name)
        return result.inserted_id

    async def create(self, document: T | dict[str, Any]) -> T | None:
        """Insert ``document`` and read it back."""
        inserted_id = await self.insert(document)
        return await self.find_by_id(inserted_id)

    async def find_one_or_create(
        self, flt: Filter | None, document: T | dict[str, Any]
    ) -> T | None:
        """Return the first match of ``flt``, inserting ``document`` if none matches.

        A matched document is returned untouched; the inserted one carries the
        same lifecycle fields as :meth:`insert`. When ``document`` has no id
        and ``flt`` pins one with a top-level equality, the document is
        created under that id.
        """
        compiled = self._compile(flt)
        doc = compile_insert(document, self._policy, now=self._now(), id_field=self._id_field)
        if doc.get(ID_STORAGE_NAME) is None:
            pinned = _pinned_id(flt.where if flt else None, self._schema)
            if pinned is None or pinned.value is None:
                doc[ID_STORAGE_NAME] = str(ObjectId())
            else:
                doc[ID_STORAGE_NAME] = pinned.value
        result = await self._run(
            "find_one_or_create",
            self.collection.find_one_and_update(
                compiled.query,
                {"$setOnInsert": doc},
                projection=compiled.projection,
                sort=compiled.sort or None,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            ),
        )
        return None if result is None else self._load(result)

    async def upsert(self, flt: Filter | None, update: Any) -> None:
        """Update the first match of ``flt`` or insert a new document.

        With ``created`` tracked, the inserted document is stamped through
        ``$setOnInsert`` and later upserts never touch it.
        """
        compiled = self._compile(flt)
        new_update = compile_update(
            update, self._policy, UPSERT, now=self._now(), id_field=self._id_field
        )
        await self._run(
            "upsert",
            self.collection.update_one(compiled.query, new_update, upsert=True),
        )

    async def update_one(self, flt: Filter | None, update: Any) -> None:
        """Update the first match of ``flt``; raises NotFoundError if none."""
        compiled = self._compile(flt)
        new_update = compile_update(update, self._policy, UPDATE, id_field=self._id_field)
        result = await self._run(
            "update_one", self.collection.update_one(compiled.query, new_update)
        )
        if result.matched_count == 0:
            raise NotFoundError(self._collection_name, compiled.query)

    async def update_by_id(self, entity_id: Any, update: Any) -> None:
        await self.update_one(self._by_id(entity_id), update)

    async def find_one_and_update(self, flt: Filter | None, update: Any) -> T | None:
        """Update the first match and return it after the update, or None."""
        compiled = self._compile(flt)
        new_update = compile_update(update, self._policy, UPDATE, id_field=self._id_field)
        result = await self._run(
            "find_one_and_update",
            self.collection.find_one_and_update(
                compiled.query,
                new_update,
                projection=compiled.projection,
                sort=compiled.sort or None,
                return_document=ReturnDocument.AFTER,
            ),
        )
        return None if result is None else self._load(result)

    async def update_many(self, flt: Filter | None, update: Any) -> int:
        """Update every match and return the modified count."""
        compiled = self._compile(flt)
        new_update = compile_update(update, self._policy, UPDATE, id_field=self._id_field)
        result = await self._run(
            "update_many", self.collection.update_many(compiled.query, new_update)
        )
        return result.modified_count

    # -- deletes -------------------------------------------------------------

    async def delete_one(self, flt: Filter | None) -> None:
        """Delete (or soft-delete) the first match; raises NotFoundError if none."""
        compiled = self._compile(flt)
        if self._soft_delete.active:
            result = await self._run(
                "delete_one",
                self.collection.update_one(compiled.query, self._soft_delete.delete_update()),
            )
            matched = result.matched_count
        else:
            result = await self._run("delete_one", self.collection.delete_one(compiled.query))
            matched = result.deleted_count
        if matched == 0:
            raise NotFoundError(self._collection_name, compiled.query)

    async def delete_by_id(self, entity_id: Any) -> None:
        await self.delete_one(self._by_id(entity_id))

    async def delete_many(self, flt: Filter | None = None) -> int:
        """Delete (or soft-delete) every match and return how many were affected."""
        compiled = self._compile(flt)
        if self._soft_delete.active:
            result = await self._run(
                "delete_many",
                self.collection.update_many(compiled.query, self._soft_delete.delete_update()),
            )
            return result.modified_count
        result = await self._run("delete_many", self.collection.delete_many(compiled.query))
        return result.deleted_count
