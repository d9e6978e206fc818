"""Typed MongoDB repositories with filter compilation and lifecycle bookkeeping.

Includes the filter compiler (condition trees -> MongoDB queries), the update
and insert builders that own the ``created``/``modified``/``deleted`` fields,
soft-delete rewriting, and an async Motor-backed repository.
"""

from __future__ import annotations

from .conditions import (
    And,
    Condition,
    ConditionTree,
    Filter,
    Nor,
    Not,
    Operator,
    Or,
    QueryOptions,
    SortDirection,
    where,
)
from .connection import MongoConnector
from .datasource import MongoDatasource
from .exceptions import (
    ConfigurationError,
    ConnectionError,
    DriverError,
    FilterCompilationError,
    InfrastructureError,
    InvalidUpdateError,
    MixedUpdateError,
    MongoRepositoryError,
    NestedFieldError,
    NotFoundError,
    PaginationError,
    ProjectionModeError,
    SchemaError,
    SchemaResolutionError,
    UnknownFieldError,
    ValidationError,
)
from .lifecycle import (
    SOFT_DELETE,
    UPDATE,
    UPSERT,
    DeletionState,
    LifecyclePolicy,
    OperationContext,
    deletion_state,
)
from .models import DocumentModel, MongoDate, PersistedModel, SoftDeleteModel, TimestampedModel
from .query_builder import CompiledQuery, MongoQueryBuilder
from .repository import MongoRepository
from .schema import FieldDetails, SchemaIndex
from .serialization import model_from_doc, model_to_doc
from .soft_delete import SoftDeleteRewriter, visibility_predicate
from .update_builder import compile_insert, compile_update

__all__ = [
    # Repository
    "MongoConnector",
    "MongoDatasource",
    "MongoRepository",
    # Filters
    "And",
    "Condition",
    "ConditionTree",
    "Filter",
    "Nor",
    "Not",
    "Operator",
    "Or",
    "QueryOptions",
    "SortDirection",
    "where",
    "CompiledQuery",
    "MongoQueryBuilder",
    "FieldDetails",
    "SchemaIndex",
    # Lifecycle
    "LifecyclePolicy",
    "OperationContext",
    "UPDATE",
    "UPSERT",
    "SOFT_DELETE",
    "DeletionState",
    "deletion_state",
    "SoftDeleteRewriter",
    "visibility_predicate",
    "compile_insert",
    "compile_update",
    # Models
    "DocumentModel",
    "MongoDate",
    "PersistedModel",
    "SoftDeleteModel",
    "TimestampedModel",
    "model_from_doc",
    "model_to_doc",
    # Exceptions
    "MongoRepositoryError",
    "ValidationError",
    "SchemaError",
    "SchemaResolutionError",
    "UnknownFieldError",
    "NestedFieldError",
    "FilterCompilationError",
    "ProjectionModeError",
    "PaginationError",
    "InvalidUpdateError",
    "MixedUpdateError",
    "NotFoundError",
    "InfrastructureError",
    "DriverError",
    "ConnectionError",
    "ConfigurationError",
]
