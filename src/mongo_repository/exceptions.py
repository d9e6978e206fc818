"""Exceptions for mongo-repository."""

from __future__ import annotations


class MongoRepositoryError(Exception):
    """Root exception for the entire mongo-repository package."""


class ValidationError(MongoRepositoryError):
    """Base class for errors detected before anything reaches the driver."""


class SchemaError(ValidationError):
    """Raised when a schema cannot be built from a model description."""


class SchemaResolutionError(ValidationError):
    """Raised when a filter references a field the schema cannot resolve."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Unknown field {field!r}")


class UnknownFieldError(SchemaResolutionError):
    """Raised when a field name is not part of the schema."""


class NestedFieldError(SchemaResolutionError):
    """Raised when a field reference points inside an embedded document."""

    def __init__(self, field: str) -> None:
        super().__init__(field, "can not query on nested fields")


class FilterCompilationError(ValidationError):
    """Raised when a filter is structurally invalid."""


class ProjectionModeError(FilterCompilationError):
    """Raised when a projection mixes included and excluded fields."""


class PaginationError(FilterCompilationError):
    """Raised when skip or limit are not non-negative integers."""


class InvalidUpdateError(ValidationError):
    """Raised when an update specification cannot be normalized."""


class MixedUpdateError(InvalidUpdateError):
    """Raised when an update mixes plain fields and ``$`` operators."""

    def __init__(self) -> None:
        super().__init__("the update has a mix between fields and commands")


class NotFoundError(MongoRepositoryError):
    """Raised when a delete or targeted update matched no documents."""

    def __init__(self, collection: str, query: object | None = None) -> None:
        self.collection = collection
        self.query = query
        super().__init__(f"no documents found in {collection!r}")


class InfrastructureError(MongoRepositoryError):
    """Base class for all infrastructure-related errors."""


class DriverError(InfrastructureError):
    """Raised when the MongoDB driver fails or exceeds its deadline."""


class ConnectionError(InfrastructureError):  # noqa: A001
    """Raised when a connector cannot reach MongoDB or is not connected."""


class ConfigurationError(InfrastructureError):
    """Raised when connectors, datasources or models are misconfigured."""
