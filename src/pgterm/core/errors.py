"""Typed errors raised by the browsing core.

Every failure path in the core surfaces as one of these, with enough context
(operation, target, cause) for the presentation layer to render a message.
Nothing here is retried automatically.
"""

from __future__ import annotations


class PgtermError(RuntimeError):
    """Base class for all pgterm errors."""


class DatabaseConnectionError(PgtermError):
    """Raised when a connection handle cannot be established or is unusable."""


class NotFoundError(PgtermError):
    """Raised when a connection name is not registered."""


class Cancelled(PgtermError):
    """Raised when a query is aborted by an external cancel or deadline."""


class DriverError(PgtermError):
    """Raised by the driver adapter when a statement fails."""

    def __init__(self, sql: str, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.sql = sql
        self.cause = cause


class _OperationError(PgtermError):
    """Error carrying the failed operation, its target and underlying cause."""

    def __init__(
        self,
        operation: str,
        target: str,
        cause: BaseException | str,
    ) -> None:
        self.operation = operation
        self.target = target
        self.cause = cause
        super().__init__(f"{operation} failed for {target}: {cause}")


class CatalogError(_OperationError):
    """Raised when a metadata query fails or returns an unexpected shape."""


class QueryError(_OperationError):
    """Raised when a row fetch fails or its identifiers are rejected."""
