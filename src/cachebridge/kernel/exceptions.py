"""Unified exception hierarchy for cachebridge.

All library exceptions inherit from CacheBridgeException, enabling unified
error handling across modules.

Categories:
- BusinessException: caller mistakes such as invalid arguments or queries
- InfrastructureException: engine, persistence and lifecycle failures
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Base Exception
# =============================================================================


class CacheBridgeException(Exception):
    """Base exception for all cachebridge errors.

    Carries an optional error code and context dict for structured error data.
    Catch CacheBridgeException to handle every library error, or catch
    specific subclasses for targeted handling.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "QUERY_ERROR").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(CacheBridgeException):
    """Caller-side rule violations."""


class ValidationException(BusinessException):
    """Input validation failures (TTLs, page sizes, options, counter amounts)."""


class InvalidRequestException(BusinessException):
    """Request is syntactically valid but semantically incorrect."""


class QueryError(InvalidRequestException):
    """A query/operation combination is unsupported or was rejected by the engine.

    Args:
        message: Description of the failure (the engine message when the
            engine rejected the query).
        query: The offending query, kept verbatim.
        operation: Name of the operation being executed, when known.
    """

    def __init__(self, message: str, query: Any = None, operation: str | None = None) -> None:
        super().__init__(
            message,
            code="QUERY_ERROR",
            context={"query": query, "operation": operation},
        )
        self.query = query
        self.operation = operation


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(CacheBridgeException):
    """Infrastructure failures: engine, persistence, lifecycle."""


class ServiceUnavailableException(InfrastructureException):
    """The cache engine is unavailable."""


class CacheNotStartedException(ServiceUnavailableException):
    """A cache was used before ``start()`` or after ``stop()``."""


class OperationTimeoutException(InfrastructureException):
    """Operation exceeded its allowed time limit."""


class PersistenceError(InfrastructureException):
    """Dump or load of a cache snapshot failed.

    ``reason`` is the engine-supplied reason code, passed through unchanged
    (e.g. ``"unreachable_file"`` or ``"enoent"``).
    """

    def __init__(self, reason: str, path: str | None = None) -> None:
        super().__init__(
            f"persistence failed: {reason}",
            code="PERSISTENCE_ERROR",
            context={"reason": reason, "path": path},
        )
        self.reason = reason
        self.path = path
