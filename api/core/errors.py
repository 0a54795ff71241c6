"""
Error taxonomy for catalog queries.

Every failure raised by `core.db` or the `catalog` package derives from
`CatalogError`, so callers can catch one type. Engine exceptions are chained
as `__cause__`.
"""

from __future__ import annotations

from typing import Any


class CatalogError(Exception):
    """Base class for catalog query failures."""


class NotFound(CatalogError):
    """
    No row satisfied the query predicate.

    `params` holds the identifying query parameters for diagnostics.
    """

    def __init__(self, message: str, **params: Any) -> None:
        super().__init__(message)
        self.params = params


class StoreError(CatalogError):
    """The engine failed to execute the query, or the store handle is invalid."""


class Cancelled(CatalogError):
    """The query was cancelled server-side before it completed."""


class DeadlineExceeded(CatalogError):
    """The query did not complete before its deadline."""


class DecodeError(CatalogError):
    """A column held a value that could not be read as its expected type."""

    def __init__(self, column: str, value: Any, expected: str) -> None:
        super().__init__(f"column {column!r}: expected {expected}, got {type(value).__name__}")
        self.column = column
        self.value = value
