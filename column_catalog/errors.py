"""Exceptions raised while reading catalog metadata."""

from typing import Optional


class CatalogError(Exception):
    """Base class for catalog metadata errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class CatalogAccessError(CatalogError):
    """A catalog query could not be prepared, executed or connected.

    Raised for lazily loaded attributes; the caller may retry.
    """


class RegistryLookupError(CatalogError):
    """The owning table failed to report a column's domain type."""
