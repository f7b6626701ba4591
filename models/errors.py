"""Errors raised by the badge catalog."""

from typing import Optional


class BadgeCatalogError(Exception):
    """Base class for every badge catalog failure."""


class ValidationError(BadgeCatalogError, ValueError):
    """A badge field is empty, too long, or outside its allowed range."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CapacityExceeded(BadgeCatalogError):
    """The catalog already holds the maximum number of badges."""


class DuplicateName(BadgeCatalogError, ValueError):
    """Another badge already uses the requested name."""


class NotFound(BadgeCatalogError, LookupError):
    """No badge has the requested id."""


class PersistenceError(BadgeCatalogError):
    """The storage backend rejected a write."""
