"""Error kinds raised by the pattern store and the submission ledger.

Callers branch on these: ``NotFoundError`` and ``ConflictError`` are
expected, recoverable outcomes, never retried internally.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all store errors."""


class NotFoundError(CatalogError, LookupError):
    """A referenced domain, category, pattern or submission does not exist."""


class ConflictError(CatalogError):
    """Duplicate slug in its uniqueness scope, or a submission already reviewed."""


class ValidationError(CatalogError, ValueError):
    """Malformed input, rejected before any storage access."""
