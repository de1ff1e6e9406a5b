"""
Error types.

Nothing in the interaction engine is fatal. These exceptions exist at the
edges (catalog loading, remote transport) and are caught before they can
reach gesture handling.
"""

from __future__ import annotations


class CrucibleError(Exception):
    """Base class for all Crucible errors."""


class CatalogError(CrucibleError):
    """A recipe table could not be parsed."""


class RemoteError(CrucibleError):
    """A remote progress call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteUnavailableError(RemoteError):
    """Transport failure or non-success response from the progress server."""


class PayloadTooLargeError(RemoteError):
    """Serialized progress exceeds the storage ceiling."""
