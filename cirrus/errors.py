"""Exception hierarchy shared by the stores, commands and browsers."""
from __future__ import annotations


class CirrusError(Exception):
    """Base class for every error cirrus raises on purpose."""


class TransportError(CirrusError):
    """A store or log collaborator call failed (network, throttling, auth)."""


class BulkDeleteError(TransportError):
    """A batch in a bulk delete failed after some batches already went through.

    Attributes:
        deleted: Number of items removed before the failure.
        total: Number of items the bulk delete was asked to remove.
    """

    def __init__(self, message: str, deleted: int, total: int):
        super().__init__(message)
        self.deleted = deleted
        self.total = total

    def __str__(self) -> str:
        return f"deleted {self.deleted} of {self.total} items before failure: {self.args[0]}"


class SubprocessError(CirrusError):
    """The external text-search tool could not be launched or exited badly."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class PersistenceError(CirrusError):
    """The preferences file could not be read or written."""


class ValidationError(CirrusError):
    """User input was rejected (confirmation mismatch, unknown operator)."""


class UnknownAttributeTypeError(CirrusError):
    """An attribute value carried a type tag cirrus does not know about."""
