"""Domain errors raised by the service layer.

Routes never build error responses for these by hand; ``create_app`` registers
a handler that turns any ``InventoryError`` into ``{"detail": ...}`` with the
class's status code.
"""
from fastapi import status


class InventoryError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(InventoryError):
    """A required field is missing or refers to something that does not exist."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(InventoryError):
    """A unique key is taken, or a box still holds items."""
    status_code = status.HTTP_409_CONFLICT


class StorageError(InventoryError):
    """The database failed a read or write; nothing was persisted."""


class SearchFailed(StorageError):
    def __init__(self, detail: str = "Search failed"):
        super().__init__(detail)
