from __future__ import annotations


# PUBLIC_INTERFACE
class TodoServiceError(Exception):
    """Base class for every error raised by the todo service."""

    status_code: int = 500
    public_message: str = "Internal server error"


# PUBLIC_INTERFACE
class ValidationError(TodoServiceError):
    """Malformed or missing client input (title, due, identifier)."""

    status_code = 400
    public_message = "Invalid request"


# PUBLIC_INTERFACE
class NotFound(TodoServiceError):
    """No stored record matches the requested identifier."""

    status_code = 404
    public_message = "Todo not found"


# PUBLIC_INTERFACE
class StorageError(TodoServiceError):
    """
    Failure of the underlying store: connection problems, constraint
    violations, unexpected row counts. Never exposed in detail to callers.
    """

    status_code = 500


# PUBLIC_INTERFACE
class DecodeError(StorageError):
    """A stored row could not be mapped back into a Todo."""
