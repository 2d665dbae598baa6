from __future__ import annotations

from typing import Any, Dict, Iterable

from .models import Todo
from .schemas import TodoOut


# PUBLIC_INTERFACE
def todo_envelope(todo: Todo) -> Dict[str, Any]:
    """Wrap a single record as `{"todo": ...}`."""
    return {"todo": TodoOut.from_todo(todo)}


# PUBLIC_INTERFACE
def todos_envelope(todos: Iterable[Todo]) -> Dict[str, Any]:
    """
    Build the envelope for list endpoints.

    Args:
        todos: Records in whatever order storage returned them.

    Returns:
        Dict with a single key `todos` holding the serialized records.
    """
    return {"todos": [TodoOut.from_todo(t) for t in todos]}


# PUBLIC_INTERFACE
def error_body(exc: BaseException, message: str) -> Dict[str, str]:
    """Minimal error payload: class name plus a short message."""
    return {"error": type(exc).__name__, "message": message}
