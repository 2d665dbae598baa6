from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from .errors import DecodeError, ValidationError
from .schemas import TodoCreate

# Column names of the todos table, in schema order
COLUMNS = ("id", "title", "completed", "due")


# PUBLIC_INTERFACE
def parse_todo_id(value: Union[str, UUID]) -> UUID:
    """
    Parse the canonical string form of a todo identifier.

    Raises:
        ValidationError if the value is not a UUID in canonical form.
    """
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"todo id must be a string, got {type(value).__name__}")
    try:
        parsed = UUID(value)
    except ValueError as e:
        raise ValidationError(f"malformed todo id: {value!r}") from e
    # Only the lowercase hyphenated form names a todo
    if str(parsed) != value:
        raise ValidationError(f"todo id not in canonical form: {value!r}")
    return parsed


def _decode_due(raw: Any) -> Optional[datetime]:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise DecodeError(f"column 'due' holds {type(raw).__name__}, expected text")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise DecodeError(f"column 'due' holds unparseable timestamp {raw!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Todo:
    """
    The Todo record.

    Fields:
    - id: server-generated UUID, serialized in canonical string form
    - title: non-empty title set at creation
    - completed: completion flag, always False for records created by the API
    - due: optional timezone-aware due timestamp

    Instances are transient copies: nothing here points back at storage.
    """

    id: UUID
    title: str
    completed: bool
    due: Optional[datetime]

    @classmethod
    def from_partial(cls, partial: Union[TodoCreate, Mapping[str, Any]]) -> "Todo":
        """
        Build a brand-new Todo from client input `{title, due?}`.

        A fresh id is generated and `completed` starts as False.

        Raises:
            ValidationError if title is missing, not a string, or empty, or if
            due is not a valid ISO-8601 timestamp.
        """
        if not isinstance(partial, TodoCreate):
            if not isinstance(partial, Mapping):
                raise ValidationError("todo payload must be a JSON object")
            try:
                partial = TodoCreate.model_validate(dict(partial))
            except PydanticValidationError as e:
                fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
                raise ValidationError(f"invalid todo payload ({fields or 'body'})") from e
        return cls(id=uuid4(), title=partial.title, completed=False, due=partial.due)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Todo":
        """
        Rebuild a Todo from a storage row, reading columns by name.

        Raises:
            DecodeError if a column is missing or holds an unexpected value.
        """
        try:
            raw = {name: row[name] for name in COLUMNS}
        except (KeyError, IndexError) as e:
            raise DecodeError(f"row is missing column {e}") from e

        if not isinstance(raw["id"], str):
            raise DecodeError(f"column 'id' holds {type(raw['id']).__name__}, expected text")
        try:
            todo_id = UUID(raw["id"])
        except ValueError as e:
            raise DecodeError(f"column 'id' holds malformed uuid {raw['id']!r}") from e

        title = raw["title"]
        if not isinstance(title, str):
            raise DecodeError(f"column 'title' holds {type(title).__name__}, expected text")

        completed = raw["completed"]
        # bool is an int subclass; sqlite hands back plain ints
        if isinstance(completed, bool) or completed not in (0, 1):
            raise DecodeError(f"column 'completed' holds {completed!r}, expected 0 or 1")

        return cls(id=todo_id, title=title, completed=bool(completed), due=_decode_due(raw["due"]))

    def to_row(self) -> Dict[str, Any]:
        """Map this record to named statement parameters for the todos table."""
        return {
            "id": str(self.id),
            "title": self.title,
            "completed": 1 if self.completed else 0,
            "due": self.due.isoformat() if self.due else None,
        }
