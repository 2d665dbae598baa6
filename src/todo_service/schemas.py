from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from .models import Todo

# Shared type for incoming due values which can be a date, datetime, or ISO8601 string
DueInput = Union[date, datetime, str]


def _parse_due(value: Optional[DueInput]) -> Optional[datetime]:
    """
    Internal helper to normalize a due value into a timezone-aware datetime.
    - Strings are parsed via datetime.fromisoformat; a bare date means 00:00.
    - A date (not datetime) is promoted to a datetime at 00:00.
    - Naive datetimes are taken to be UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        s = value.strip()
        # fromisoformat only learned the 'Z' suffix in 3.11
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid due format. Use an ISO8601 timestamp (e.g., '2025-01-31T13:45:00Z')."
                ) from e
            parsed = datetime(d.year, d.month, d.day)
    else:
        raise ValueError("Invalid type for due; expected an ISO8601 string or null.")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Body of POST /todos.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "buy milk",
                "due": "2025-02-01T09:00:00Z",
            }
        }
    )

    title: str = Field(..., description="Title of the todo item", min_length=1, strict=True)
    due: Optional[datetime] = Field(
        default=None,
        description="Optional due timestamp (ISO8601). Naive timestamps are read as UTC",
    )

    @field_validator("due", mode="before")
    @classmethod
    def parse_due(cls, v: Optional[DueInput]) -> Optional[datetime]:
        """
        Normalize due from str/date/datetime to an aware datetime.
        """
        return _parse_due(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    A Todo as returned by the API.
    """

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "67e55044-10b1-426f-9247-bb680e5fe0c8",
                "title": "buy milk",
                "completed": False,
                "due": None,
            }
        },
    )

    id: UUID = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Title of the todo item")
    completed: bool = Field(..., description="Completion status flag")
    due: Optional[datetime] = Field(default=None, description="Due timestamp as ISO8601, or null")

    @classmethod
    def from_todo(cls, todo: "Todo") -> "TodoOut":
        return cls.model_validate(todo)


# PUBLIC_INTERFACE
class TodoEnvelope(BaseModel):
    """Envelope for single-record responses."""

    todo: TodoOut


# PUBLIC_INTERFACE
class TodoListEnvelope(BaseModel):
    """Envelope for list responses."""

    todos: List[TodoOut] = Field(..., description="Every stored todo, in no particular order")


# PUBLIC_INTERFACE
class ErrorBody(BaseModel):
    """Minimal body returned alongside 4xx/5xx status codes."""

    error: str = Field(..., description="Error class name")
    message: str = Field(..., description="Short human-readable message")
