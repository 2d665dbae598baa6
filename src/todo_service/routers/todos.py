from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from ..db import SQLiteTodoStore
from ..errors import NotFound, ValidationError
from ..models import Todo
from ..schemas import ErrorBody, TodoCreate, TodoEnvelope, TodoListEnvelope
from ..utils import todo_envelope, todos_envelope

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)


# PUBLIC_INTERFACE
def get_store(request: Request) -> SQLiteTodoStore:
    """
    Dependency returning the store opened by the application lifespan.
    """
    return request.app.state.store


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListEnvelope,
    summary="List Todos",
    description="Return every stored todo. Order is whatever the store returns.",
    responses={
        200: {"description": "List retrieved successfully"},
        500: {"model": ErrorBody, "description": "Storage failure"},
    },
)
async def list_todos(store: SQLiteTodoStore = Depends(get_store)) -> TodoListEnvelope:
    """
    List all todos.
    """
    todos = await store.list_all()
    return TodoListEnvelope(**todos_envelope(todos))


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Get Todo",
    description="Get a single Todo item by its id.",
    responses={
        200: {"description": "Todo found"},
        404: {"model": ErrorBody, "description": "Todo not found or id malformed"},
    },
)
async def get_todo(todo_id: str, store: SQLiteTodoStore = Depends(get_store)) -> TodoEnvelope:
    """
    Retrieve a single Todo item by its id.
    """
    try:
        todo = await store.find_by_id(todo_id)
    except ValidationError as e:
        # A malformed id can never match a record
        raise NotFound(f"no todo with id {todo_id!r}") from e
    return TodoEnvelope(**todo_envelope(todo))


# PUBLIC_INTERFACE
@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description=(
        "Create a new Todo item. The body is an empty object; the new resource "
        "URL is returned in the Location header."
    ),
    responses={
        201: {"description": "Todo created successfully"},
        400: {"model": ErrorBody, "description": "Missing or invalid title/due"},
        500: {"model": ErrorBody, "description": "Storage failure"},
    },
)
async def create_todo(
    payload: TodoCreate,
    response: Response,
    store: SQLiteTodoStore = Depends(get_store),
) -> dict:
    """
    Create a new Todo.
    """
    todo = Todo.from_partial(payload)
    await store.insert(todo)
    logger.info("Created todo %s", todo.id)
    response.headers["Location"] = f"{router.prefix}/{todo.id}"
    return {}


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by its id.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"model": ErrorBody, "description": "Todo not found or id malformed"},
        500: {"model": ErrorBody, "description": "Storage failure"},
    },
)
async def delete_todo(todo_id: str, store: SQLiteTodoStore = Depends(get_store)) -> Response:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    try:
        await store.delete_by_id(todo_id)
    except ValidationError as e:
        raise NotFound(f"no todo with id {todo_id!r}") from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
