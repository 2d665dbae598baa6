from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .db import SQLiteTodoStore
from .errors import StorageError, TodoServiceError, ValidationError
from .routers import todos as todos_router
from .settings import Settings, get_settings
from .utils import error_body

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "Create, list, fetch and delete Todo items."},
]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The store is opened and its schema created when the app starts, before any
    request is served, and closed on shutdown. Handlers receive it through the
    `get_store` dependency.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = SQLiteTodoStore(settings.sqlite_db_path)
        store.open()
        try:
            store.init_schema()
            app.state.store = store
            yield
        finally:
            store.close()

    app = FastAPI(
        title="Todo Service",
        description="Minimal task-tracking service backed by a single SQLite file.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Malformed JSON or a body missing its title is a plain 400.
        """
        return JSONResponse(status_code=400, content=error_body(ValidationError(), "Request validation failed"))

    @app.exception_handler(TodoServiceError)
    async def service_exception_handler(request: Request, exc: TodoServiceError) -> JSONResponse:
        """
        Map the error taxonomy onto status codes. Storage details are logged,
        never returned.
        """
        if isinstance(exc, StorageError):
            logger.error(
                "Storage failure on %s %s: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc,
            )
            return JSONResponse(status_code=500, content=error_body(StorageError(), exc.public_message))
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, exc.public_message))

    # PUBLIC_INTERFACE
    @app.get("/", summary="Greeting", tags=["health"], response_class=PlainTextResponse)
    async def root() -> str:
        """
        Plain-text greeting; only the 200 status matters.
        """
        return "Hello"

    # PUBLIC_INTERFACE
    @app.get("/health", summary="Health Check", tags=["health"])
    async def health_check(request: Request) -> dict:
        """
        Health check endpoint.

        Returns:
            {"status": "ok"} once the store answers a trivial query.
        """
        await request.app.state.store.ping()
        return {"status": "ok"}

    app.include_router(todos_router.router)
    return app


app = create_app()
