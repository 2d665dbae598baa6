import pytest
from fastapi.testclient import TestClient

from src.todo_service.main import create_app
from src.todo_service.settings import Settings


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "todos.db")


@pytest.fixture
def client(db_path):
    # Entering the client runs the lifespan, which opens the store
    app = create_app(Settings(sqlite_db_path=db_path))
    with TestClient(app) as c:
        yield c
