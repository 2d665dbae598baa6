"""
Todo service package.

A FastAPI application that creates, lists, fetches and deletes todo records
kept in a single SQLite file. Build the app with `main.create_app()` or run
it with `python -m src.todo_service`.
"""

__version__ = "0.1.0"
