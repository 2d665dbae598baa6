"""
Utility script to generate and write the OpenAPI schema of the todo service.

The schema is built from a freshly created application (no store is opened)
and written as pretty JSON, by default to interfaces/openapi.json next to
the src/ directory, so clients can consume it without running the server.

Usage:
    python -m src.todo_service.generate_openapi [OUT_PATH]
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from .main import create_app, openapi_tags


def _merge_tag_metadata(schema: Dict[str, Any]) -> None:
    """Append descriptions for the health and todos tags unless the schema has them."""
    tags: List[Dict[str, Any]] = list(schema.get("tags") or [])
    known = {t["name"] for t in tags if isinstance(t, dict) and "name" in t}
    tags.extend(t for t in openapi_tags if t["name"] not in known)
    if tags:
        schema["tags"] = tags


def _default_out_path() -> str:
    # <root>/src/todo_service/generate_openapi.py -> <root>/interfaces/openapi.json
    src_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(os.path.dirname(src_dir), "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Generate the OpenAPI schema file and return the written file path."""
    out_path = out_path or _default_out_path()
    schema = create_app().openapi()
    _merge_tag_metadata(schema)

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    return out_path


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    path = generate_openapi(args[0] if args else None)
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
