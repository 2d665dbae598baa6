from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_HOST: interface to bind. Default '0.0.0.0'
    - TODO_PORT: port to listen on. Default 8080
    - SQLITE_DB_PATH: path to sqlite db file. Default './db.sqlite'
    - LOG_LEVEL: root log level name. Default 'INFO'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    """

    host: str = "0.0.0.0"
    port: int = 8080
    sqlite_db_path: str = "./db.sqlite"
    log_level: str = "INFO"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])


def _env(name: str, default: str) -> str:
    # An exported-but-empty variable counts as unset
    return os.environ.get(name) or default


def _parse_port(value: str, default: int) -> int:
    try:
        port = int(value.strip())
    except ValueError:
        return default
    if not (0 < port < 65536):
        return default
    return port


def _split_origins(raw: str) -> List[str]:
    """'*' or a comma-separated origin list; blank entries are dropped."""
    origins = [part.strip() for part in raw.split(",")]
    return [o for o in origins if o]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    defaults = Settings()
    log_level = _env("LOG_LEVEL", defaults.log_level).strip().upper()

    return Settings(
        host=_env("TODO_HOST", defaults.host).strip(),
        port=_parse_port(_env("TODO_PORT", str(defaults.port)), defaults.port),
        sqlite_db_path=_env("SQLITE_DB_PATH", defaults.sqlite_db_path).strip(),
        log_level=log_level,
        cors_allow_origins=_split_origins(_env("CORS_ALLOW_ORIGINS", "*")),
    )
