from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - SQLITE_TIMEOUT: seconds to wait on a locked sqlite database. Default 5.0
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SEED_USERS: comma-separated 'id:password' pairs registered at startup
    - LOG_LEVEL: logging level name. Default 'INFO'
    - HOST / PORT: bind address for `python -m todo_api`. Default 127.0.0.1:8000
    """

    persistence_backend: str = "memory"
    sqlite_db_path: str = "./data/todos.db"
    sqlite_timeout: float = 5.0
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    seed_users: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_float(value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_users(users_value: str) -> Dict[str, str]:
    """
    Parse 'alice:secret,bob:hunter2' into {'alice': 'secret', 'bob': 'hunter2'}.

    Entries without a colon or with an empty id are skipped. The password is
    everything after the first colon and is kept verbatim.
    """
    users: Dict[str, str] = {}
    for entry in users_value.split(","):
        user_id, sep, password = entry.strip().partition(":")
        if sep and user_id:
            users[user_id] = password
    return users


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        sqlite_timeout=_parse_float(_get_env("SQLITE_TIMEOUT", "5.0"), 5.0),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        seed_users=_parse_users(_get_env("SEED_USERS", "")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        host=_get_env("HOST", "127.0.0.1").strip(),
        port=_parse_int(_get_env("PORT", "8000"), 8000),
    )


# PUBLIC_INTERFACE
def configure_logging(level: str) -> None:
    """Configure root logging once; later calls only adjust the level."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)
