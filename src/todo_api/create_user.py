"""
Utility script to register a user in the configured storage backend.

Users are read-only once created; there is no HTTP route for registration,
so accounts for the SQLite backend are provisioned with this script.

Usage:
    PERSISTENCE_BACKEND=sqlite python -m todo_api.create_user alice s3cret

Notes:
- Exits with status 1 and prints the conflict message when the id is taken.
- With the in-memory backend the user only lives as long as this process;
  use SEED_USERS for that backend instead.
"""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .errors import AppError
from .repositories import Backend, get_backend
from .settings import configure_logging, get_settings


# PUBLIC_INTERFACE
def create_user(backend: Backend, user_id: str, password: str) -> None:
    """
    Create a user inside a transaction.

    Raises:
        ConflictError: if the user id already exists.
    """
    with backend.database.transaction() as session:
        backend.users.create(session, user_id, password)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m todo_api.create_user", description="Register a todo API user.")
    parser.add_argument("user_id", help="identifier used before the colon in the Authorization header")
    parser.add_argument("password", help="secret used after the colon in the Authorization header")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    backend = get_backend(settings)
    try:
        create_user(backend, args.user_id, args.password)
    except AppError as exc:
        print(exc.detail, file=sys.stderr)
        return 1
    print(f"Created user {args.user_id} in {backend.name} backend")
    return 0


if __name__ == "__main__":
    sys.exit(main())
