from __future__ import annotations

import logging
from typing import Optional, Tuple

from fastapi import Header, Request

from .errors import UnauthorizedError
from .repositories import Backend, Session, UserRepository

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def parse_credentials(header: Optional[str]) -> Tuple[str, str]:
    """
    Split an ``Authorization`` header of the form ``identifier:secret``.

    The secret is everything after the first colon. This is not HTTP Basic:
    there is no scheme prefix and no base64.

    Raises:
        UnauthorizedError: if the header is missing or has no colon.
    """
    if not header:
        raise UnauthorizedError("invalid authentication")
    user_id, sep, password = header.partition(":")
    if not sep:
        raise UnauthorizedError("invalid authentication")
    return user_id, password


# PUBLIC_INTERFACE
def authenticate(session: Session, users: UserRepository, header: Optional[str]) -> str:
    """
    Resolve the caller's identity from the Authorization header.

    Returns:
        The authenticated user id.

    Raises:
        UnauthorizedError: malformed header, unknown user or wrong password.
        InternalError: the user store failed; this is never reported as 401.
    """
    user_id, password = parse_credentials(header)
    if not users.authenticate(session, user_id, password):
        logger.info("Rejected credentials for user %s", user_id)
        raise UnauthorizedError("user not found or invalid password")
    return user_id


# PUBLIC_INTERFACE
def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> str:
    """
    FastAPI dependency returning the authenticated user id.

    Usage:
        @router.get("/todos")
        def list_todos(user_id: str = Depends(get_current_user)): ...
    """
    backend: Backend = request.app.state.backend
    # fail fast on a malformed header without opening a session
    parse_credentials(authorization)
    with backend.database.session() as session:
        return authenticate(session, backend.users, authorization)
