"""Minimal auth dependency.

The identity provider is external; this only turns a bearer token into the
traveler's stable user id. The token is the user id itself. When no header is
sent, the configured ``initial_auth_token`` bootstraps the session.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from backend.app.config import Settings, get_settings
from backend.app.db.context import RequestContext


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_context(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Extract request context from authorization header.

    Args:
        settings: Application settings (for the bootstrap token)
        authorization: Authorization header (e.g., "Bearer <user_id>")

    Returns:
        RequestContext with user_id

    Raises:
        HTTPException: If authorization is missing or invalid
    """
    if not authorization:
        if settings.initial_auth_token:
            return RequestContext(user_id=settings.initial_auth_token)
        raise _unauthorized("Missing authorization header")

    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid authorization header format")

    token = authorization[7:].strip()  # Strip "Bearer "

    # User ids become document path segments
    if not token or "/" in token:
        raise _unauthorized("Invalid bearer token")

    return RequestContext(user_id=token)
