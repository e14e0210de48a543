"""
Bearer-token authentication for the admin endpoints.

The token is the authenticated user's UUID. The resolved id is handed to the
admin service explicitly; nothing downstream reads it from ambient state
except the logging context.
"""

from typing import Optional
from uuid import UUID

from fastapi import Header

from services.common.http_errors import AuthError, ErrorCode
from services.common.logging_config import user_id_var

BEARER_SCHEME = "Bearer"


def parse_bearer_token(authorization: Optional[str]) -> UUID:
    if not authorization:
        raise AuthError("Authorization token is required")
    scheme, _, token = authorization.partition(" ")
    if scheme != BEARER_SCHEME:
        raise AuthError("Authorization token is required")

    token = token.strip()
    if not token:
        raise AuthError(
            "Authorization token cannot be empty", code=ErrorCode.TOKEN_INVALID
        )
    try:
        return UUID(token)
    except ValueError:
        raise AuthError(
            "Authorization token must be a valid UUID", code=ErrorCode.TOKEN_INVALID
        )


async def get_authenticated_user_id(
    authorization: Optional[str] = Header(default=None),
) -> UUID:
    """FastAPI dependency resolving the caller's user id from the bearer token."""
    user_id = parse_bearer_token(authorization)
    user_id_var.set(str(user_id))
    return user_id
