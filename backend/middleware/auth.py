"""
Authentication dependencies

Tokens are issued by Supabase Auth; this service only verifies them.
"""

from fastapi import Request, HTTPException
from jose import JWTError
from typing import Optional

from .jwt_session import decode_access_token


class UserPublic:
    """Minimal user info from JWT token"""
    def __init__(self, user_id: str, email: Optional[str] = None):
        self.user_id = user_id
        self.email = email


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get("access_token")


async def get_current_user_optional(request: Request) -> Optional[UserPublic]:
    """
    Get current user from JWT token (optional - doesn't raise if not authenticated)

    Looks at the Authorization bearer header first, then the access_token cookie.

    Returns:
        UserPublic if authenticated, None otherwise
    """
    token = _extract_token(request)

    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except JWTError:
        return None

    if not payload.get("sub"):
        return None

    return UserPublic(
        user_id=payload["sub"],
        email=payload.get("email")
    )


async def get_current_user(request: Request) -> UserPublic:
    """
    Get current user (required - raises 401 if not authenticated)

    Returns:
        UserPublic

    Raises:
        HTTPException 401 if not authenticated
    """
    user = await get_current_user_optional(request)

    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")

    return user
