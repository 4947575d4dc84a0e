"""
JWT session helpers for Supabase access tokens
"""
from datetime import datetime, timedelta
from jose import jwt
from config import get_settings

settings = get_settings()


def create_access_token(user_id: str, email: str = "", expire_minutes: int = 60) -> str:
    """
    Create a Supabase-compatible access token.

    Supabase Auth issues the real tokens; this is used by scripts and tests
    that need to call authenticated endpoints.
    """
    now = datetime.utcnow()

    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": now + timedelta(minutes=expire_minutes),
        "iat": now
    }

    return jwt.encode(
        payload,
        settings.supabase_jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a Supabase access token

    Returns:
        Decoded payload dict

    Raises:
        jose.JWTError if token invalid/expired/wrong audience
    """
    payload = jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience
    )

    return payload
