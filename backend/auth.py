"""
Authentication for TeleGallery.

Sessions are issued by Supabase Auth; this module only verifies them.
"""

from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Cookie, Header, HTTPException, status

from backend import config
from backend.models.user import User

logger = logging.getLogger(__name__)


def decode_jwt(token: str) -> dict:
    """
    Decode and verify a Supabase access token.

    Args:
        token: JWT string to decode

    Returns:
        Decoded payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            config.settings.SUPABASE_JWT_SECRET,
            algorithms=[config.settings.JWT_ALGORITHM],
            audience=config.settings.SUPABASE_JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Session expired",
        ) from e
    except jwt.InvalidTokenError as e:
        logger.info("Rejected session token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid token",
        ) from e


def user_from_token(token: str) -> User:
    """
    Build the current User from a verified access token.

    Raises:
        HTTPException: If the token is invalid or has no subject
    """
    payload = decode_jwt(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid token",
        )
    return User(id=user_id, email=payload.get("email"), role=payload.get("role"))


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Tries the Bearer header first (API calls from the web app), then the
    session cookie (browser redirects such as the login widget callback).

    Args:
        session: Access token from the session cookie
        authorization: Bearer token header

    Returns:
        Current authenticated User

    Raises:
        HTTPException: If authentication fails
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized: No token provided",
            )
        return user_from_token(token)

    if session:
        return user_from_token(session)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized: No token provided",
    )
