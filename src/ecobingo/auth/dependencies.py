"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ecobingo.auth.jwt import auth_user_from_claims, verify_token
from ecobingo.bingo.errors import EmailNotVerified, Forbidden, Unauthenticated
from ecobingo.bingo.types import AuthUser

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> AuthUser:
    """Verify the bearer token and return the caller. Raises UNAUTHENTICATED."""
    if credentials is None:
        raise Unauthenticated
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise Unauthenticated(f"Invalid or expired token: {e}") from e
    return auth_user_from_claims(payload)


async def get_verified_user(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Same as get_current_user, but the caller's email must be verified."""
    if not user.is_email_verified:
        raise EmailNotVerified
    return user


async def get_admin_user(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Admin callers only. Email verification is not required."""
    if not user.is_admin:
        raise Forbidden("Admin role required")
    return user
