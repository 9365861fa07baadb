"""Access-token verification.

Tokens are issued by the identity service. This service only verifies them
and reads three claims: ``sub`` (user id), ``role`` and ``email_verified``.
"""

from __future__ import annotations

from typing import Any

import jwt

from ecobingo.bingo.types import AuthUser, Role
from ecobingo.config import get_settings


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """Verify and decode a JWT.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or the wrong type.
    """
    settings = get_settings()
    options = {"require": ["sub", "exp"]}
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    token_type = payload.get("type", "access")
    if token_type != expected_type:
        msg = f"Expected token type '{expected_type}', got '{token_type}'"
        raise jwt.InvalidTokenError(msg)

    return payload


def auth_user_from_claims(payload: dict[str, Any]) -> AuthUser:
    try:
        role = Role(str(payload.get("role", Role.USER.value)).upper())
    except ValueError:
        role = Role.USER
    return AuthUser(
        user_id=str(payload["sub"]),
        role=role,
        is_email_verified=bool(payload.get("email_verified", False)),
    )
