"""
slrp_economy.api.deps — FastAPI dependency injection
=====================================================

Bearer tokens are HS256 JWTs issued by the site's auth layer; ``sub`` is
the caller's profile id.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from slrp_economy.config import EconomyConfig, load_config
from slrp_economy.database.engine import create_db_engine, get_session
from slrp_economy.errors import AuthError, AuthorizationError
from slrp_economy.services import identity

_WEAK_SECRETS = frozenset({
    "slrp-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()
JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE") or None


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> EconomyConfig:
    return load_config()


def decode_token(token: str) -> dict:
    """Verify *token* and return its claims.  Raises :class:`AuthError`."""
    try:
        if JWT_AUDIENCE:
            payload = jwt.decode(
                token, JWT_SECRET, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE,
            )
        else:
            payload = jwt.decode(
                token, JWT_SECRET, algorithms=[JWT_ALGORITHM],
                options={"verify_aud": False},
            )
    except InvalidTokenError:
        raise AuthError("Unauthorized")
    if not payload.get("sub"):
        raise AuthError("Unauthorized")
    return payload


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Validate the bearer JWT and return the caller's profile id."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Unauthorized")
    return str(decode_token(authorization.split(" ", 1)[1])["sub"])


def get_current_owner(
    user_id: Annotated[str, Depends(get_current_user)],
    engine: Annotated[Engine, Depends(get_engine)],
) -> str:
    """Like :func:`get_current_user`, but the caller must hold the owner role."""
    with get_session(engine) as session:
        if not identity.is_owner(session, user_id):
            raise AuthorizationError("Unauthorized")
    return user_id
