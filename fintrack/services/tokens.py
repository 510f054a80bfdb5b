"""Signed session tokens.

Access tokens are stateless and carry the identity claims used by request
handlers. Refresh tokens carry only the user id plus a random ``jti``; the
server keeps the latest one on the user row, which is what makes them
revocable. An access token stays valid until it expires, even after logout.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from fintrack.config import Settings, get_settings, resolve_jwt_secret
from fintrack.core.exceptions import InvalidToken
from fintrack.models.user import User
from fintrack.utils.time import utcnow

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


def _encode(payload: dict[str, Any], lifetime: timedelta, settings: Settings, now: datetime) -> str:
    claims = {**payload, "iat": now, "exp": now + lifetime}
    return jwt.encode(claims, resolve_jwt_secret(settings), algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    user: User,
    *,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    settings = get_settings()
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "type": ACCESS,
    }
    return _encode(payload, lifetime, settings, now or utcnow())


def create_refresh_token(
    user: User,
    *,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    settings = get_settings()
    lifetime = expires_delta or timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    payload = {"id": user.id, "type": REFRESH, "jti": uuid4().hex}
    return _encode(payload, lifetime, settings, now or utcnow())


def issue_token_pair(user: User) -> TokenPair:
    """Sign a fresh access/refresh pair for ``user``."""

    settings = get_settings()
    now = utcnow()
    refresh_expires_at = now + timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return TokenPair(
        access_token=create_access_token(user, now=now),
        refresh_token=create_refresh_token(user, now=now),
        refresh_expires_at=refresh_expires_at,
    )


def verify_token(token: str, expected_type: str | None = None) -> dict[str, Any]:
    """Decode ``token`` and return its claims.

    Raises :class:`InvalidToken` for any signature, expiry, format or type
    problem; the reason is logged at debug level only.
    """

    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            resolve_jwt_secret(settings),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat", "id", "type"]},
        )
    except jwt.InvalidTokenError as exc:
        logger.debug("Token rejected", extra={"reason": type(exc).__name__})
        raise InvalidToken() from exc

    if expected_type is not None and payload.get("type") != expected_type:
        logger.debug("Token rejected", extra={"reason": "wrong_type"})
        raise InvalidToken()
    return payload


__all__ = [
    "ACCESS",
    "REFRESH",
    "TokenPair",
    "create_access_token",
    "create_refresh_token",
    "issue_token_pair",
    "verify_token",
]
