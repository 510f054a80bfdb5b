"""Bearer-token authentication dependency for protected routes."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from fintrack.core.exceptions import AuthenticationError, InvalidToken
from fintrack.db import get_db
from fintrack.models.user import User
from fintrack.services.tokens import ACCESS, verify_token


@dataclass(frozen=True)
class CurrentUser:
    """Identity attached to an authenticated request; never carries secrets."""

    id: int
    email: str
    first_name: str
    last_name: str


def _extract_bearer(authorization: str | None = Header(default=None)) -> str | None:
    """Return the token from ``Authorization: Bearer <token>``."""

    if authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1].strip()
        return token or None
    return None


def get_current_user(
    db: Session = Depends(get_db),
    token: str | None = Depends(_extract_bearer),
) -> CurrentUser:
    """Validate the access token and make sure its user still exists and is active."""

    if not token:
        raise AuthenticationError("Access token is required")

    # Signature, expiry and type problems all surface as the same 401.
    payload = verify_token(token, expected_type=ACCESS)

    user_id = payload.get("id")
    user = db.get(User, user_id) if isinstance(user_id, int) else None
    if user is None or not user.is_active:
        raise InvalidToken("User not found or account deactivated")

    return CurrentUser(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
    )


__all__ = ["CurrentUser", "get_current_user"]
