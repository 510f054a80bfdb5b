"""User accounts and the refresh-token session lifecycle.

The refresh-token slot on a user row moves between three states:

* no session: ``refresh_token`` is NULL
* active session: token set and ``refresh_token_expires_at`` in the future
* expired: token set but expiry passed; treated exactly like no session

Login and refresh overwrite the slot (one session per user), logout and
deactivation clear it.
"""
from __future__ import annotations

import logging
from datetime import datetime

from pydantic.alias_generators import to_camel
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack.core.exceptions import (
    AccountDeactivated,
    EmailAlreadyExists,
    IncorrectCurrentPassword,
    InvalidCredentials,
    InvalidOrExpiredRefreshToken,
    InvalidToken,
    UserNotFound,
    ValidationError,
)
from fintrack.models.user import User
from fintrack.schemas.user import ProfileUpdate, UserRegister
from fintrack.services.tokens import REFRESH, TokenPair, issue_token_pair, verify_token
from fintrack.utils.masking import mask_email
from fintrack.utils.passwords import hash_password, verify_password, verify_password_timing_safe
from fintrack.utils.time import utcnow

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    """Exact (case-sensitive) email lookup."""

    return db.scalars(select(User).where(User.email == email).limit(1)).first()


def email_exists(db: Session, email: str) -> bool:
    return db.scalars(select(User.id).where(User.email == email).limit(1)).first() is not None


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


def _store_refresh_token(user: User, pair: TokenPair) -> None:
    user.refresh_token = pair.refresh_token
    user.refresh_token_expires_at = pair.refresh_expires_at


def register(db: Session, payload: UserRegister) -> tuple[User, TokenPair]:
    """Create an account and open its first session in a single commit."""

    if email_exists(db, payload.email):
        raise EmailAlreadyExists()

    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        currency=payload.currency,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        # Lost a race against a concurrent registration for the same email.
        db.rollback()
        raise EmailAlreadyExists() from exc

    pair = issue_token_pair(user)
    _store_refresh_token(user, pair)
    db.commit()
    db.refresh(user)

    logger.info("User registered", extra={"user_id": user.id, "email": mask_email(user.email)})
    return user, pair


def login(db: Session, email: str, password: str) -> tuple[User, TokenPair]:
    """Check credentials and rotate the user's session.

    Unknown email and wrong password raise the same :class:`InvalidCredentials`.
    The active flag is only checked once the password matched.
    """

    user = get_user_by_email(db, email)
    is_valid, new_hash = verify_password_timing_safe(password, user.password_hash if user else None)
    if user is None or not is_valid:
        logger.info("Login failed", extra={"email": mask_email(email)})
        raise InvalidCredentials()

    if not user.is_active:
        logger.info("Login refused for deactivated account", extra={"user_id": user.id})
        raise AccountDeactivated()

    if new_hash:
        user.password_hash = new_hash

    pair = issue_token_pair(user)
    _store_refresh_token(user, pair)
    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)

    logger.info("User logged in", extra={"user_id": user.id})
    return user, pair


def _clear_refresh_token(db: Session, token: str) -> int:
    stmt = (
        update(User)
        .where(User.refresh_token == token)
        .values(refresh_token=None, refresh_token_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def refresh_session(db: Session, refresh_token: str | None) -> TokenPair:
    """Exchange a stored, unexpired refresh token for a new pair (rotation)."""

    if not refresh_token:
        raise InvalidOrExpiredRefreshToken("Refresh token is required")

    now = utcnow()
    user = db.scalars(
        select(User)
        .where(
            User.refresh_token == refresh_token,
            User.refresh_token_expires_at > now,
            User.is_active.is_(True),
        )
        .limit(1)
    ).first()
    if user is None:
        raise InvalidOrExpiredRefreshToken()

    try:
        verify_token(refresh_token, expected_type=REFRESH)
    except InvalidToken as exc:
        _clear_refresh_token(db, refresh_token)
        db.commit()
        logger.warning("Stored refresh token failed verification; slot cleared", extra={"user_id": user.id})
        raise InvalidOrExpiredRefreshToken("Invalid refresh token") from exc

    pair = issue_token_pair(user)
    # Only rotate if nobody else rotated the slot since we read it.
    stmt = (
        update(User)
        .where(User.id == user.id, User.refresh_token == refresh_token)
        .values(refresh_token=pair.refresh_token, refresh_token_expires_at=pair.refresh_expires_at)
        .execution_options(synchronize_session=False)
    )
    if db.execute(stmt).rowcount != 1:
        logger.info("Refresh token rotated concurrently", extra={"user_id": user.id})
        raise InvalidOrExpiredRefreshToken()
    db.commit()

    logger.info("Session refreshed", extra={"user_id": user.id})
    return pair


def logout(db: Session, refresh_token: str | None) -> None:
    """Revoke ``refresh_token`` if some user holds it. Never reports a mismatch."""

    if not refresh_token:
        return
    cleared = _clear_refresh_token(db, refresh_token)
    db.commit()
    logger.info("Logout", extra={"revoked": bool(cleared)})


def get_profile(db: Session, user_id: int) -> User:
    return _get_user_or_404(db, user_id)


def update_profile(db: Session, user_id: int, payload: ProfileUpdate) -> User:
    """Apply editable profile fields; email and password have dedicated flows."""

    changes = payload.model_dump(exclude_unset=True)
    required = ("first_name", "last_name", "currency")
    nulled = [field for field in required if field in changes and changes[field] is None]
    if nulled:
        raise ValidationError(
            "Validation failed",
            details=[{"field": to_camel(field), "message": "may not be null"} for field in nulled],
        )

    user = _get_user_or_404(db, user_id)
    for field in required:
        if field in changes:
            setattr(user, field, changes[field])
    if "profile_image" in changes:
        user.profile_image_url = changes["profile_image"]

    db.commit()
    db.refresh(user)
    logger.info("Profile updated", extra={"user_id": user.id, "fields": sorted(changes)})
    return user


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    """Replace the password hash.

    Existing refresh tokens stay valid; see DESIGN.md for the tradeoff.
    """

    user = _get_user_or_404(db, user_id)
    is_valid, _ = verify_password(current_password, user.password_hash)
    if not is_valid:
        raise IncorrectCurrentPassword()

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed", extra={"user_id": user.id})


def deactivate(db: Session, user_id: int) -> User:
    """Soft-delete the account and end its session in one statement."""

    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(is_active=False, refresh_token=None, refresh_token_expires_at=None, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if db.execute(stmt).rowcount != 1:
        raise UserNotFound()
    db.commit()

    user = db.get(User, user_id)
    db.refresh(user)
    logger.info("Account deactivated", extra={"user_id": user_id})
    return user


def purge_expired_refresh_tokens(db: Session, now: datetime | None = None) -> int:
    """Clear refresh-token slots whose expiry has passed. Returns the number cleared."""

    stmt = (
        update(User)
        .where(User.refresh_token.is_not(None), User.refresh_token_expires_at <= (now or utcnow()))
        .values(refresh_token=None, refresh_token_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    cleared = db.execute(stmt).rowcount
    db.commit()
    return cleared


__all__ = [
    "change_password",
    "deactivate",
    "email_exists",
    "get_profile",
    "get_user_by_email",
    "login",
    "logout",
    "purge_expired_refresh_tokens",
    "refresh_session",
    "register",
    "update_profile",
]
