"""Account, session and profile endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fintrack.db import get_db
from fintrack.schemas import (
    AuthSessionRead,
    Envelope,
    PasswordChange,
    ProfileUpdate,
    RefreshTokenRequest,
    TokenPairRead,
    UserLogin,
    UserProfileRead,
    UserRead,
    UserRegister,
)
from fintrack.security import CurrentUser, get_current_user
from fintrack.services import users as users_service

router = APIRouter(prefix="/users", tags=["users"])


def _session_payload(user, pair) -> AuthSessionRead:
    return AuthSessionRead(
        user=UserRead.model_validate(user),
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.post(
    "/register",
    response_model=Envelope[AuthSessionRead],
    status_code=status.HTTP_201_CREATED,
)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    """Create an account and return it with a fresh token pair."""

    user, pair = users_service.register(db, payload)
    return Envelope(message="User registered successfully", data=_session_payload(user, pair))


@router.post("/login", response_model=Envelope[AuthSessionRead])
def login(payload: UserLogin, db: Session = Depends(get_db)):
    user, pair = users_service.login(db, payload.email, payload.password)
    return Envelope(message="Login successful", data=_session_payload(user, pair))


@router.post("/refresh-token", response_model=Envelope[TokenPairRead])
def refresh_token(payload: RefreshTokenRequest, db: Session = Depends(get_db)):
    """Rotate the refresh token; the presented one stops working."""

    pair = users_service.refresh_session(db, payload.refresh_token)
    return Envelope(
        message="Token refreshed successfully",
        data=TokenPairRead(access_token=pair.access_token, refresh_token=pair.refresh_token),
    )


@router.post("/logout", response_model=Envelope[None])
def logout(payload: RefreshTokenRequest, db: Session = Depends(get_db)):
    users_service.logout(db, payload.refresh_token)
    return Envelope(message="Logout successful")


@router.get("/profile", response_model=Envelope[UserProfileRead])
def get_profile(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    user = users_service.get_profile(db, current_user.id)
    return Envelope(data=UserProfileRead.model_validate(user))


@router.put("/profile", response_model=Envelope[UserRead])
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Update name, currency or profile image; other keys are ignored."""

    user = users_service.update_profile(db, current_user.id, payload)
    return Envelope(message="Profile updated successfully", data=UserRead.model_validate(user))


@router.put("/profile/password", response_model=Envelope[None])
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    users_service.change_password(db, current_user.id, payload.current_password, payload.new_password)
    return Envelope(message="Password changed successfully")


@router.delete("/profile", response_model=Envelope[UserRead])
def deactivate_account(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Soft-delete the caller's account and revoke its refresh token."""

    user = users_service.deactivate(db, current_user.id)
    return Envelope(message="Account deactivated successfully", data=UserRead.model_validate(user))
