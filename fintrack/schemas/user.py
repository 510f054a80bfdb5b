"""User and session schemas."""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field, StringConstraints, field_validator

from fintrack.models.user import Currency
from fintrack.utils.passwords import BCRYPT_MAX_BYTES, fits_bcrypt
from fintrack.utils.time import ensure_utc

from .common import CamelModel

PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


def _check_password_bytes(value: str) -> str:
    if not fits_bcrypt(value):
        raise ValueError(f"Password must not exceed {BCRYPT_MAX_BYTES} bytes")
    return value


Password = Annotated[str, StringConstraints(min_length=6, max_length=BCRYPT_MAX_BYTES), AfterValidator(_check_password_bytes)]


class UserRegister(CamelModel):
    email: EmailStr
    password: Password
    first_name: PersonName
    last_name: PersonName
    currency: Currency


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class ProfileUpdate(CamelModel):
    """Editable profile fields. Unknown keys such as ``email`` or ``password`` are ignored."""

    first_name: PersonName | None = None
    last_name: PersonName | None = None
    currency: Currency | None = None
    profile_image: str | None = Field(default=None, max_length=500)


class PasswordChange(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: Password


class UserRead(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    currency: Currency
    profile_image_url: str | None = Field(default=None, alias="profileImage")
    is_active: bool
    last_login_at: datetime | None = Field(default=None, alias="lastLogin")
    created_at: datetime
    updated_at: datetime

    @field_validator("last_login_at", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class UserProfileRead(UserRead):
    full_name: str


class TokenPairRead(CamelModel):
    access_token: str
    refresh_token: str


class AuthSessionRead(TokenPairRead):
    user: UserRead
