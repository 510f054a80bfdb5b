"""User model."""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Enum as SqlEnum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditedMixin, Base


class Currency(str, PyEnum):
    """Currencies a user can pick as display preference."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"
    CHF = "CHF"


class User(AuditedMixin, Base):
    """Account holder and owner of the refresh-token slot.

    ``refresh_token`` holds at most one live refresh token; it is overwritten on
    every login/refresh and cleared on logout or deactivation.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    currency: Mapped[Currency] = mapped_column(SqlEnum(Currency), default=Currency.INR, nullable=False)
    profile_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    refresh_token: Mapped[str | None] = mapped_column(String(512), nullable=True, index=True)
    refresh_token_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    transactions = relationship("Transaction", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
