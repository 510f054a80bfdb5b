"""Declarative base and the audit columns shared by fintrack tables."""
from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from fintrack.utils.time import utcnow


class Base(DeclarativeBase):
    # Timestamps are always stored timezone-aware and written in UTC.
    type_annotation_map = {datetime: DateTime(timezone=True)}


class AuditedMixin:
    """Surrogate key plus creation and last-change timestamps."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)
