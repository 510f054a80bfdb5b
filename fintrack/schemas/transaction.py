"""Transaction schemas."""
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import AfterValidator, Field, StringConstraints, computed_field, field_serializer, field_validator

from fintrack.models.transaction import TransactionType
from fintrack.utils.time import ensure_utc, parse_iso_utc

from .common import CamelModel

CENT = Decimal("0.01")
# Largest value a Numeric(12, 2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")


def _quantize_amount(value: Decimal) -> Decimal:
    """Round to cents; only the rounded value has to be positive."""

    if value <= 0:
        raise ValueError("Amount must be greater than 0")
    if value > MAX_AMOUNT:
        raise ValueError(f"Amount must not exceed {MAX_AMOUNT}")
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded <= 0:
        raise ValueError("Amount must be greater than 0")
    return rounded


Amount = Annotated[Decimal, AfterValidator(_quantize_amount)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Category = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=30)]


def _coerce_datetime(value):
    if isinstance(value, str):
        return parse_iso_utc(value)
    if isinstance(value, datetime):
        return ensure_utc(value)
    return value


class TransactionCreate(CamelModel):
    amount: Amount
    type: TransactionType
    description: Description
    category: Category
    date: datetime | None = None
    tags: list[Tag] = Field(default_factory=list, max_length=20)
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        """Accept date-only strings and normalise everything to UTC."""

        return _coerce_datetime(value)


class TransactionUpdate(CamelModel):
    """Partial update; omitted fields keep their stored value."""

    amount: Amount | None = None
    type: TransactionType | None = None
    description: Description | None = None
    category: Category | None = None
    date: datetime | None = None
    tags: list[Tag] | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        return _coerce_datetime(value)


class TransactionRead(CamelModel):
    id: int
    user_id: int
    amount: Decimal
    type: TransactionType
    description: str
    date: datetime
    category: str
    tags: list[str]
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @computed_field(alias="formattedAmount")
    @property
    def formatted_amount(self) -> float:
        signed = -self.amount if self.type == TransactionType.EXPENSE else self.amount
        return float(signed)

    @field_serializer("amount", when_used="json")
    def _serialize_amount(self, value: Decimal) -> float:
        return float(value)
