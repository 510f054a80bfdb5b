"""Shared schema building blocks: camelCase base model and response envelope."""
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model exchanging camelCase keys on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class Envelope(CamelModel, Generic[T]):
    """``{success, message?, data?, pagination?}`` wrapper used by every endpoint."""

    success: bool = True
    message: str | None = None
    data: T | None = None
    pagination: Pagination | None = None
