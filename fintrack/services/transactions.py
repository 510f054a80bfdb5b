"""Transaction CRUD and filtered, paginated listings.

Every lookup is scoped to the owning user: a transaction that belongs to
someone else is reported exactly like one that does not exist.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import ColumnElement, asc, desc, func, select
from sqlalchemy.orm import Session

from fintrack.core.exceptions import TransactionNotFound, ValidationError
from fintrack.models.transaction import Transaction, TransactionType
from fintrack.schemas.common import Pagination
from fintrack.schemas.transaction import TransactionCreate, TransactionUpdate
from fintrack.utils.time import utcnow

logger = logging.getLogger(__name__)

# Public sort keys (camelCase, as sent by clients) mapped to columns.
SORTABLE_FIELDS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "category": Transaction.category,
    "type": Transaction.type,
    "description": Transaction.description,
    "createdAt": Transaction.created_at,
}
SORT_ORDERS = ("asc", "desc")


@dataclass
class TransactionQuery:
    """Listing options; every filter is optional and they combine with AND."""

    page: int = 1
    limit: int = 10
    type: TransactionType | None = None
    category: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None
    sort_by: str = "date"
    sort_order: str = "desc"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def date_range_conditions(start: datetime | None, end: datetime | None) -> list[ColumnElement[bool]]:
    """Inclusive ``date`` bounds shared with the analytics queries."""

    conditions: list[ColumnElement[bool]] = []
    if start is not None:
        conditions.append(Transaction.date >= start)
    if end is not None:
        conditions.append(Transaction.date <= end)
    return conditions


def _filter_conditions(user_id: int, query: TransactionQuery) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = [Transaction.user_id == user_id]
    if query.type is not None:
        conditions.append(Transaction.type == query.type)
    if query.category:
        conditions.append(Transaction.category == query.category)
    conditions.extend(date_range_conditions(query.start_date, query.end_date))
    if query.search:
        pattern = f"%{_escape_like(query.search)}%"
        conditions.append(Transaction.description.ilike(pattern, escape="\\"))
    return conditions


def list_transactions(
    db: Session, user_id: int, query: TransactionQuery
) -> tuple[list[Transaction], Pagination]:
    """Return one page of the user's filtered transactions plus pagination info."""

    column = SORTABLE_FIELDS.get(query.sort_by)
    if column is None:
        raise ValidationError(
            "Invalid sort field",
            details=[{"field": "sortBy", "message": f"must be one of {sorted(SORTABLE_FIELDS)}"}],
        )
    if query.sort_order not in SORT_ORDERS:
        raise ValidationError(
            "Invalid sort order",
            details=[{"field": "sortOrder", "message": "must be 'asc' or 'desc'"}],
        )

    direction = desc if query.sort_order == "desc" else asc
    conditions = _filter_conditions(user_id, query)

    total = db.scalar(select(func.count()).select_from(Transaction).where(*conditions)) or 0
    stmt = (
        select(Transaction)
        .where(*conditions)
        # id breaks ties so page boundaries are stable.
        .order_by(direction(column), direction(Transaction.id))
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
    )
    items = list(db.scalars(stmt))

    pagination = Pagination(
        page=query.page,
        limit=query.limit,
        total=total,
        pages=math.ceil(total / query.limit),
    )
    logger.debug(
        "Transactions listed",
        extra={"user_id": user_id, "count": len(items), "total": total},
    )
    return items, pagination


def get_transaction(db: Session, transaction_id: int, user_id: int) -> Transaction:
    stmt = select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
    transaction = db.scalars(stmt).first()
    if transaction is None:
        raise TransactionNotFound()
    return transaction


def create_transaction(db: Session, user_id: int, payload: TransactionCreate) -> Transaction:
    transaction = Transaction(
        user_id=user_id,
        amount=payload.amount,
        type=payload.type,
        description=payload.description,
        category=payload.category,
        date=payload.date or utcnow(),
        tags=list(payload.tags),
        notes=payload.notes,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)

    logger.info(
        "Transaction created",
        extra={
            "user_id": user_id,
            "transaction_id": transaction.id,
            "type": transaction.type.value,
            "category": transaction.category,
        },
    )
    return transaction


def update_transaction(
    db: Session, transaction_id: int, user_id: int, payload: TransactionUpdate
) -> Transaction:
    """Apply the provided fields; ownership cannot change through this path."""

    transaction = get_transaction(db, transaction_id, user_id)
    changes = payload.model_dump(exclude_unset=True)

    required = ("amount", "type", "description", "category", "date")
    nulled = [field for field in required if field in changes and changes[field] is None]
    if nulled:
        raise ValidationError(
            "Validation failed",
            details=[{"field": field, "message": "may not be null"} for field in nulled],
        )

    for field, value in changes.items():
        if field == "tags":
            value = list(value or [])
        setattr(transaction, field, value)

    db.commit()
    db.refresh(transaction)
    logger.info(
        "Transaction updated",
        extra={"user_id": user_id, "transaction_id": transaction.id, "fields": sorted(changes)},
    )
    return transaction


def delete_transaction(db: Session, transaction_id: int, user_id: int) -> Transaction:
    """Permanently remove the transaction and return its last state."""

    transaction = get_transaction(db, transaction_id, user_id)
    db.delete(transaction)
    db.commit()
    logger.info("Transaction deleted", extra={"user_id": user_id, "transaction_id": transaction_id})
    return transaction


__all__ = [
    "SORTABLE_FIELDS",
    "SORT_ORDERS",
    "TransactionQuery",
    "create_transaction",
    "date_range_conditions",
    "delete_transaction",
    "get_transaction",
    "list_transactions",
    "update_transaction",
]
