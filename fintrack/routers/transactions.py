"""Transaction CRUD and analytics endpoints.

The fixed paths (``/summary``, ``/analytics/...``) are registered before
``/{transaction_id}`` so they are never captured by it.
"""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fintrack.config import get_settings
from fintrack.core.exceptions import ValidationError
from fintrack.db import get_db
from fintrack.models.transaction import TransactionType
from fintrack.schemas import (
    CategoryBreakdownRow,
    Envelope,
    FinancialSummary,
    MonthlySummaryRow,
    SpendingTrendRow,
    TransactionCreate,
    TransactionRead,
    TransactionUpdate,
)
from fintrack.security import CurrentUser, get_current_user
from fintrack.services import analytics as analytics_service
from fintrack.services import transactions as transactions_service
from fintrack.services.analytics import DEFAULT_MONTHS, MAX_MONTHS
from fintrack.utils.time import parse_iso_utc

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _parse_date(value: str | None, field: str) -> datetime | None:
    if value is None or not value.strip():
        return None
    try:
        return parse_iso_utc(value)
    except ValueError as exc:
        raise ValidationError(
            "Validation failed",
            details=[{"field": field, "message": "must be an ISO 8601 date"}],
        ) from exc


@router.get("", response_model=Envelope[list[TransactionRead]])
def list_transactions(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    type: TransactionType | None = Query(default=None),
    category: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    search: str | None = Query(default=None, max_length=100),
    sort_by: str = Query(default="date", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Filtered, sorted, paginated listing of the caller's transactions."""

    settings = get_settings()
    effective_limit = min(limit or settings.PAGINATION_DEFAULT_LIMIT, settings.PAGINATION_MAX_LIMIT)
    query = transactions_service.TransactionQuery(
        page=page,
        limit=effective_limit,
        type=type,
        category=category or None,
        start_date=_parse_date(start_date, "startDate"),
        end_date=_parse_date(end_date, "endDate"),
        search=search or None,
        sort_by=sort_by,
        sort_order=sort_order.lower(),
    )
    items, pagination = transactions_service.list_transactions(db, current_user.id, query)
    return Envelope(
        data=[TransactionRead.model_validate(item) for item in items],
        pagination=pagination,
    )


@router.post(
    "",
    response_model=Envelope[TransactionRead],
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    transaction = transactions_service.create_transaction(db, current_user.id, payload)
    return Envelope(
        message="Transaction created successfully",
        data=TransactionRead.model_validate(transaction),
    )


@router.get("/summary", response_model=Envelope[FinancialSummary])
def financial_summary(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    summary = analytics_service.financial_summary(
        db,
        current_user.id,
        _parse_date(start_date, "startDate"),
        _parse_date(end_date, "endDate"),
    )
    return Envelope(data=summary)


@router.get("/analytics/category-breakdown", response_model=Envelope[list[CategoryBreakdownRow]])
def category_breakdown(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    type: TransactionType | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    rows = analytics_service.category_breakdown(
        db,
        current_user.id,
        _parse_date(start_date, "startDate"),
        _parse_date(end_date, "endDate"),
        type,
    )
    return Envelope(data=rows)


@router.get("/analytics/spending-trends", response_model=Envelope[list[SpendingTrendRow]])
def spending_trends(
    period: str = Query(default="monthly"),
    months: int = Query(default=DEFAULT_MONTHS, ge=1, le=MAX_MONTHS),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Income and expenses per calendar month over the trailing window."""

    rows = analytics_service.spending_trends(db, current_user.id, months=months, period=period)
    return Envelope(data=rows)


@router.get("/analytics/monthly-summary", response_model=Envelope[list[MonthlySummaryRow]])
def monthly_summary(
    months: int = Query(default=DEFAULT_MONTHS, ge=1, le=MAX_MONTHS),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    rows = analytics_service.monthly_summary(db, current_user.id, months=months)
    return Envelope(data=rows)


@router.get("/{transaction_id}", response_model=Envelope[TransactionRead])
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    transaction = transactions_service.get_transaction(db, transaction_id, current_user.id)
    return Envelope(data=TransactionRead.model_validate(transaction))


@router.put("/{transaction_id}", response_model=Envelope[TransactionRead])
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    transaction = transactions_service.update_transaction(db, transaction_id, current_user.id, payload)
    return Envelope(
        message="Transaction updated successfully",
        data=TransactionRead.model_validate(transaction),
    )


@router.delete("/{transaction_id}", response_model=Envelope[TransactionRead])
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Permanently delete a transaction and return what was removed."""

    transaction = transactions_service.delete_transaction(db, transaction_id, current_user.id)
    return Envelope(
        message="Transaction deleted successfully",
        data=TransactionRead.model_validate(transaction),
    )
