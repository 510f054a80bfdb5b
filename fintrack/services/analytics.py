"""Aggregate views over a user's transactions.

All aggregation happens in SQL. Results are converted to plain ``float`` and
``int`` so SQLite and PostgreSQL return identical payloads.
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import ColumnElement, asc, case, desc, extract, func, select
from sqlalchemy.orm import Session

from fintrack.core.exceptions import ValidationError
from fintrack.models.transaction import Transaction, TransactionType
from fintrack.schemas.analytics import (
    CategoryBreakdownRow,
    FinancialSummary,
    MonthlySummaryRow,
    SpendingTrendRow,
)
from fintrack.services.transactions import date_range_conditions
from fintrack.utils.time import months_ago, utcnow

logger = logging.getLogger(__name__)

DEFAULT_MONTHS = 6
MAX_MONTHS = 60
SUPPORTED_PERIODS = ("monthly",)


def _check_window(months: int) -> None:
    if not 1 <= months <= MAX_MONTHS:
        raise ValidationError(
            "Invalid months value",
            details=[{"field": "months", "message": f"must be between 1 and {MAX_MONTHS}"}],
        )


def financial_summary(
    db: Session,
    user_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> FinancialSummary:
    """Income and expense totals; a type with no rows contributes zero."""

    conditions = [Transaction.user_id == user_id, *date_range_conditions(start, end)]
    stmt = (
        select(Transaction.type, func.sum(Transaction.amount), func.count(Transaction.id))
        .where(*conditions)
        .group_by(Transaction.type)
    )
    totals = {TransactionType.INCOME: (0.0, 0), TransactionType.EXPENSE: (0.0, 0)}
    for tx_type, amount, count in db.execute(stmt):
        totals[tx_type] = (float(amount or 0), int(count))

    income, income_count = totals[TransactionType.INCOME]
    expenses, expense_count = totals[TransactionType.EXPENSE]
    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        balance=income - expenses,
        transaction_count=income_count + expense_count,
    )


def category_breakdown(
    db: Session,
    user_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
    tx_type: TransactionType | None = None,
) -> list[CategoryBreakdownRow]:
    """Per-category totals, largest first."""

    conditions: list[ColumnElement[bool]] = [Transaction.user_id == user_id]
    if tx_type is not None:
        conditions.append(Transaction.type == tx_type)
    conditions.extend(date_range_conditions(start, end))

    total = func.sum(Transaction.amount)
    stmt = (
        select(Transaction.category, total, func.count(Transaction.id))
        .where(*conditions)
        .group_by(Transaction.category)
        .order_by(desc(total), asc(Transaction.category))
    )
    return [
        CategoryBreakdownRow(category=category, amount=float(amount or 0), count=int(count))
        for category, amount, count in db.execute(stmt)
    ]


def _monthly_rows(db: Session, user_id: int, months: int, now: datetime | None):
    """Per-month income/expense sums and counts for the trailing window.

    Stage one sums per (year, month, type); stage two pivots the types into
    zero-filled columns.
    """

    _check_window(months)
    now = now or utcnow()
    since = months_ago(now, months)

    year = extract("year", Transaction.date)
    month = extract("month", Transaction.date)
    per_type = (
        select(
            year.label("year"),
            month.label("month"),
            Transaction.type.label("type"),
            func.sum(Transaction.amount).label("total"),
            func.count(Transaction.id).label("count"),
        )
        .where(
            Transaction.user_id == user_id,
            Transaction.date >= since,
            Transaction.date <= now,
        )
        .group_by(year, month, Transaction.type)
        .subquery()
    )

    is_income = per_type.c.type == TransactionType.INCOME
    is_expense = per_type.c.type == TransactionType.EXPENSE
    stmt = (
        select(
            per_type.c.year,
            per_type.c.month,
            func.sum(case((is_income, per_type.c.total), else_=0)).label("income"),
            func.sum(case((is_expense, per_type.c.total), else_=0)).label("expenses"),
            func.sum(case((is_income, per_type.c.count), else_=0)).label("income_count"),
            func.sum(case((is_expense, per_type.c.count), else_=0)).label("expense_count"),
        )
        .group_by(per_type.c.year, per_type.c.month)
        .order_by(per_type.c.year, per_type.c.month)
    )

    for row in db.execute(stmt):
        yield (
            datetime(int(row.year), int(row.month), 1, tzinfo=UTC),
            float(row.income or 0),
            float(row.expenses or 0),
            int(row.income_count or 0),
            int(row.expense_count or 0),
        )


def spending_trends(
    db: Session,
    user_id: int,
    months: int = DEFAULT_MONTHS,
    period: str = "monthly",
    now: datetime | None = None,
) -> list[SpendingTrendRow]:
    if period not in SUPPORTED_PERIODS:
        raise ValidationError(
            "Invalid period",
            details=[{"field": "period", "message": "only 'monthly' is supported"}],
        )
    return [
        SpendingTrendRow(period=start, income=income, expenses=expenses)
        for start, income, expenses, _, _ in _monthly_rows(db, user_id, months, now)
    ]


def monthly_summary(
    db: Session,
    user_id: int,
    months: int = DEFAULT_MONTHS,
    now: datetime | None = None,
) -> list[MonthlySummaryRow]:
    """Like :func:`spending_trends` with per-type counts and ``net``."""

    rows = [
        MonthlySummaryRow(
            month=start,
            income=income,
            expenses=expenses,
            income_count=income_count,
            expense_count=expense_count,
            net=income - expenses,
        )
        for start, income, expenses, income_count, expense_count in _monthly_rows(db, user_id, months, now)
    ]
    logger.debug("Monthly summary computed", extra={"user_id": user_id, "months": months, "rows": len(rows)})
    return rows


__all__ = [
    "DEFAULT_MONTHS",
    "MAX_MONTHS",
    "SUPPORTED_PERIODS",
    "category_breakdown",
    "financial_summary",
    "monthly_summary",
    "spending_trends",
]
