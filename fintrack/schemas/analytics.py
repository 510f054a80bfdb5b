"""Aggregation result schemas."""
from datetime import datetime

from .common import CamelModel


class FinancialSummary(CamelModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    balance: float = 0.0
    transaction_count: int = 0


class CategoryBreakdownRow(CamelModel):
    category: str
    amount: float
    count: int


class SpendingTrendRow(CamelModel):
    period: datetime
    income: float
    expenses: float


class MonthlySummaryRow(CamelModel):
    month: datetime
    income: float
    expenses: float
    income_count: int
    expense_count: int
    net: float
