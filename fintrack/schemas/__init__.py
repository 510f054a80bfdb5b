"""Schema package exports."""
from .analytics import CategoryBreakdownRow, FinancialSummary, MonthlySummaryRow, SpendingTrendRow
from .common import CamelModel, Envelope, Pagination
from .transaction import TransactionCreate, TransactionRead, TransactionUpdate
from .user import (
    AuthSessionRead,
    PasswordChange,
    ProfileUpdate,
    RefreshTokenRequest,
    TokenPairRead,
    UserLogin,
    UserProfileRead,
    UserRead,
    UserRegister,
)

__all__ = [
    "AuthSessionRead",
    "CamelModel",
    "CategoryBreakdownRow",
    "Envelope",
    "FinancialSummary",
    "MonthlySummaryRow",
    "Pagination",
    "PasswordChange",
    "ProfileUpdate",
    "RefreshTokenRequest",
    "SpendingTrendRow",
    "TokenPairRead",
    "TransactionCreate",
    "TransactionRead",
    "TransactionUpdate",
    "UserLogin",
    "UserProfileRead",
    "UserRead",
    "UserRegister",
]
