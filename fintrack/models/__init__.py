"""ORM models package."""
from .base import AuditedMixin, Base
from .transaction import Transaction, TransactionType
from .user import Currency, User

__all__ = [
    "AuditedMixin",
    "Base",
    "Currency",
    "Transaction",
    "TransactionType",
    "User",
]
