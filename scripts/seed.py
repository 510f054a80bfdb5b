"""Seed a demo account with a few months of transactions."""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select

from fintrack import models
from fintrack.config import get_settings
from fintrack.db import create_all, session_scope
from fintrack.utils.passwords import hash_password
from fintrack.utils.time import months_ago, utcnow

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo-password"

MONTHLY_ENTRIES = [
    (Decimal("3200.00"), models.TransactionType.INCOME, "Salary", "salary"),
    (Decimal("950.00"), models.TransactionType.EXPENSE, "Rent", "housing"),
    (Decimal("180.45"), models.TransactionType.EXPENSE, "Groceries", "food"),
    (Decimal("42.90"), models.TransactionType.EXPENSE, "Dinner out", "food"),
    (Decimal("60.00"), models.TransactionType.EXPENSE, "Metro pass", "transport"),
]


def main() -> None:
    settings = get_settings()
    print(f"Using database: {settings.database_url}")

    create_all()
    with session_scope() as session:
        if session.scalars(select(models.User).where(models.User.email == DEMO_EMAIL)).first():
            print("Demo user already present; nothing to do.")
            return

        demo = models.User(
            email=DEMO_EMAIL,
            password_hash=hash_password(DEMO_PASSWORD),
            first_name="Demo",
            last_name="User",
            currency=models.Currency.EUR,
        )
        session.add(demo)
        session.flush()

        now = utcnow()
        for offset in range(6):
            month_start = months_ago(now, offset).replace(day=1, hour=12, minute=0, second=0, microsecond=0)
            for index, (amount, tx_type, description, category) in enumerate(MONTHLY_ENTRIES):
                # Current-month rows must not land in the future, or analytics windows skip them.
                date = min(month_start + timedelta(days=index * 3), now)
                session.add(
                    models.Transaction(
                        user_id=demo.id,
                        amount=amount,
                        type=tx_type,
                        description=description,
                        category=category,
                        date=date,
                        tags=["demo"],
                    )
                )
    print(f"Seed data inserted. Log in as {DEMO_EMAIL} / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
