"""Test configuration."""
import os
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

# --- Default test environment
os.environ.setdefault("DATABASE_URL", "sqlite:///./fintrack_test.db")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-at-least-32-bytes!")
os.environ.setdefault("FINTRACK_ENV", "test")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("PROMETHEUS_ENABLED", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from fintrack.db import build_engine, get_db  # noqa: E402
from fintrack.main import app  # noqa: E402
from fintrack.models import Transaction, TransactionType, User  # noqa: E402

DB_PATH = Path("./fintrack_test.db")
ROOT = Path(__file__).resolve().parents[1]


def _run_migrations() -> None:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.attributes["sqlalchemy.url"] = os.environ["DATABASE_URL"]
    command.upgrade(cfg, "head")


# --- (1) Fresh database file per test session
if DB_PATH.exists():
    DB_PATH.unlink()

engine = build_engine(os.environ["DATABASE_URL"])
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

# --- (2) Schema comes from Alembic only
_run_migrations()


@pytest.fixture
def db_session() -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(autouse=True)
def override_db_dependency(db_session: Session) -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        yield db_session
    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid4().hex[:8]}@example.com"


@pytest.fixture
def register_user(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """Register through the API and return the session payload plus auth headers."""

    async def _register(
        *,
        email: str | None = None,
        password: str = "secret123",
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        currency: str = "EUR",
    ) -> dict:
        body = {
            "email": email or unique_email(),
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
            "currency": currency,
        }
        resp = await client.post("/users/register", json=body)
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        data["password"] = password
        data["headers"] = {"Authorization": f"Bearer {data['accessToken']}"}
        return data

    return _register


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Insert a user row directly, bypassing the API."""

    from fintrack.utils.passwords import hash_password

    def _factory(*, email: str | None = None, password: str = "secret123", is_active: bool = True) -> User:
        user = User(
            email=email or unique_email(),
            password_hash=hash_password(password),
            first_name="Grace",
            last_name="Hopper",
            is_active=is_active,
        )
        db_session.add(user)
        db_session.flush()
        return user

    return _factory


@pytest.fixture
def make_transaction(db_session: Session) -> Callable[..., Transaction]:
    def _factory(
        user_id: int,
        *,
        amount: str = "10.00",
        type: TransactionType = TransactionType.EXPENSE,
        category: str = "food",
        description: str = "Lunch",
        date: datetime | None = None,
    ) -> Transaction:
        transaction = Transaction(
            user_id=user_id,
            amount=Decimal(amount),
            type=type,
            category=category,
            description=description,
            date=date or datetime.now(tz=UTC),
            tags=[],
        )
        db_session.add(transaction)
        db_session.flush()
        return transaction

    return _factory
