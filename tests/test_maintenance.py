from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from fintrack import db as db_module
from fintrack.models import User
from fintrack.services import cron
from fintrack.services.users import purge_expired_refresh_tokens


def _with_slot(user: User, expires_at: datetime) -> None:
    user.refresh_token = f"token-{user.id}"
    user.refresh_token_expires_at = expires_at


def test_purge_clears_only_expired_slots(db_session, make_user):
    now = datetime.now(tz=UTC)
    expired = make_user()
    live = make_user()
    _with_slot(expired, now - timedelta(minutes=5))
    _with_slot(live, now + timedelta(hours=1))
    db_session.flush()

    assert purge_expired_refresh_tokens(db_session, now=now) == 1

    db_session.expire_all()
    assert db_session.get(User, expired.id).refresh_token is None
    assert db_session.get(User, live.id).refresh_token == f"token-{live.id}"


def test_purge_job_uses_its_own_session(monkeypatch, db_session, make_user):
    user = make_user()
    _with_slot(user, datetime.now(tz=UTC) - timedelta(days=1))
    db_session.flush()

    connection = db_session.connection()
    monkeypatch.setattr(db_module, "get_sessionmaker", lambda: lambda: Session(bind=connection))

    assert cron.purge_expired_refresh_tokens_once() == 1
    assert cron.purge_expired_refresh_tokens_once() == 0


@pytest.mark.anyio("asyncio")
async def test_scheduler_start_and_stop():
    scheduler = cron.start_scheduler()
    try:
        assert cron.scheduler_running() is True
        assert scheduler.get_job(cron.PURGE_JOB_ID) is not None
        assert cron.start_scheduler() is scheduler
    finally:
        cron.shutdown_scheduler()
    assert cron.scheduler_running() is False
