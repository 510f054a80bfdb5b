"""Background maintenance jobs and the APScheduler that runs them."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from fintrack.db import session_scope
from fintrack.services.users import purge_expired_refresh_tokens

logger = logging.getLogger(__name__)

PURGE_JOB_ID = "purge-expired-refresh-tokens"
PURGE_INTERVAL_MINUTES = 60

_scheduler: AsyncIOScheduler | None = None


def purge_expired_refresh_tokens_once() -> int:
    """Clear expired refresh-token slots. Safe to run on every replica."""

    with session_scope() as db:
        cleared = purge_expired_refresh_tokens(db)
    if cleared:
        logger.info("Expired refresh tokens purged", extra={"cleared": cleared})
    return cleared


def start_scheduler() -> AsyncIOScheduler:
    """Start the scheduler with the hourly purge job; a no-op when already running."""

    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
        _scheduler.add_job(
            purge_expired_refresh_tokens_once,
            "interval",
            minutes=PURGE_INTERVAL_MINUTES,
            id=PURGE_JOB_ID,
            replace_existing=True,
        )
        _scheduler.start()
        logger.info("Scheduler started", extra={"jobs": [PURGE_JOB_ID]})
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Scheduler stopped")


def scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running


__all__ = [
    "PURGE_JOB_ID",
    "purge_expired_refresh_tokens_once",
    "scheduler_running",
    "shutdown_scheduler",
    "start_scheduler",
]
