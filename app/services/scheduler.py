"""
app/services/scheduler.py
APScheduler-based background job scheduler.

One recurring job: the oracle keeper, every KEEPER_INTERVAL_SECONDS,
registered only when KEEPER_ENABLED is set.

Uses lazy imports inside job functions to avoid circular imports.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import get_settings

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def _job_keeper() -> None:
    """Scheduled job: stamp start prices and settle expired bets."""
    try:
        from app.services.keeper import run_keeper
        await run_keeper()
    except Exception as exc:
        logger.error("Keeper run failed: %s", exc)


def start_scheduler() -> None:
    """Initialize and start the APScheduler with the keeper job."""
    global _scheduler

    if _scheduler is not None:
        logger.warning("Scheduler already running")
        return

    settings = get_settings()
    if not settings.KEEPER_ENABLED:
        logger.info("Keeper disabled; scheduler not started")
        return

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        _job_keeper,
        "interval",
        seconds=settings.KEEPER_INTERVAL_SECONDS,
        id="oracle_keeper",
        name="Oracle Keeper",
        max_instances=1,
        coalesce=True,
    )

    _scheduler.start()
    logger.info("Scheduler started: keeper every %ds", settings.KEEPER_INTERVAL_SECONDS)


def stop_scheduler() -> None:
    """Shut down the scheduler gracefully."""
    global _scheduler

    if _scheduler is None:
        return

    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("Scheduler stopped")
