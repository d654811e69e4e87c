"""Daily maintenance job scheduling."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger("affiliate_hub.scheduler")

DAILY_JOB_ID = "daily_maintenance"


async def run_daily_maintenance() -> None:
    # No maintenance task is defined yet; the job only records that it fired.
    logger.info("Daily maintenance job executed")


def build_scheduler() -> AsyncIOScheduler:
    """Return a scheduler with the daily job registered but not started."""

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        run_daily_maintenance,
        CronTrigger(hour=0, minute=0, timezone="UTC"),
        id=DAILY_JOB_ID,
        name="Daily maintenance",
        replace_existing=True,
    )
    return scheduler


__all__ = ["DAILY_JOB_ID", "build_scheduler", "run_daily_maintenance"]
