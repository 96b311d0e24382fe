"""Scheduler for the per-session reminder ticks."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from famcal.core.config import constants
from famcal.core.scheduler_tracker import run_tracked


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()

REMINDER_JOB_NAME = "reminder_tick"


def schedule_reminder_job(job_id: str, tick: Callable[[], Awaitable[Any]]) -> None:
    """Run ``tick`` every REMINDER_TICK_SECONDS until the job is cancelled."""
    scheduler.add_job(
        run_tracked,
        trigger=IntervalTrigger(seconds=constants.REMINDER_TICK_SECONDS),
        args=[tick, REMINDER_JOB_NAME],
        id=job_id,
        name="Evaluate Calendar Reminders",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    logger.info("Scheduled reminder job", extra={"job_id": job_id, "interval": constants.REMINDER_TICK_SECONDS})


def cancel_job(job_id: str) -> None:
    """Remove a job; unknown ids are ignored."""
    try:
        scheduler.remove_job(job_id)
    except JobLookupError:
        logger.debug("Job already removed", extra={"job_id": job_id})
        return
    logger.info("Cancelled job", extra={"job_id": job_id})


def start_scheduler() -> None:
    """Start the scheduler.

    This should be called during FastAPI app startup.
    """
    logger.info("Starting scheduler")
    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler.

    This should be called during FastAPI app shutdown.
    """
    logger.info("Stopping scheduler")
    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Scheduler stopped")
