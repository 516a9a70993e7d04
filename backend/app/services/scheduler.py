"""
Scheduled Job Configuration

Configures periodic maintenance jobs using APScheduler:
- Unused tag cleanup daily at 3 AM UTC

Execution Context:
    The scheduler runs IN-PROCESS with FastAPI. It is started/stopped via
    FastAPI's lifespan context manager in app/main.py when
    SCHEDULER_ENABLED is set.

Limitations:
    - Single instance only: each backend replica runs its own scheduler.
      Tag cleanup is idempotent, so duplicate runs only cost a query.

Usage:
    # Automatic (via FastAPI lifespan in main.py):
    start_scheduler()  # On app startup
    stop_scheduler()   # On app shutdown

    # Manual trigger for testing:
    from app.services.scheduler import trigger_job_now
    trigger_job_now("tag_cleanup")
"""

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler(timezone=timezone.utc)


async def run_tag_cleanup() -> None:
    """Remove CUSTOM tags that no question uses, across all users."""
    # Deferred imports: avoid creating the engine at scheduler import time
    from app.db.base import async_session_maker
    from app.services.tag_service import TagService

    async with async_session_maker() as db:
        result = await TagService(db).cleanup_unused()
        logger.info(f"Scheduled tag cleanup: {result.deleted_count} tags removed")


def setup_scheduled_jobs() -> None:
    """Configure all scheduled jobs."""
    scheduler.add_job(
        run_tag_cleanup,
        CronTrigger(hour=settings.TAG_CLEANUP_HOUR, minute=0),
        id="tag_cleanup",
        name="Unused Tag Cleanup",
        replace_existing=True,
        misfire_grace_time=3600,  # Allow 1 hour grace period
    )

    logger.info(
        f"Scheduled jobs configured: tag cleanup daily at "
        f"{settings.TAG_CLEANUP_HOUR:02d}:00 UTC"
    )


def start_scheduler() -> None:
    """Start the scheduler and configure jobs."""
    if scheduler.running:
        logger.warning("Scheduler already running")
        return

    setup_scheduled_jobs()
    scheduler.start()
    logger.info("Scheduler started")


def stop_scheduler() -> None:
    """Stop the scheduler gracefully."""
    if not scheduler.running:
        logger.warning("Scheduler not running")
        return

    scheduler.shutdown(wait=True)
    logger.info("Scheduler stopped")


def get_scheduled_jobs() -> list[dict]:
    """Get list of scheduled jobs with their next run times."""
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger),
        }
        for job in scheduler.get_jobs()
    ]


def trigger_job_now(job_id: str) -> bool:
    """
    Manually trigger a scheduled job immediately.

    Args:
        job_id: ID of the job to trigger

    Returns:
        True if triggered successfully
    """
    job = scheduler.get_job(job_id)
    if job:
        job.modify(next_run_time=datetime.now(timezone.utc))
        logger.info(f"Manually triggered job: {job_id}")
        return True

    logger.warning(f"Job not found: {job_id}")
    return False
