from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
import logging

from availsync.database import SessionLocal
from availsync.services.availability_sync import availability_sync
from availsync.services.settings import get_config_value

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

AVAILABILITY_SYNC_JOB_ID = "availability-sync"
DEFAULT_SCHEDULE = "0 5 * * *"


def start_scheduler():
    """Register the availability sync cron job and start APScheduler"""
    db = SessionLocal()
    try:
        if not get_config_value(db, "scheduler_enabled", True):
            logger.info("Scheduler disabled via config")
            return
        schedule = get_config_value(db, "availability_sync_schedule", DEFAULT_SCHEDULE)
    finally:
        db.close()

    # Daily at 05:00 unless configured otherwise
    scheduler.add_job(
        availability_sync.run,
        trigger=CronTrigger.from_crontab(schedule),
        id=AVAILABILITY_SYNC_JOB_ID,
        name="Media Availability Sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    if not scheduler.running:
        scheduler.start()
        logger.info(f"✓ Scheduler started (availability sync: '{schedule}')")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("✓ Scheduler stopped")
