"""
Scheduled jobs (APScheduler)
- nightly deactivation of expired API tokens
"""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import update

from dcc_sfa.core.config import settings
from dcc_sfa.db.session import SessionLocal
from dcc_sfa.models import ApiToken

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None


async def deactivate_expired_tokens(session_factory=None) -> int:
    """Mark tokens past expires_at inactive; returns how many changed"""
    session_factory = session_factory or SessionLocal
    async with session_factory() as db:
        result = await db.execute(
            update(ApiToken)
            .where(
                ApiToken.expires_at.is_not(None),
                ApiToken.expires_at < datetime.utcnow(),
                ApiToken.is_active == "Y",
            )
            .values(is_active="N", updatedate=datetime.utcnow())
        )
        await db.commit()
        count = result.rowcount or 0
    if count:
        logger.info(f"🔒 Deactivated {count} expired API token(s)")
    return count


async def token_cleanup_job():
    try:
        await deactivate_expired_tokens()
    except Exception as e:
        logger.error(f"❌ Token cleanup failed: {str(e)}")


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.TOKEN_CLEANUP_ENABLED:
        logger.info("⏰ Token cleanup disabled")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        token_cleanup_job,
        trigger=CronTrigger(
            hour=settings.TOKEN_CLEANUP_HOUR,
            minute=settings.TOKEN_CLEANUP_MINUTE
        ),
        id="token_cleanup",
        name="Expired API token cleanup",
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"⏰ Scheduler started - token cleanup daily at {settings.TOKEN_CLEANUP_HOUR:02d}:{settings.TOKEN_CLEANUP_MINUTE:02d}")


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ Scheduler stopped")


def get_scheduler_status() -> dict:
    """Scheduler state for the health endpoint"""
    jobs = scheduler.get_jobs() if scheduler else []
    return {
        "enabled": settings.TOKEN_CLEANUP_ENABLED,
        "running": bool(scheduler and scheduler.running),
        "jobs": [
            {"id": job.id, "name": job.name,
             "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None}
            for job in jobs
        ],
    }
