"""
Scheduled jobs
Uses APScheduler to sweep expired carts
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.core.config import settings
from grocery.db.session import SessionLocal
from grocery.models.cart import Cart

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None


async def sweep_expired_carts(
    session_factory: Callable[[], AsyncSession] = SessionLocal,
    now: datetime = None) -> int:
    """Empty every expired cart that still holds lines; returns how many"""
    now = now or datetime.utcnow()
    async with session_factory() as db:
        result = await db.execute(
            select(Cart)
            .options(selectinload(Cart.items))
            .where(Cart.expires_at <= now)
        )
        swept = 0
        for cart in result.scalars().all():
            if not cart.items:
                continue
            cart.items.clear()
            swept += 1
        await db.commit()

    if swept:
        logger.info(f"🧹 Emptied {swept} expired carts")
    return swept


async def _sweep_job():
    try:
        await sweep_expired_carts()
    except Exception as e:
        logger.error(f"❌ Cart sweep failed: {str(e)}")


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.CART_SWEEP_ENABLED:
        logger.info("🧹 Cart sweep disabled")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _sweep_job,
        trigger=IntervalTrigger(minutes=settings.CART_SWEEP_INTERVAL_MINUTES),
        id="cart_sweep",
        name="Expired cart sweep",
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"⏰ Scheduler started - cart sweep every {settings.CART_SWEEP_INTERVAL_MINUTES} min")


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ Scheduler stopped")


def get_scheduler_status() -> dict:
    if not scheduler:
        return {
            "enabled": False,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.CART_SWEEP_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
