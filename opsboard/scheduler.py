"""
Scheduler Module

Background billboard cache warmer.
Uses APScheduler to recompute the billboard summary on an interval so TV
screens polling /api/billboard/summary never wait on a cold read.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from opsboard import config
from opsboard.dependencies import BILLBOARD_CACHE_KEY, get_billboard_cache, get_billboard_composer
from opsboard.exceptions import UnexpectedQueryError

logger = logging.getLogger(__name__)

# Create scheduler
scheduler = AsyncIOScheduler()


async def scheduled_billboard_warm():
    """Recompute the billboard summary into the shared cache"""
    cache = get_billboard_cache()
    try:
        summary, degraded = await get_billboard_composer().compose()
    except UnexpectedQueryError as e:
        # Keep whatever is cached; the route will surface the error on its own read
        logger.error(f"[Scheduler] Billboard warm failed: {e}")
        return

    cache.set(BILLBOARD_CACHE_KEY, (summary, degraded))
    logger.info(f"[Scheduler] Billboard cache warmed (degraded={degraded})")


def start_scheduler():
    """Start the background scheduler"""
    if not config.BILLBOARD_WARM_ENABLED:
        logger.info("[Scheduler] Billboard warmer disabled via BILLBOARD_WARM_ENABLED env var")
        return

    logger.info(f"[Scheduler] Billboard warm: every {config.BILLBOARD_WARM_INTERVAL_SECONDS} seconds")

    scheduler.add_job(
        scheduled_billboard_warm,
        IntervalTrigger(seconds=config.BILLBOARD_WARM_INTERVAL_SECONDS),
        id="billboard_warm",
        name="Billboard Cache Warm",
        replace_existing=True
    )

    scheduler.start()
    logger.info("[Scheduler] Scheduler started successfully")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("[Scheduler] Scheduler stopped")
