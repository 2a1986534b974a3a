"""
Background scheduler for the reconciliation tick.
Handles:
- Lease countdown decay by elapsed wall-clock time
- UTC day rollover of the daily window without user interaction
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from cloudvps.services.engine_service import EngineService

logger = logging.getLogger("cloudvps.scheduler")

# Create scheduler instance
scheduler = AsyncIOScheduler()


async def run_reconcile_tick(engine: EngineService):
    """Job: apply elapsed time and day rollover"""
    try:
        events = engine.tick()
        if events:
            logger.info(f"Tick events: {[e.value for e in events]}")
    except Exception as e:
        logger.error(f"Scheduler Error (Reconcile Tick): {e}")


def start_scheduler(engine: EngineService):
    """Start the periodic tick (needs a running event loop)"""
    if not scheduler.running:
        trigger = IntervalTrigger(seconds=engine.config.tick_interval_ms / 1000)

        scheduler.add_job(
            run_reconcile_tick,
            trigger,
            args=[engine],
            id="reconcile_tick",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        logger.info(">>> APScheduler STARTED <<<")
        logger.info(f"Scheduled jobs: {[job.id for job in scheduler.get_jobs()]}")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler stopped")
