"""
Background scheduler for block production.
Advances the chain height at a fixed interval so goal deadlines
(expressed in blocks) move forward with wall-clock time.
"""

import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from goal_tracker.database import SessionLocal
from goal_tracker.services.clock_service import BlockHeightClock
from goal_tracker.constants import DEFAULT_BLOCK_INTERVAL_SECONDS

logger = logging.getLogger("goal_tracker.scheduler")

BLOCK_INTERVAL_SECONDS = int(os.getenv(
    "GOAL_TRACKER_BLOCK_INTERVAL_SECONDS", DEFAULT_BLOCK_INTERVAL_SECONDS
))

scheduler = AsyncIOScheduler()


async def produce_block():
    """Job: advance the chain by one block"""
    db = SessionLocal()
    try:
        height = BlockHeightClock(db).advance(1)
        logger.info(f"Block produced, height is now {height}")
    except Exception as e:
        db.rollback()
        logger.error(f"Scheduler Error (Block production): {e}")
    finally:
        db.close()


def start_scheduler():
    """Start the block producer"""
    if not scheduler.running:
        scheduler.add_job(
            produce_block,
            IntervalTrigger(seconds=BLOCK_INTERVAL_SECONDS),
            id='produce_block',
            replace_existing=True
        )
        scheduler.start()
        logger.info(f"Block producer started, one block every {BLOCK_INTERVAL_SECONDS}s")


def stop_scheduler():
    """Stop the block producer"""
    if scheduler.running:
        scheduler.shutdown()
