"""Tier-based retention: purge events older than a tier's history window.

Runs once at startup and then on an APScheduler interval job.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.config import TierLimits
from rollcall.db.engine import get_session
from rollcall.db.repository import Repository

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "purge_expired_events"


async def purge_expired_events(
    engine: AsyncEngine,
    tier_limits: dict[str, TierLimits],
    now: datetime | None = None,
) -> int:
    """Delete events past their tier's history window. Returns the number removed.

    Tiers with an unbounded window are left alone. Errors are logged, not
    raised: a failed sweep is retried on the next tick.
    """
    now = now or datetime.now(UTC)
    removed = 0
    try:
        async with get_session(engine) as session:
            repo = Repository(session)
            for tier, limits in tier_limits.items():
                if limits.history_days is None:
                    continue
                cutoff = now - timedelta(days=limits.history_days)
                count = await repo.delete_events_before(tier, cutoff)
                if count:
                    logger.info(
                        "cleanup_tier tier=%s removed=%d cutoff=%s", tier, count, cutoff.isoformat()
                    )
                removed += count
    except SQLAlchemyError:
        logger.exception("cleanup_failed")
        return 0
    logger.info("cleanup_complete removed=%d", removed)
    return removed


def start_cleanup_scheduler(
    engine: AsyncEngine,
    tier_limits: dict[str, TierLimits],
    interval_hours: int,
) -> AsyncIOScheduler:
    """Start an AsyncIOScheduler running the sweep now and every *interval_hours*."""
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        purge_expired_events,
        trigger=IntervalTrigger(hours=interval_hours),
        kwargs={"engine": engine, "tier_limits": tier_limits},
        id=CLEANUP_JOB_ID,
        name="Purge expired events",
        replace_existing=True,
        next_run_time=datetime.now(UTC),
    )
    scheduler.start()
    logger.info("cleanup_scheduler_started interval_hours=%d", interval_hours)
    return scheduler
