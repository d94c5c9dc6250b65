"""
Background job scheduler.

Schedule (timezone from settings, Africa/Dakar by default):
- assignment timeout sweep: every 5 minutes
- booking link consistency sweep: every 60 minutes
- inactivity sweep: every 5 minutes
- daily tracking rollup: 00:01
- position history cleanup: 02:00

Every run opens its own session, takes a Redis run lock so only one
instance of the service executes a given job at a time, and is cut off
after its time budget. Nothing propagates back into APScheduler.
"""
import asyncio
import logging
import uuid
from typing import Awaitable, Callable

import redis.asyncio as aioredis
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import AsyncSessionLocal
from app.jobs.reconciliation import (
    sweep_assignment_timeouts,
    sweep_booking_link_consistency,
    sweep_inactive_drivers,
)
from app.jobs.tracking_maintenance import prune_position_history, rollup_daily_tracking_stats
from app.redis_client import acquire_lock, get_redis, release_lock

logger = logging.getLogger(__name__)
settings = get_settings()

JobFunc = Callable[[AsyncSession, aioredis.Redis | None], Awaitable[object]]
LOCK_MARGIN_MS = 30_000


async def _timeouts(db: AsyncSession, redis: aioredis.Redis | None):
    return await sweep_assignment_timeouts(db, redis)


async def _links(db: AsyncSession, redis: aioredis.Redis | None):
    return await sweep_booking_link_consistency(db)


async def _inactivity(db: AsyncSession, redis: aioredis.Redis | None):
    return await sweep_inactive_drivers(db)


async def _rollup(db: AsyncSession, redis: aioredis.Redis | None):
    return await rollup_daily_tracking_stats(db)


async def _cleanup(db: AsyncSession, redis: aioredis.Redis | None):
    return await prune_position_history(db)


class DispatchScheduler:
    def __init__(
        self,
        session_factory=AsyncSessionLocal,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ):
        self._session_factory = session_factory
        self._redis_factory = redis_factory
        self.scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 120},
            timezone=settings.scheduler_timezone,
        )

    def setup_jobs(self) -> None:
        interval_budget = settings.interval_job_budget_seconds
        daily_budget = settings.daily_job_budget_seconds
        jobs = [
            ("assignment_timeouts", _timeouts,
             IntervalTrigger(minutes=settings.timeout_sweep_interval_minutes), interval_budget),
            ("booking_link_consistency", _links,
             IntervalTrigger(minutes=settings.consistency_sweep_interval_minutes), interval_budget),
            ("inactive_drivers", _inactivity,
             IntervalTrigger(minutes=settings.inactivity_sweep_interval_minutes), interval_budget),
            ("daily_tracking_rollup", _rollup,
             CronTrigger(hour=0, minute=1, timezone=settings.scheduler_timezone), daily_budget),
            ("position_history_cleanup", _cleanup,
             CronTrigger(hour=2, minute=0, timezone=settings.scheduler_timezone), daily_budget),
        ]
        for name, func, trigger, budget in jobs:
            self.scheduler.add_job(
                self.run_job,
                trigger=trigger,
                args=[name, func, budget],
                id=name,
                name=name,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            logger.info("Scheduled job %s (%s)", name, trigger)

    def start(self) -> None:
        self.setup_jobs()
        self.scheduler.start()
        logger.info("Scheduler started with %d job(s)", len(self.scheduler.get_jobs()))

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    async def run_job(self, name: str, func: JobFunc, budget_seconds: int):
        """Run one job under its lock and time budget. Returns the job's result, or None."""
        owner = uuid.uuid4().hex
        lock_key = f"dispatch:job:{name}"
        redis = None
        locked = False
        try:
            redis = await self._redis_factory()
            locked = await acquire_lock(redis, lock_key, owner, budget_seconds * 1000 + LOCK_MARGIN_MS)
            if not locked:
                logger.info("Job %s already running elsewhere, skipped", name)
                return None
        except Exception as exc:
            logger.warning("Run lock unavailable for %s, running anyway: %s", name, exc)

        try:
            async with self._session_factory() as db:
                result = await asyncio.wait_for(func(db, redis), timeout=budget_seconds)
            logger.info("Job %s done: %s", name, result)
            return result
        except asyncio.TimeoutError:
            logger.error("Job %s exceeded its %ss budget, will resume next run", name, budget_seconds)
        except Exception as exc:
            logger.error("Job %s failed: %s", name, exc, exc_info=True)
        finally:
            if locked:
                try:
                    await release_lock(redis, lock_key, owner)
                except Exception as exc:
                    logger.warning("Could not release run lock for %s: %s", name, exc)
        return None
