"""
Write-triggered background handlers.

Routers call these after committing a write. Each handler runs as its own
asyncio task with its own session and logs every failure instead of
raising, so a failed side effect never reaches the request that caused it.
"""
import asyncio
import logging
from typing import Coroutine

from app.database import AsyncSessionLocal
from app.models.tracking import PositionSample
from app.redis_client import get_redis
from app.schemas.schemas import PositionSnapshot, ReservationSnapshot
from app.services.matching import auto_assign
from app.services.settlement import on_reservation_updated
from app.services.telemetry import check_geofences, on_driver_position_update

logger = logging.getLogger(__name__)

# Running tasks are referenced here until done; the loop only keeps weak refs.
_tasks: set[asyncio.Task] = set()


def fire_and_forget(coro: Coroutine) -> asyncio.Task:
    task = asyncio.create_task(coro)
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    return task


async def _redis_or_none():
    try:
        return await get_redis()
    except Exception as exc:
        logger.warning("Redis unavailable for event handler: %s", exc)
        return None


async def reservation_created(reservation_id: str) -> None:
    try:
        redis = await _redis_or_none()
        async with AsyncSessionLocal() as db:
            outcome = await auto_assign(db, reservation_id, redis)
        logger.info("Auto-assignment for reservation %s: %s", reservation_id, outcome.value)
    except Exception as exc:
        logger.error("reservation_created handler failed for %s: %s", reservation_id, exc, exc_info=True)


async def reservation_updated(
    reservation_id: str,
    before: ReservationSnapshot | None,
    after: ReservationSnapshot,
) -> None:
    try:
        async with AsyncSessionLocal() as db:
            await on_reservation_updated(db, reservation_id, before, after)
    except Exception as exc:
        logger.error("reservation_updated handler failed for %s: %s", reservation_id, exc, exc_info=True)


async def driver_position_changed(
    driver_id: str,
    before: PositionSnapshot | None,
    after: PositionSnapshot,
    booking_id: str | None,
) -> None:
    try:
        async with AsyncSessionLocal() as db:
            await on_driver_position_update(db, driver_id, before, after, booking_id)
    except Exception as exc:
        logger.error("driver_position_changed handler failed for driver=%s: %s", driver_id, exc, exc_info=True)


async def position_sample_created(sample_id: str) -> None:
    try:
        async with AsyncSessionLocal() as db:
            sample = await db.get(PositionSample, sample_id)
            if sample is not None:
                await check_geofences(db, sample)
    except Exception as exc:
        logger.error("position_sample_created handler failed for %s: %s", sample_id, exc, exc_info=True)
