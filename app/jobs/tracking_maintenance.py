"""
Daily housekeeping for the position history: retention pruning and the
per-driver rollup of the previous day.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.tracking import DailyTrackingStats, PositionSample
from app.services.audit import record_system_log
from app.services.clock import utcnow
from app.services.tracking_queries import local_day_bounds, local_today, summarize_track

logger = logging.getLogger(__name__)
settings = get_settings()


async def prune_position_history(
    db: AsyncSession,
    now: datetime | None = None,
    batch_size: int | None = None,
) -> int:
    """Delete samples past the retention window, batch by batch until none are left."""
    now = now or utcnow()
    batch_size = batch_size or settings.history_cleanup_batch_size
    cutoff = now - timedelta(days=settings.history_retention_days)

    deleted = 0
    while True:
        result = await db.execute(
            select(PositionSample.id).where(PositionSample.recorded_at < cutoff).limit(batch_size)
        )
        ids = result.scalars().all()
        if not ids:
            break
        await db.execute(delete(PositionSample).where(PositionSample.id.in_(ids)))
        await db.commit()
        deleted += len(ids)
        logger.debug("Pruned %d position sample(s), %d so far", len(ids), deleted)

    logger.info("Position history cleanup: %d sample(s) older than %s deleted", deleted, cutoff.isoformat())
    await record_system_log(
        db,
        "cleanup_position_history",
        {"deleted": deleted, "cutoff": cutoff.isoformat()},
    )
    return deleted


async def rollup_daily_tracking_stats(db: AsyncSession, now: datetime | None = None) -> int:
    """One daily_tracking_stats row per driver that moved yesterday (local time)."""
    now = now or utcnow()
    day = local_today(now) - timedelta(days=1)
    start, end = local_day_bounds(day)

    result = await db.execute(
        select(PositionSample.driver_id)
        .where(PositionSample.recorded_at >= start, PositionSample.recorded_at < end)
        .distinct()
    )
    driver_ids = sorted(result.scalars().all())

    existing = await db.execute(
        select(DailyTrackingStats.driver_id).where(DailyTrackingStats.day == day)
    )
    done = set(existing.scalars().all())

    written = 0
    for driver_id in driver_ids:
        if driver_id in done:
            continue
        samples = await db.execute(
            select(PositionSample)
            .where(
                PositionSample.driver_id == driver_id,
                PositionSample.recorded_at >= start,
                PositionSample.recorded_at < end,
            )
            .order_by(PositionSample.recorded_at)
        )
        summary = summarize_track(samples.scalars().all())
        db.add(DailyTrackingStats(
            driver_id=driver_id,
            day=day,
            total_distance_km=summary["distance_km"],
            total_time_minutes=summary["total_time_minutes"],
            average_speed_kmh=summary["average_speed_kmh"],
            max_speed_kmh=summary["max_speed_kmh"],
            positions_count=summary["positions_count"],
        ))
        written += 1

    await db.commit()
    logger.info("Daily tracking rollup for %s: %d driver(s)", day.isoformat(), written)
    return written
