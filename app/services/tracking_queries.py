"""
Read-only tracking projections: raw position history and
today/week/month/total driving statistics.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.tracking import DailyTrackingStats, PositionSample
from app.services.clock import as_utc, utcnow
from app.services.errors import InvalidArgument
from app.services.geo import distance_km
from app.services.telemetry import MS_TO_KMH

logger = logging.getLogger(__name__)
settings = get_settings()

HISTORY_LIMIT = 1000


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a local calendar day, expressed in UTC."""
    tz = ZoneInfo(settings.scheduler_timezone)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_today(now: datetime) -> date:
    return as_utc(now).astimezone(ZoneInfo(settings.scheduler_timezone)).date()


def summarize_track(samples: Sequence[PositionSample]) -> dict:
    """Distance/time/speed summary of time-ordered samples."""
    distance = 0.0
    for prev, cur in zip(samples, samples[1:]):
        distance += distance_km(prev.lat, prev.lng, cur.lat, cur.lng)

    minutes = 0.0
    if len(samples) > 1:
        minutes = (as_utc(samples[-1].recorded_at) - as_utc(samples[0].recorded_at)).total_seconds() / 60

    speeds = [s.speed * MS_TO_KMH for s in samples if s.speed]
    return {
        "distance_km": distance,
        "total_time_minutes": minutes,
        "average_speed_kmh": distance / (minutes / 60) if minutes > 0 else 0.0,
        "max_speed_kmh": max(speeds, default=0.0),
        "positions_count": len(samples),
    }


def _combine_daily(rows: Sequence[DailyTrackingStats]) -> dict:
    distance = sum(r.total_distance_km for r in rows)
    minutes = sum(r.total_time_minutes for r in rows)
    return {
        "distance_km": distance,
        "total_time_minutes": minutes,
        "average_speed_kmh": distance / (minutes / 60) if minutes > 0 else 0.0,
        "max_speed_kmh": max((r.max_speed_kmh for r in rows), default=0.0),
        "positions_count": sum(r.positions_count for r in rows),
    }


async def get_driver_tracking_history(
    db: AsyncSession,
    driver_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    session_id: str | None = None,
) -> dict:
    if not driver_id:
        raise InvalidArgument("driver_id is required")

    query = select(PositionSample).where(PositionSample.driver_id == driver_id)
    if start is not None:
        query = query.where(PositionSample.recorded_at >= as_utc(start))
    if end is not None:
        query = query.where(PositionSample.recorded_at <= as_utc(end))
    if session_id:
        query = query.where(PositionSample.session_id == session_id)
    query = query.order_by(PositionSample.recorded_at).limit(HISTORY_LIMIT)

    result = await db.execute(query)
    positions = [
        {
            "lat": s.lat,
            "lng": s.lng,
            "speed": s.speed,
            "accuracy": s.accuracy,
            "timestamp": as_utc(s.recorded_at),
        }
        for s in result.scalars()
    ]
    return {"success": True, "count": len(positions), "positions": positions}


async def get_driver_tracking_stats(
    db: AsyncSession,
    driver_id: str,
    now: datetime | None = None,
) -> dict:
    if not driver_id:
        raise InvalidArgument("driver_id is required")
    now = now or utcnow()
    today = local_today(now)
    day_start, day_end = local_day_bounds(today)

    result = await db.execute(
        select(PositionSample)
        .where(
            PositionSample.driver_id == driver_id,
            PositionSample.recorded_at >= day_start,
            PositionSample.recorded_at < day_end,
        )
        .order_by(PositionSample.recorded_at)
    )
    today_stats = summarize_track(result.scalars().all())

    result = await db.execute(
        select(DailyTrackingStats)
        .where(DailyTrackingStats.driver_id == driver_id)
        .order_by(DailyTrackingStats.day)
    )
    daily = result.scalars().all()
    week = [r for r in daily if r.day >= today - timedelta(days=7)]
    month = [r for r in daily if r.day >= today - timedelta(days=30)]

    return {
        "success": True,
        "stats": {
            "today": today_stats,
            "week": _combine_daily(week),
            "month": _combine_daily(month),
            "total": _combine_daily(daily),
        },
    }
