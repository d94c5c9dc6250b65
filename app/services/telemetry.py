"""
Driver telemetry: per-update distance/speed bookkeeping, anomaly flags,
live tracking on the reservation being served, and geofence alerts.

Handlers run from event tasks and never raise.
"""
import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.reservation import Reservation
from app.models.tracking import DriverStats, Geofence, GeofenceEvent, PositionSample, TrackingAnomaly
from app.schemas.schemas import PositionSnapshot
from app.services.clock import as_utc, utcnow
from app.services.geo import distance_km

logger = logging.getLogger(__name__)
settings = get_settings()

MAX_PLAUSIBLE_SPEED_KMH = 120
MAX_ACCURACY_M = 50
DEFAULT_ELAPSED_SECONDS = 3
DEFAULT_TRAVEL_SPEED_KMH = 40
MS_TO_KMH = 3.6


def elapsed_seconds(before: datetime | None, after: datetime | None) -> float:
    if before is None or after is None:
        return DEFAULT_ELAPSED_SECONDS
    elapsed = (as_utc(after) - as_utc(before)).total_seconds()
    return elapsed if elapsed > 0 else DEFAULT_ELAPSED_SECONDS


def implied_speed_kmh(km: float, seconds: float) -> float:
    return km / (seconds / 3600)


def detect_anomalies(speed_kmh: float, accuracy: float | None) -> list[dict]:
    anomalies = []
    if speed_kmh > MAX_PLAUSIBLE_SPEED_KMH:
        anomalies.append({"type": "excessive_speed", "value": round(speed_kmh, 1)})
    if accuracy is not None and accuracy > MAX_ACCURACY_M:
        anomalies.append({"type": "low_accuracy", "value": accuracy})
    return anomalies


def travel_speed_kmh(reported_ms: float | None) -> float:
    """Device speed in km/h, or the city default when the device reports none."""
    if not reported_ms:
        return DEFAULT_TRAVEL_SPEED_KMH
    return reported_ms * MS_TO_KMH


def _local_day(moment: datetime):
    return as_utc(moment).astimezone(ZoneInfo(settings.scheduler_timezone)).date()


async def on_driver_position_update(
    db: AsyncSession,
    driver_id: str,
    before: PositionSnapshot | None,
    after: PositionSnapshot,
    booking_id: str | None = None,
) -> None:
    if before is None or before.lat is None or before.lng is None:
        return
    if after.lat is None or after.lng is None:
        return
    if before.lat == after.lat and before.lng == after.lng:
        return

    try:
        await _record_movement(db, driver_id, before, after, booking_id)
    except Exception as exc:
        await db.rollback()
        logger.error("Telemetry update failed for driver=%s: %s", driver_id, exc)


async def _record_movement(
    db: AsyncSession,
    driver_id: str,
    before: PositionSnapshot,
    after: PositionSnapshot,
    booking_id: str | None,
) -> None:
    km = distance_km(before.lat, before.lng, after.lat, after.lng)
    speed = implied_speed_kmh(km, elapsed_seconds(before.timestamp, after.timestamp))
    now = utcnow()

    anomalies = detect_anomalies(speed, after.accuracy)
    if anomalies:
        logger.warning("Tracking anomaly for driver=%s: %s", driver_id, anomalies)
        db.add(TrackingAnomaly(
            driver_id=driver_id,
            anomalies=anomalies,
            lat=after.lat,
            lng=after.lng,
            accuracy=after.accuracy,
            calculated_speed=speed,
        ))

    stats = await db.get(DriverStats, driver_id)
    if stats is None:
        stats = DriverStats(driver_id=driver_id, total_distance_today=0.0)
        db.add(stats)
    elif stats.last_update is None or _local_day(stats.last_update) != _local_day(now):
        stats.total_distance_today = 0.0
    stats.last_lat = after.lat
    stats.last_lng = after.lng
    stats.last_update = now
    stats.calculated_speed = speed
    stats.total_distance_today = (stats.total_distance_today or 0.0) + km

    if booking_id:
        reservation = await db.get(Reservation, booking_id, populate_existing=True)
        if reservation is None:
            logger.warning("Driver=%s linked to missing reservation %s", driver_id, booking_id)
        else:
            reservation.driver_lat = after.lat
            reservation.driver_lng = after.lng
            reservation.driver_position_at = after.timestamp or now
            reservation.real_distance_m = (reservation.real_distance_m or 0.0) + km * 1000
            reservation.last_tracking_update = now
            if reservation.has_destination_coords:
                remaining = distance_km(
                    after.lat, after.lng, reservation.destination_lat, reservation.destination_lng
                )
                hours = remaining / travel_speed_kmh(after.speed)
                reservation.estimated_arrival = now + timedelta(hours=hours)

    await db.commit()


async def check_geofences(db: AsyncSession, sample: PositionSample) -> list[dict]:
    """Alerts for every active zone containing the sample; stored as one event."""
    try:
        result = await db.execute(select(Geofence).where(Geofence.active.is_(True)))
        alerts = []
        for zone in result.scalars():
            distance = distance_km(sample.lat, sample.lng, zone.center_lat, zone.center_lng)
            if distance <= zone.radius_m / 1000:
                alerts.append({
                    "geofence_id": zone.id,
                    "name": zone.name,
                    "type": zone.type,
                    "distance_m": round(distance * 1000),
                })
        if not alerts:
            return []

        logger.info("Driver=%s inside %d geofence(s)", sample.driver_id, len(alerts))
        db.add(GeofenceEvent(driver_id=sample.driver_id, lat=sample.lat, lng=sample.lng, alerts=alerts))
        await db.commit()
        return alerts
    except Exception as exc:
        await db.rollback()
        logger.error("Geofence check failed for driver=%s: %s", sample.driver_id, exc)
        return []
