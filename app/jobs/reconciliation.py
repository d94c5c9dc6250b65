"""
Periodic repair of reservation/driver drift.

- assignment timeouts: assigned for too long -> back to pending, driver freed
- booking links: the two legacy link fields disagree -> made equal
- inactivity: no position/activity for 10 minutes -> driver forced offline

Every sweep is idempotent; running it again without new drift changes nothing.
"""
import logging
from datetime import datetime, timedelta

import redis.asyncio as aioredis
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.driver import Driver
from app.models.reservation import Reservation
from app.services.clock import as_utc, utcnow
from app.services.notifications import notify_admin, notify_driver
from app.services.params import get_params
from app.services.transactions import atomic, lock_row

logger = logging.getLogger(__name__)

INACTIVITY_THRESHOLD = timedelta(minutes=10)


async def sweep_assignment_timeouts(
    db: AsyncSession,
    redis: aioredis.Redis | None = None,
    now: datetime | None = None,
) -> int:
    """Returns the number of reservations put back to pending."""
    now = now or utcnow()
    params = await get_params(db, redis)
    cutoff = now - timedelta(minutes=params.reassign_delay_minutes)

    result = await db.execute(
        select(Reservation.id)
        .where(Reservation.status == "assigned", Reservation.assigned_at < cutoff)
        .order_by(Reservation.assigned_at)
    )
    stale_ids = result.scalars().all()
    if not stale_ids:
        return 0
    logger.info("%d reservation(s) assigned before %s", len(stale_ids), cutoff.isoformat())

    reset = 0
    for reservation_id in stale_ids:
        try:
            was_reset, released_driver = await _reset_timed_out(db, reservation_id, cutoff)
        except Exception as exc:
            logger.error("Timeout reset failed for reservation %s: %s", reservation_id, exc)
            continue
        if not was_reset:
            continue
        reset += 1
        if released_driver:
            await notify_driver(
                db,
                driver_id=released_driver,
                type="ride_removed",
                reservation_id=reservation_id,
                message="The ride was withdrawn after the acceptance delay",
            )
    return reset


async def _reset_timed_out(db: AsyncSession, reservation_id: str, cutoff: datetime) -> tuple[bool, str | None]:
    """
    One transaction per reservation: re-check, free the driver, reset.
    Returns (reset?, id of the released driver or None).
    """
    async with atomic(db):
        reservation = await lock_row(db, Reservation, reservation_id)
        if reservation is None or reservation.status != "assigned":
            return False, None
        if reservation.assigned_at is None or as_utc(reservation.assigned_at) >= as_utc(cutoff):
            return False, None

        driver_id = reservation.assigned_driver_id
        released = None
        if driver_id:
            driver = await lock_row(db, Driver, driver_id)
            if driver is not None and (
                not driver.has_booking
                or reservation_id in (driver.current_booking_id, driver.active_reservation_id)
            ):
                driver.release()
                released = driver_id
            elif driver is not None:
                logger.warning(
                    "Timed-out reservation %s: driver=%s is held elsewhere, left untouched",
                    reservation_id, driver_id,
                )

        reservation.status = "pending"
        reservation.assigned_driver_id = None
        reservation.driver_name = None
        reservation.driver_phone = None
        reservation.assigned_at = None
        reservation.assignment_mode = None
        reservation.assigned_by = None
        reservation.driver_distance_m = None
        reservation.driver_eta_minutes = None
        rejected = list(reservation.rejected_driver_ids or [])
        if driver_id and driver_id not in rejected:
            rejected.append(driver_id)
        reservation.rejected_driver_ids = rejected
        reservation.assignment_attempts = (reservation.assignment_attempts or 0) + 1

    logger.info("Reservation %s back to pending (driver=%s timed out)", reservation_id, driver_id)
    return True, released


async def sweep_booking_link_consistency(db: AsyncSession) -> int:
    """Returns the number of drivers whose links were rewritten."""
    result = await db.execute(
        select(Driver.id).where(Driver.current_booking_id.is_distinct_from(Driver.active_reservation_id))
    )
    driver_ids = result.scalars().all()

    fixed = 0
    for driver_id in driver_ids:
        try:
            async with atomic(db):
                driver = await lock_row(db, Driver, driver_id)
                if driver is None or driver.current_booking_id == driver.active_reservation_id:
                    continue
                resolved = driver.current_booking_id or driver.active_reservation_id
                if resolved is None:
                    continue
                driver.current_booking_id = resolved
                driver.active_reservation_id = resolved
        except Exception as exc:
            logger.error("Link repair failed for driver=%s: %s", driver_id, exc)
            continue
        logger.info("Driver=%s booking links aligned on %s", driver_id, resolved)
        fixed += 1
    return fixed


async def sweep_inactive_drivers(db: AsyncSession, now: datetime | None = None) -> int:
    """Force silent drivers offline; one aggregated admin notification per run."""
    now = now or utcnow()
    threshold = now - INACTIVITY_THRESHOLD
    last_seen = func.coalesce(Driver.last_activity_at, Driver.position_at)

    result = await db.execute(
        select(Driver)
        .where(Driver.status.in_(("available", "on_ride")), last_seen < threshold)
        .order_by(Driver.id)
        .execution_options(populate_existing=True)
    )
    drivers = result.scalars().all()
    if not drivers:
        return 0

    inactive = []
    for driver in drivers:
        inactive.append({"id": driver.id, "name": driver.name, "previous_status": driver.status})
        driver.status = "offline"
        driver.inactivity_detected = True
        driver.last_inactivity_check = now
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.warning("%d driver(s) set offline for inactivity", len(inactive))
    await notify_admin(
        db,
        type="inactive_drivers",
        message=f"{len(inactive)} driver(s) set offline after 10 minutes without activity",
        payload={"drivers": inactive},
    )
    return len(inactive)
