"""
Ride completion, cancellation, and the driver-release step they share with
the matching engine and the timeout sweep.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.driver import Driver
from app.models.reservation import Reservation
from app.schemas.schemas import Caller
from app.services.clock import utcnow
from app.services.errors import FailedPrecondition, InvalidArgument, NotFound, Unauthenticated
from app.services.transactions import atomic, lock_row

logger = logging.getLogger(__name__)


async def _release_locked(db: AsyncSession, driver_id: str, reservation_id: str) -> Driver | None:
    """Release step for callers already inside a transaction. Returns the released driver."""
    driver = await lock_row(db, Driver, driver_id)
    if driver is None:
        logger.warning("Release skipped: driver=%s not found", driver_id)
        return None
    if driver.has_booking and reservation_id not in (
        driver.current_booking_id,
        driver.active_reservation_id,
    ):
        logger.warning(
            "Release skipped: driver=%s is linked to %s, not %s",
            driver_id, driver.current_booking_id or driver.active_reservation_id, reservation_id,
        )
        return None
    driver.release()
    return driver


async def release_driver(db: AsyncSession, driver_id: str, reservation_id: str) -> bool:
    """
    Put a driver back in the available pool if it is held by `reservation_id`
    (or holds nothing at all). A driver linked to another booking is left
    untouched. Returns True when the driver was released.
    """
    async with atomic(db):
        return await _release_locked(db, driver_id, reservation_id) is not None


async def release_driver_best_effort(db: AsyncSession, driver_id: str, reservation_id: str) -> bool:
    try:
        return await release_driver(db, driver_id, reservation_id)
    except Exception as exc:
        logger.warning("Could not release driver=%s from reservation=%s: %s", driver_id, reservation_id, exc)
        return False


async def complete_ride(
    db: AsyncSession,
    reservation_id: str,
    driver_id: str,
    caller: Caller | None,
) -> dict:
    """
    Reservation → completed, then driver → available. The two writes commit
    separately; a driver left linked after a partial failure is released by
    calling this again. Only the assigned driver may complete an assigned ride.
    """
    if caller is None:
        raise Unauthenticated("Not authenticated")
    if not reservation_id or not driver_id:
        raise InvalidArgument("reservation_id and driver_id are required")

    async with atomic(db):
        reservation = await lock_row(db, Reservation, reservation_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        if reservation.status == "cancelled":
            raise FailedPrecondition("Reservation was cancelled")
        if reservation.assigned_driver_id and reservation.assigned_driver_id != driver_id:
            raise FailedPrecondition("Reservation is assigned to another driver")
        first_completion = reservation.status != "completed"
        if first_completion:
            reservation.status = "completed"
            reservation.completed_at = utcnow()

    async with atomic(db):
        driver = await _release_locked(db, driver_id, reservation_id)
        if driver is not None and first_completion:
            driver.completed_rides = (driver.completed_rides or 0) + 1

    logger.info("Ride %s completed by driver=%s (caller=%s)", reservation_id, driver_id, caller.identity)
    return {"success": True, "message": "Ride completed"}


async def cancel_reservation(
    db: AsyncSession,
    reservation_id: str,
    reason: str | None,
    caller: Caller | None,
) -> dict:
    """
    Status check, driver release and the cancelled write share one
    transaction: reservation locked first, then the driver.
    """
    if caller is None:
        raise Unauthenticated("Not authenticated")
    if not reservation_id:
        raise InvalidArgument("reservation_id is required")

    async with atomic(db):
        reservation = await lock_row(db, Reservation, reservation_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        if reservation.status == "completed":
            raise FailedPrecondition("Completed rides cannot be cancelled")
        if reservation.status == "cancelled":
            return {"success": True, "message": "Reservation already cancelled"}

        if reservation.assigned_driver_id:
            await _release_locked(db, reservation.assigned_driver_id, reservation_id)
        reservation.status = "cancelled"
        reservation.cancellation_reason = reason or "Not specified"
        reservation.cancelled_at = utcnow()
        reservation.cancelled_by = caller.identity

    logger.info("Reservation %s cancelled by %s", reservation_id, caller.identity)
    return {"success": True, "message": "Reservation cancelled"}
