"""
Driver–reservation matching engine.

Automatic flow (fired once per new reservation):
  1. Skip unless the reservation is still pending
  2. Read dispatch params; manual mode hands the reservation to operators
  3. Scan available drivers and resolve the pickup coordinates
  4. Drop drivers without GPS, already linked to a booking, or under the
     minimum balance; keep those inside the search radius
  5. Pick the nearest candidate (first seen wins on equal distance)
  6. Re-validate and assign reservation + driver in one transaction

Manual flow: an operator picks the driver; same balance/booking checks and
the same re-validating transaction.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

import redis.asyncio as aioredis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.models.driver import Driver
from app.models.reservation import Reservation
from app.schemas.schemas import Caller
from app.services.audit import record_system_error
from app.services.clock import utcnow
from app.services.errors import FailedPrecondition, InvalidArgument, NotFound, Unauthenticated
from app.services.geo import distance_km, fallback_coordinates
from app.services.money import driver_balance, round_half_up
from app.services.notifications import notify_admin, notify_driver
from app.services.params import get_params
from app.services.rides import release_driver_best_effort
from app.services.transactions import atomic, lock_row

logger = logging.getLogger(__name__)

MIN_DRIVER_BALANCE = 1000
# Used for the ETA/distance fields when either side has no coordinates.
DEFAULT_MANUAL_DISTANCE_KM = 5.0
MINUTES_PER_KM = 3


class AssignmentOutcome(str, Enum):
    ASSIGNED = "assigned"
    SKIPPED = "skipped"
    MANUAL_MODE = "manual_mode"
    NO_DRIVER = "no_driver"
    NO_ELIGIBLE_DRIVER = "no_eligible_driver"
    FAILED = "failed"


@dataclass(frozen=True)
class Candidate:
    driver: Driver
    distance_km: float


def rank_candidates(
    drivers: Iterable[Driver],
    origin_lat: float,
    origin_lng: float,
    radius_km: float,
) -> list[Candidate]:
    """Eligible drivers within `radius_km`, in the order they were given."""
    candidates: list[Candidate] = []
    for driver in drivers:
        if driver.lat is None or driver.lng is None:
            logger.debug("driver=%s skipped: no GPS", driver.id)
            continue
        if driver.has_booking:
            logger.debug("driver=%s skipped: already on a ride", driver.id)
            continue
        balance = driver_balance(driver)
        if balance < MIN_DRIVER_BALANCE:
            logger.info(
                "driver=%s skipped: balance %s below %s", driver.id, balance, MIN_DRIVER_BALANCE
            )
            continue

        distance = distance_km(origin_lat, origin_lng, driver.lat, driver.lng)
        if distance <= radius_km:
            candidates.append(Candidate(driver=driver, distance_km=distance))
    return candidates


def pick_nearest(candidates: list[Candidate]) -> Candidate | None:
    """Minimum distance; min() keeps the first of equal keys, which is the tie-break."""
    if not candidates:
        return None
    return min(candidates, key=lambda c: c.distance_km)


async def auto_assign(
    db: AsyncSession,
    reservation_id: str,
    redis: aioredis.Redis | None = None,
) -> AssignmentOutcome:
    """
    Fired when a reservation is created. Never raises: every failure ends
    in a system_errors row so a re-delivered event cannot double-assign.
    """
    reservation = await db.get(Reservation, reservation_id, populate_existing=True)
    if reservation is None or reservation.status != "pending":
        logger.info("Reservation %s not pending, skipping auto-assignment", reservation_id)
        return AssignmentOutcome.SKIPPED

    params = await get_params(db, redis)

    if not params.auto_assign:
        logger.info("Manual mode active, reservation %s left for operators", reservation_id)
        await notify_admin(
            db,
            type="manual_reservation_pending",
            reservation_id=reservation_id,
            message="New reservation waiting - manual assignment mode",
            payload={
                "client_name": reservation.client_name,
                "origin": reservation.origin_address,
                "destination": reservation.destination_address,
            },
        )
        return AssignmentOutcome.MANUAL_MODE

    try:
        result = await db.execute(
            select(Driver).where(Driver.status == "available").order_by(Driver.created_at, Driver.id)
        )
        drivers = result.scalars().all()

        if not drivers:
            logger.warning("No driver available for reservation %s", reservation_id)
            await notify_admin(
                db,
                type="no_driver_available",
                reservation_id=reservation_id,
                message="No driver available",
                payload={"client_name": reservation.client_name},
            )
            return AssignmentOutcome.NO_DRIVER

        approximate = False
        if reservation.has_origin_coords:
            origin = (reservation.origin_lat, reservation.origin_lng)
        else:
            origin = fallback_coordinates(reservation.origin_address)
            approximate = True
            async with atomic(db):
                reservation.origin_lat, reservation.origin_lng = origin
                reservation.origin_approximate = True

        chosen = pick_nearest(rank_candidates(drivers, origin[0], origin[1], params.search_radius_km))
        if chosen is None:
            logger.warning(
                "No eligible driver within %s km for reservation %s",
                params.search_radius_km, reservation_id,
            )
            await notify_admin(
                db,
                type="no_driver_in_range",
                reservation_id=reservation_id,
                message="No eligible driver (balance or distance) in the area",
            )
            return AssignmentOutcome.NO_ELIGIBLE_DRIVER

        logger.info(
            "Selected driver=%s (%.2f km) for reservation %s",
            chosen.driver.id, chosen.distance_km, reservation_id,
        )

        async with atomic(db):
            driver, reservation = await _assign_driver(
                db,
                reservation_id,
                chosen.driver.id,
                chosen.distance_km,
                mode="automatic",
            )
    except Exception as exc:
        await db.rollback()
        logger.error("Auto-assignment failed for reservation %s: %s", reservation_id, exc)
        await record_system_error(db, "auto_assignment_error", exc, reservation_id=reservation_id)
        return AssignmentOutcome.FAILED

    logger.info("Matched reservation=%s to driver=%s", reservation_id, driver.id)

    if params.notifications_enabled:
        await _notify_new_ride(db, driver, reservation)
    await notify_admin(
        db,
        type="assignment_succeeded",
        reservation_id=reservation_id,
        message=(
            f"{driver.name} assigned ({chosen.distance_km:.1f} km)"
            + (" - approximate pickup" if approximate else "")
        ),
    )
    return AssignmentOutcome.ASSIGNED


async def assign_driver_manual(
    db: AsyncSession,
    reservation_id: str,
    driver_id: str,
    caller: Caller | None,
    redis: aioredis.Redis | None = None,
) -> dict:
    if caller is None:
        raise Unauthenticated("Not authenticated")
    if not reservation_id or not driver_id:
        raise InvalidArgument("reservation_id and driver_id are required")

    reservation = await db.get(Reservation, reservation_id, populate_existing=True)
    if reservation is None:
        raise NotFound("Reservation not found")
    if reservation.status in ("completed", "cancelled"):
        raise FailedPrecondition(f"Reservation is already {reservation.status}")

    previous = reservation.assigned_driver_id
    if previous and previous != driver_id:
        logger.info("Releasing previous driver=%s from reservation %s", previous, reservation_id)
        await release_driver_best_effort(db, previous, reservation_id)

    driver = await db.get(Driver, driver_id, populate_existing=True)
    if driver is None:
        raise NotFound("Driver not found")
    if driver.has_booking:
        raise FailedPrecondition("Driver is already on a ride")

    balance = driver_balance(driver)
    if balance < MIN_DRIVER_BALANCE:
        logger.warning("Manual assignment rejected: driver=%s balance %s", driver_id, balance)
        raise FailedPrecondition(
            f"Insufficient balance ({balance:g}). The driver needs at least {MIN_DRIVER_BALANCE}."
        )

    distance = DEFAULT_MANUAL_DISTANCE_KM
    if driver.lat is not None and driver.lng is not None and reservation.has_origin_coords:
        distance = distance_km(reservation.origin_lat, reservation.origin_lng, driver.lat, driver.lng)

    try:
        async with atomic(db):
            driver, reservation = await _assign_driver(
                db,
                reservation_id,
                driver_id,
                distance,
                mode="manual",
                assigned_by=caller.identity,
            )
    except StaleDataError as exc:
        raise FailedPrecondition("Reservation or driver changed concurrently, retry") from exc

    logger.info("Manual assignment reservation=%s driver=%s by %s", reservation_id, driver_id, caller.identity)

    params = await get_params(db, redis)
    if params.notifications_enabled:
        await _notify_new_ride(db, driver, reservation)

    return {
        "success": True,
        "message": f"{driver.name} assigned",
        "driver": {
            "name": driver.name,
            "phone": driver.phone,
            "distance_km": round(distance, 2),
        },
    }


async def _assign_driver(
    db: AsyncSession,
    reservation_id: str,
    driver_id: str,
    distance: float,
    mode: str,
    assigned_by: str | None = None,
) -> tuple[Driver, Reservation]:
    """
    Re-read both rows under lock, re-check everything the selection relied
    on, then link them. Must run inside `atomic`.
    """
    reservation = await lock_row(db, Reservation, reservation_id)
    if reservation is None:
        raise NotFound("Reservation not found")
    if mode == "automatic" and reservation.status != "pending":
        raise FailedPrecondition("Reservation is no longer pending")
    if reservation.status in ("completed", "cancelled"):
        raise FailedPrecondition(f"Reservation is already {reservation.status}")

    driver = await lock_row(db, Driver, driver_id)
    if driver is None:
        raise NotFound("Driver not found")
    if mode == "automatic" and driver.status != "available":
        raise FailedPrecondition("Driver no longer available")
    if driver.has_booking:
        raise FailedPrecondition("Driver no longer available")
    balance = driver_balance(driver)
    if balance < MIN_DRIVER_BALANCE:
        raise FailedPrecondition(
            f"Insufficient balance at transaction time ({balance:g} < {MIN_DRIVER_BALANCE})"
        )

    now = utcnow()
    reservation.assigned_driver_id = driver.id
    reservation.driver_name = driver.name
    reservation.driver_phone = driver.phone
    reservation.status = "assigned"
    reservation.assigned_at = now
    reservation.driver_distance_m = round_half_up(distance * 1000)
    reservation.driver_eta_minutes = round_half_up(distance * MINUTES_PER_KM)
    reservation.assignment_mode = mode
    reservation.assigned_by = assigned_by

    driver.status = "on_ride"
    driver.current_booking_id = reservation.id
    driver.active_reservation_id = reservation.id
    driver.last_assigned_at = now
    return driver, reservation


async def _notify_new_ride(db: AsyncSession, driver: Driver, reservation: Reservation) -> None:
    await notify_driver(
        db,
        driver_id=driver.id,
        recipient=driver.phone,
        type="new_ride",
        reservation_id=reservation.id,
        message=f"New ride: {reservation.origin_address} -> {reservation.destination_address}",
        payload={
            "origin": reservation.origin_address,
            "destination": reservation.destination_address,
            "client_name": reservation.client_name,
            "client_phone": reservation.client_phone,
            "estimated_price": reservation.estimated_price,
        },
    )
