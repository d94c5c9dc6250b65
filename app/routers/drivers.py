"""
Drivers router: POST /v1/drivers (create), PATCH /v1/drivers/{id}/status,
                POST /v1/drivers/{id}/location,
                GET /v1/drivers/{id}/tracking/history|stats
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app import events
from app.database import get_db
from app.events import fire_and_forget
from app.middleware.auth import require_caller
from app.models.driver import Driver
from app.models.tracking import PositionSample
from app.schemas.schemas import (
    Caller, DriverCreateRequest, DriverResponse, DriverStatusRequest, LocationUpdateRequest,
    PositionSnapshot, TrackingHistoryResponse, TrackingStatsResponse,
)
from app.services.clock import as_utc, utcnow
from app.services.errors import InvalidArgument, NotFound
from app.services.tracking_queries import get_driver_tracking_history, get_driver_tracking_stats
from app.services.transactions import atomic, lock_row

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/drivers", tags=["Drivers"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=DriverResponse)
async def create_driver(
    payload: DriverCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a new driver. No auth required for onboarding."""
    driver = Driver(
        name=payload.name,
        phone=payload.phone,
        status="offline",
        legacy_balance=payload.balance,
        available_balance=payload.balance,
    )
    db.add(driver)
    await db.commit()
    await db.refresh(driver)
    return DriverResponse.model_validate(driver)


@router.patch("/{driver_id}/status", status_code=status.HTTP_200_OK)
async def update_driver_status(
    driver_id: str,
    payload: DriverStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    """Toggle driver online/offline (available ↔ offline); on_ride is set by assignment only."""
    new_status = payload.status.value
    if new_status not in {"offline", "available"}:
        raise InvalidArgument("status must be one of offline, available")

    async with atomic(db):
        driver = await lock_row(db, Driver, driver_id)
        if driver is None:
            raise NotFound("Driver not found")
        driver.status = new_status
        if new_status == "available":
            driver.last_activity_at = utcnow()
            driver.inactivity_detected = False
    return {"id": driver_id, "status": new_status}


@router.post("/{driver_id}/location", status_code=status.HTTP_204_NO_CONTENT)
async def update_location(
    driver_id: str,
    payload: LocationUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Store the new position and its history sample, then hand the change to
    the telemetry and geofence handlers in the background.
    """
    recorded_at = as_utc(payload.timestamp) or utcnow()
    async with atomic(db):
        driver = await lock_row(db, Driver, driver_id)
        if driver is None:
            raise NotFound("Driver not found")

        before = None
        if driver.lat is not None and driver.lng is not None:
            before = PositionSnapshot(
                lat=driver.lat,
                lng=driver.lng,
                timestamp=driver.position_at,
                accuracy=driver.position_accuracy,
                speed=driver.position_speed,
            )
        driver.lat = payload.lat
        driver.lng = payload.lng
        driver.position_at = recorded_at
        driver.position_accuracy = payload.accuracy
        driver.position_speed = payload.speed
        driver.last_activity_at = utcnow()
        booking_id = driver.current_booking_id or driver.active_reservation_id

        sample = PositionSample(
            driver_id=driver_id,
            session_id=payload.session_id,
            lat=payload.lat,
            lng=payload.lng,
            speed=payload.speed,
            accuracy=payload.accuracy,
            recorded_at=recorded_at,
        )
        db.add(sample)

    after = PositionSnapshot(
        lat=payload.lat,
        lng=payload.lng,
        timestamp=recorded_at,
        accuracy=payload.accuracy,
        speed=payload.speed,
    )
    fire_and_forget(events.driver_position_changed(driver_id, before, after, booking_id))
    fire_and_forget(events.position_sample_created(sample.id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{driver_id}/tracking/history", response_model=TrackingHistoryResponse)
async def tracking_history(
    driver_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    session_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_caller),
):
    return await get_driver_tracking_history(db, driver_id, start, end, session_id)


@router.get("/{driver_id}/tracking/stats", response_model=TrackingStatsResponse)
async def tracking_stats(
    driver_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_caller),
):
    return await get_driver_tracking_stats(db, driver_id)
