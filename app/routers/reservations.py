"""
Reservations router: POST /v1/reservations, GET /v1/reservations/{id},
                     POST /v1/reservations/{id}/assign|complete|cancel|payment
"""
import logging
from typing import Optional

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app import events
from app.database import get_db
from app.events import fire_and_forget
from app.middleware.auth import get_caller, require_caller
from app.middleware.idempotency import check_idempotency, store_idempotency_result
from app.models.reservation import Reservation
from app.redis_client import get_redis
from app.schemas.schemas import (
    ActionResponse, AssignDriverRequest, AssignDriverResponse, CancelReservationRequest, Caller,
    CompleteRideRequest, PaymentValidationResponse, ReservationCreateRequest, ReservationResponse,
    ReservationSnapshot,
)
from app.services.errors import FailedPrecondition, NotFound
from app.services.matching import assign_driver_manual
from app.services.rides import cancel_reservation, complete_ride
from app.services.settlement import is_payment_edge
from app.services.transactions import atomic, lock_row

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/reservations", tags=["Reservations"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ReservationResponse)
async def create_reservation(
    payload: ReservationCreateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_caller),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    # 1. Idempotency check
    if idempotency_key:
        cached = await check_idempotency(request)
        if cached:
            return cached

    # 2. Persist as pending
    reservation = Reservation(
        status="pending",
        origin_address=payload.origin_address,
        origin_lat=payload.origin_lat,
        origin_lng=payload.origin_lng,
        destination_address=payload.destination_address,
        destination_lat=payload.destination_lat,
        destination_lng=payload.destination_lng,
        client_name=payload.client_name,
        client_phone=payload.client_phone,
        estimated_price=payload.estimated_price,
    )
    db.add(reservation)
    await db.commit()
    await db.refresh(reservation)
    logger.info("Reservation %s created by %s", reservation.id, caller.identity)

    # 3. Automatic assignment runs in the background
    fire_and_forget(events.reservation_created(reservation.id))

    response = ReservationResponse.model_validate(reservation)
    if idempotency_key:
        await store_idempotency_result(idempotency_key, 201, response.model_dump(mode="json"))
    return response


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_caller),
):
    reservation = await db.get(Reservation, reservation_id, populate_existing=True)
    if reservation is None:
        raise NotFound("Reservation not found")
    return ReservationResponse.model_validate(reservation)


@router.post("/{reservation_id}/assign", response_model=AssignDriverResponse)
async def assign_driver(
    reservation_id: str,
    payload: AssignDriverRequest,
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
    caller: Optional[Caller] = Depends(get_caller),
):
    return await assign_driver_manual(db, reservation_id, payload.driver_id, caller, redis)


@router.post("/{reservation_id}/complete", response_model=ActionResponse)
async def complete(
    reservation_id: str,
    payload: CompleteRideRequest,
    db: AsyncSession = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
):
    return await complete_ride(db, reservation_id, payload.driver_id, caller)


@router.post("/{reservation_id}/cancel", response_model=ActionResponse)
async def cancel(
    reservation_id: str,
    payload: CancelReservationRequest,
    db: AsyncSession = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
):
    return await cancel_reservation(db, reservation_id, payload.reason, caller)


@router.post("/{reservation_id}/payment", response_model=PaymentValidationResponse)
async def validate_payment(
    reservation_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_caller),
):
    """Mark the ride as paid; the settlement hook credits the driver if this is the payment edge."""
    async with atomic(db):
        reservation = await lock_row(db, Reservation, reservation_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        if reservation.status == "cancelled":
            raise FailedPrecondition("Cancelled reservations cannot be paid")
        before = ReservationSnapshot.model_validate(reservation)
        reservation.payment_validated = True
    after = ReservationSnapshot.model_validate(reservation)
    logger.info("Payment validated for reservation %s by %s", reservation_id, caller.identity)

    settlement = "not_applicable"
    if is_payment_edge(before, after):
        fire_and_forget(events.reservation_updated(reservation_id, before, after))
        settlement = "scheduled"

    return PaymentValidationResponse(
        reservation_id=reservation_id,
        payment_validated=True,
        settlement=settlement,
    )
