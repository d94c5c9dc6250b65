"""
Driver payout settlement.

A reservation is settled exactly once: when its payment is validated after
the ride completed, 70% of the price (rounded half-up) goes to the driver's
balance and the remainder is the platform share. The credit and the
reservation's credited flag are written in one transaction that re-checks
every guard against freshly locked rows, so a replayed or concurrent
trigger finds the reservation already credited and becomes a no-op.
"""
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.driver import Driver
from app.models.ledger import CreditLog
from app.models.reservation import Reservation
from app.schemas.schemas import Caller, ReservationSnapshot
from app.services.audit import record_credit, record_credit_error
from app.services.clock import utcnow
from app.services.errors import NotFound, Unauthenticated
from app.services.money import driver_balance, format_money, split_payout, to_decimal
from app.services.notifications import notify_driver
from app.services.transactions import atomic, lock_row

logger = logging.getLogger(__name__)

TRIGGER_VERSION = "engine-v2"
RECOVERY_VERSION = "recovery-manual"
DUPLICATE_AUDIT_WINDOW = 1000


class CreditStatus(str, Enum):
    CREDITED = "credited"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class CreditResult:
    status: CreditStatus
    reason: str | None = None
    operation_id: str | None = None
    driver_id: str | None = None
    ride_amount: Decimal | None = None
    driver_amount: Decimal | None = None
    platform_amount: Decimal | None = None
    balance_before: Decimal | None = None
    balance_after: Decimal | None = None

    @property
    def credited(self) -> bool:
        return self.status is CreditStatus.CREDITED


def is_payment_edge(before: ReservationSnapshot | None, after: ReservationSnapshot) -> bool:
    previously = before.payment_validated if before is not None else None
    return previously is not True and after.payment_validated is True


def new_operation_id(reservation_id: str) -> str:
    return f"credit_{reservation_id}_{int(time.time() * 1000)}"


async def on_reservation_updated(
    db: AsyncSession,
    reservation_id: str,
    before: ReservationSnapshot | None,
    after: ReservationSnapshot,
) -> CreditResult:
    """Reservation write hook. Only the payment-validated edge does anything. Never raises."""
    if not is_payment_edge(before, after):
        return CreditResult(CreditStatus.SKIPPED, reason="not a payment validation")

    if after.status != "completed":
        logger.info("Reservation %s paid but not completed (%s), no credit", reservation_id, after.status)
        return CreditResult(CreditStatus.SKIPPED, reason="not completed")
    if after.driver_credited is True:
        logger.info("Reservation %s already credited", reservation_id)
        return CreditResult(CreditStatus.SKIPPED, reason="already credited")
    if not after.assigned_driver_id:
        logger.warning("Reservation %s paid without an assigned driver", reservation_id)
        return CreditResult(CreditStatus.SKIPPED, reason="no driver assigned")
    if to_decimal(after.estimated_price) <= 0:
        logger.warning("Reservation %s has no usable price: %r", reservation_id, after.estimated_price)
        return CreditResult(CreditStatus.SKIPPED, reason="invalid price")

    return await settle(db, reservation_id, after.assigned_driver_id, TRIGGER_VERSION)


async def settle(
    db: AsyncSession,
    reservation_id: str,
    driver_id: str,
    version: str,
) -> CreditResult:
    """
    Run the credit transaction and its side effects. Failures end up in the
    credit_errors ledger and come back as a FAILED result.
    """
    operation_id = new_operation_id(reservation_id)
    try:
        async with atomic(db):
            result = await _credit_reservation(db, reservation_id, driver_id, version, operation_id)
    except Exception as exc:
        logger.error("Credit %s for reservation %s failed: %s", operation_id, reservation_id, exc)
        await record_credit_error(
            db,
            reservation_id=reservation_id,
            driver_id=driver_id,
            operation_id=operation_id,
            exc=exc,
        )
        return CreditResult(CreditStatus.FAILED, reason=str(exc), operation_id=operation_id, driver_id=driver_id)

    if not result.credited:
        logger.info("Credit for reservation %s skipped: %s", reservation_id, result.reason)
        return result

    logger.info(
        "Credited %s to driver=%s for reservation %s (balance %s -> %s, op=%s)",
        result.driver_amount, driver_id, reservation_id,
        result.balance_before, result.balance_after, operation_id,
    )

    await notify_driver(
        db,
        driver_id=driver_id,
        type="credit_received",
        reservation_id=reservation_id,
        message=f"{format_money(result.driver_amount)} credited for your ride",
        payload={
            "amount": format_money(result.driver_amount),
            "new_balance": format_money(result.balance_after),
        },
    )
    await record_credit(
        db,
        reservation_id=reservation_id,
        driver_id=driver_id,
        operation_id=operation_id,
        ride_amount=result.ride_amount,
        driver_amount=result.driver_amount,
        platform_amount=result.platform_amount,
        balance_before=result.balance_before,
        balance_after=result.balance_after,
        version=version,
    )
    return result


async def _credit_reservation(
    db: AsyncSession,
    reservation_id: str,
    driver_id: str,
    version: str,
    operation_id: str,
) -> CreditResult:
    """Transaction body; must run inside `atomic`."""
    reservation = await lock_row(db, Reservation, reservation_id)
    if reservation is None:
        raise NotFound(f"Reservation {reservation_id} not found")

    skip = None
    if reservation.driver_credited:
        skip = "already credited"
    elif reservation.status != "completed":
        skip = f"status changed to {reservation.status}"
    elif not reservation.payment_validated:
        skip = "payment not validated"
    elif reservation.assigned_driver_id != driver_id:
        skip = "assigned driver changed"
    if skip:
        return CreditResult(CreditStatus.SKIPPED, reason=skip, operation_id=operation_id, driver_id=driver_id)

    price = to_decimal(reservation.estimated_price)
    if price <= 0:
        return CreditResult(
            CreditStatus.SKIPPED, reason="invalid price", operation_id=operation_id, driver_id=driver_id
        )

    driver = await lock_row(db, Driver, driver_id)
    if driver is None:
        raise NotFound(f"Driver {driver_id} not found")

    driver_amount, platform_amount = split_payout(price)
    balance_before = to_decimal(driver_balance(driver))
    balance_after = balance_before + driver_amount
    now = utcnow()

    reservation.driver_credited = True
    reservation.credited_at = now
    reservation.credited_amount = driver_amount
    reservation.platform_amount = platform_amount
    reservation.credit_operation_id = operation_id
    reservation.credit_version = version
    reservation.balance_before_credit = balance_before
    reservation.balance_after_credit = balance_after

    new_balance = format_money(balance_after)
    driver.legacy_balance = new_balance
    driver.available_balance = new_balance
    driver.earnings_day = (driver.earnings_day or 0) + driver_amount
    driver.earnings_week = (driver.earnings_week or 0) + driver_amount
    driver.earnings_month = (driver.earnings_month or 0) + driver_amount
    driver.earnings_total = (driver.earnings_total or 0) + driver_amount
    driver.credited_rides = (driver.credited_rides or 0) + 1
    driver.last_credit_at = now
    driver.last_credit_amount = driver_amount
    driver.last_credit_reservation_id = reservation_id

    return CreditResult(
        CreditStatus.CREDITED,
        operation_id=operation_id,
        driver_id=driver_id,
        ride_amount=price,
        driver_amount=driver_amount,
        platform_amount=platform_amount,
        balance_before=balance_before,
        balance_after=balance_after,
    )


async def recover_missed_credits(db: AsyncSession, caller: Caller | None) -> dict:
    """Credit every completed + paid reservation the trigger missed, one transaction each."""
    if caller is None:
        raise Unauthenticated("Not authenticated")

    result = await db.execute(
        select(Reservation.id, Reservation.assigned_driver_id)
        .where(
            Reservation.status == "completed",
            Reservation.payment_validated.is_(True),
            Reservation.driver_credited.is_(False),
        )
        .order_by(Reservation.completed_at, Reservation.id)
    )
    pending = result.all()
    logger.info("Credit recovery by %s: %d reservation(s) to settle", caller.identity, len(pending))

    details = []
    recovered = 0
    for reservation_id, driver_id in pending:
        if not driver_id:
            details.append({"reservation_id": reservation_id, "success": False, "error": "no driver assigned"})
            continue
        outcome = await settle(db, reservation_id, driver_id, RECOVERY_VERSION)
        if outcome.credited:
            recovered += 1
            details.append({
                "reservation_id": reservation_id,
                "success": True,
                "amount": outcome.driver_amount,
            })
        else:
            details.append({
                "reservation_id": reservation_id,
                "success": False,
                "error": outcome.reason or outcome.status.value,
            })

    return {
        "success": True,
        "message": f"{recovered} reservation(s) recovered",
        "count": recovered,
        "details": details,
    }


async def audit_duplicate_credits(db: AsyncSession, caller: Caller | None) -> dict:
    """Read-only: reservations with more than one successful credit in the recent ledger."""
    if caller is None:
        raise Unauthenticated("Not authenticated")

    result = await db.execute(
        select(CreditLog)
        .where(CreditLog.success.is_(True))
        .order_by(CreditLog.created_at.desc())
        .limit(DUPLICATE_AUDIT_WINDOW)
    )
    by_reservation: dict[str, list[CreditLog]] = {}
    for entry in result.scalars():
        by_reservation.setdefault(entry.reservation_id, []).append(entry)

    duplicates = [
        {
            "reservation_id": reservation_id,
            "credit_count": len(entries),
            "total_credited": sum((e.driver_amount for e in entries), Decimal("0")),
            "details": [
                {
                    "operation_id": e.operation_id,
                    "driver_amount": e.driver_amount,
                    "created_at": e.created_at,
                }
                for e in entries
            ],
        }
        for reservation_id, entries in by_reservation.items()
        if len(entries) > 1
    ]
    if duplicates:
        logger.error("Duplicate credits detected on %d reservation(s)", len(duplicates))

    return {
        "success": True,
        "message": f"{len(duplicates)} duplicate(s) found",
        "duplicate_count": len(duplicates),
        "duplicates": duplicates,
    }
