"""
Writers for the append-only audit records (system errors, system logs,
credit ledger). Each call commits on its own so an entry survives whatever
happened to the transaction it describes.
"""
import logging
import traceback
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ledger import CreditError, CreditLog
from app.models.system import SystemErrorLog, SystemLog

logger = logging.getLogger(__name__)


async def _append(db: AsyncSession, entry) -> None:
    try:
        db.add(entry)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to append %s: %s", type(entry).__name__, exc)


async def record_system_error(
    db: AsyncSession,
    type: str,
    exc: BaseException,
    reservation_id: str | None = None,
) -> None:
    await _append(db, SystemErrorLog(
        type=type,
        reservation_id=reservation_id,
        message=str(exc) or exc.__class__.__name__,
        stack="".join(traceback.format_exception(exc)),
    ))


async def record_system_log(db: AsyncSession, type: str, payload: dict) -> None:
    await _append(db, SystemLog(type=type, payload=payload))


async def record_credit(
    db: AsyncSession,
    *,
    reservation_id: str,
    driver_id: str,
    operation_id: str,
    ride_amount: Decimal,
    driver_amount: Decimal,
    platform_amount: Decimal,
    balance_before: Decimal,
    balance_after: Decimal,
    version: str,
) -> None:
    await _append(db, CreditLog(
        reservation_id=reservation_id,
        driver_id=driver_id,
        operation_id=operation_id,
        ride_amount=ride_amount,
        driver_amount=driver_amount,
        platform_amount=platform_amount,
        balance_before=balance_before,
        balance_after=balance_after,
        success=True,
        version=version,
    ))


async def record_credit_error(
    db: AsyncSession,
    *,
    reservation_id: str,
    driver_id: str | None,
    operation_id: str | None,
    exc: BaseException,
) -> None:
    await _append(db, CreditError(
        reservation_id=reservation_id,
        driver_id=driver_id,
        operation_id=operation_id,
        error_message=str(exc) or exc.__class__.__name__,
        error_code=getattr(exc, "code", None) or exc.__class__.__name__,
    ))
