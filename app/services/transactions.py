"""
Transaction helpers shared by the assignment, settlement and reconciliation
paths.

Driver and Reservation are versioned (mapper version_id_col), so every ORM
UPDATE is a compare-and-swap on (id, version): a row changed by someone else
since it was read makes the flush raise StaleDataError and the whole
transaction rolls back. Rows that are re-validated before a write are read
with FOR UPDATE and populate_existing so the checks see committed state, not
whatever the session had cached.

Lock order is always reservation first, then driver.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit when the block completes, roll back and re-raise on any error."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def lock_row(db: AsyncSession, model: type[T], row_id: str) -> T | None:
    result = await db.execute(
        select(model)
        .where(model.id == row_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
