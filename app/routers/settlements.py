"""
Settlements router: POST /v1/settlements/recover, GET /v1/settlements/duplicates
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.middleware.auth import get_caller
from app.schemas.schemas import Caller, DuplicateAuditResponse, RecoveryResponse
from app.services.settlement import audit_duplicate_credits, recover_missed_credits

router = APIRouter(prefix="/v1/settlements", tags=["Settlements"])


@router.post("/recover", response_model=RecoveryResponse)
async def recover(
    db: AsyncSession = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
):
    """Credit completed, paid reservations that were never settled."""
    return await recover_missed_credits(db, caller)


@router.get("/duplicates", response_model=DuplicateAuditResponse)
async def duplicates(
    db: AsyncSession = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
):
    return await audit_duplicate_credits(db, caller)
