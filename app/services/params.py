"""
Read-through access to the dispatch parameters.

Lookup order: Redis cache → system_params row → hardcoded defaults.
Callers always get a usable DispatchParams; lookup failures are logged only.
"""
import logging

import redis.asyncio as aioredis
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.system import SystemParams
from app.redis_client import cache_get, cache_set

logger = logging.getLogger(__name__)
settings = get_settings()

PARAMS_CACHE_KEY = "dispatch:params"
PARAMS_ROW_ID = "config"


class DispatchParams(BaseModel):
    auto_assign: bool = True
    reassign_delay_minutes: int = 10
    search_radius_km: float = 10.0
    notifications_enabled: bool = True


async def get_params(db: AsyncSession, redis: aioredis.Redis | None = None) -> DispatchParams:
    if redis is not None:
        try:
            cached = await cache_get(redis, PARAMS_CACHE_KEY)
            if cached:
                return DispatchParams.model_validate_json(cached)
        except Exception as exc:
            logger.warning("Params cache read failed: %s", exc)

    try:
        row = await db.get(SystemParams, PARAMS_ROW_ID)
    except Exception as exc:
        logger.error("Params lookup failed, using defaults: %s", exc)
        await db.rollback()
        return DispatchParams()

    if row is None:
        return DispatchParams()

    params = DispatchParams(
        auto_assign=row.auto_assign,
        reassign_delay_minutes=row.reassign_delay_minutes,
        search_radius_km=row.search_radius_km,
        notifications_enabled=row.notifications_enabled,
    )

    if redis is not None:
        try:
            await cache_set(redis, PARAMS_CACHE_KEY, params.model_dump_json(), settings.params_cache_ttl_seconds)
        except Exception as exc:
            logger.warning("Params cache write failed: %s", exc)

    return params
