import json
import logging
from typing import Optional

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.redis_client import get_redis

logger = logging.getLogger(__name__)

IDEMPOTENCY_TTL = 86400  # 24 hours


async def check_idempotency(request: Request) -> Optional[Response]:
    """
    Returns the stored response if this Idempotency-Key was already used,
    otherwise None (proceed normally). Redis being down means no replay.
    """
    key = request.headers.get("Idempotency-Key")
    if not key:
        return None

    try:
        redis = await get_redis()
        cached = await redis.get(f"idempotency:{key}")
    except Exception as exc:
        logger.warning("Idempotency lookup failed for key %s: %s", key, exc)
        return None

    if cached:
        data = json.loads(cached)
        return JSONResponse(
            content=data["body"],
            status_code=data["status_code"],
            headers={"X-Idempotency-Replay": "true"},
        )
    return None


async def store_idempotency_result(key: str, status_code: int, body) -> None:
    """Persist the response for the given idempotency key (24h TTL)."""
    try:
        redis = await get_redis()
        await redis.setex(
            f"idempotency:{key}",
            IDEMPOTENCY_TTL,
            json.dumps({"status_code": status_code, "body": jsonable_encoder(body)}),
        )
    except Exception as exc:
        logger.warning("Could not store idempotency result for key %s: %s", key, exc)
