"""
Notification sink.

Every notification is stored as a row (the driver app and the admin console
read those). Driver notifications are additionally pushed to the gateway
when one is configured. Delivery is best-effort: failures are logged and
never reach the caller.
"""
import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.notification import AdminNotification, Notification

logger = logging.getLogger(__name__)
settings = get_settings()


class PushError(Exception):
    pass


async def notify_driver(
    db: AsyncSession,
    *,
    driver_id: str,
    type: str,
    reservation_id: str | None = None,
    recipient: str | None = None,
    message: str | None = None,
    payload: dict | None = None,
) -> None:
    notification = Notification(
        driver_id=driver_id,
        recipient=recipient,
        type=type,
        reservation_id=reservation_id,
        message=message,
        payload=payload or {},
    )
    try:
        db.add(notification)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to store %s notification for driver=%s: %s", type, driver_id, exc)
        return

    if settings.push_gateway_url:
        try:
            await _push(notification)
        except Exception as exc:
            logger.warning("Push delivery failed for notification=%s: %s", notification.id, exc)


async def notify_admin(
    db: AsyncSession,
    *,
    type: str,
    message: str,
    reservation_id: str | None = None,
    payload: dict | None = None,
) -> None:
    try:
        db.add(AdminNotification(
            type=type,
            reservation_id=reservation_id,
            message=message,
            payload=payload or {},
        ))
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to store admin notification %s: %s", type, exc)


async def _push(notification: Notification) -> None:
    async with httpx.AsyncClient(timeout=settings.push_timeout_seconds) as client:
        resp = await client.post(
            f"{settings.push_gateway_url}/messages",
            headers={"Authorization": f"Bearer {settings.push_gateway_api_key}"},
            json={
                "id": notification.id,
                "driver_id": notification.driver_id,
                "to": notification.recipient,
                "type": notification.type,
                "reservation_id": notification.reservation_id,
                "message": notification.message,
                "data": notification.payload,
            },
        )
    if resp.status_code >= 400:
        raise PushError(f"Push gateway error {resp.status_code}: {resp.text}")
