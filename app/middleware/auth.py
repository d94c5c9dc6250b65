import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.config import get_settings
from app.schemas.schemas import Caller
from app.services.errors import Unauthenticated

settings = get_settings()
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    """Sign a JWT with the configured secret (HS256)."""
    payload = dict(data)
    minutes = expires_minutes or settings.access_token_expire_minutes
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def _admin_token_matches(token: str | None) -> bool:
    if not token or not settings.admin_token:
        return False
    return hmac.compare_digest(token, settings.admin_token)


async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
) -> Optional[Caller]:
    """
    Resolve the caller from a Bearer JWT or the admin token header.
    Returns None when neither is present or valid; the service layer
    decides whether that is an error.
    """
    if _admin_token_matches(admin_token):
        return Caller(identity="admin-token", is_admin=True)

    if credentials is None:
        return None
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    identity = payload.get("email") or payload.get("sub")
    if not identity:
        return None
    return Caller(identity=identity, is_admin=bool(payload.get("admin", False)))


async def require_caller(caller: Optional[Caller] = Depends(get_caller)) -> Caller:
    """For endpoints with no service-level auth check of their own."""
    if caller is None:
        raise Unauthenticated("Missing or invalid credentials")
    return caller
