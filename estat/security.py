"""Security helpers: rate limiting, operator secret and bearer checks, caller identity."""

import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from estat.config import Settings, get_settings
from estat.state import _incr

logger = logging.getLogger(__name__)

# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)


def secrets_match(provided: Optional[str], expected: str) -> bool:
    """
    Constant-time comparison. Empty expected value never matches (fail-closed).
    """
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def verify_scan_secret(
    secret: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
) -> bool:
    """
    Dependency for the scan trigger: `?secret=` must equal CRON_SECRET.

    SECURITY: an unconfigured CRON_SECRET disables the trigger entirely.
    """
    if not secrets_match(secret, settings.CRON_SECRET):
        _incr("scan_trigger_rejected")
        if not settings.CRON_SECRET:
            logger.error("CRON_SECRET not configured - rejecting scan trigger")
        else:
            logger.warning("Invalid scan trigger secret")
        raise HTTPException(status_code=401, detail="Unauthorized")
    return True


def bearer_token_valid(authorization: Optional[str], expected: str) -> bool:
    """
    Check an `Authorization: Bearer <token>` header.

    No configured token means the endpoint is open (dev mode).
    """
    if not expected:
        return True
    if not authorization:
        return False
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return False
    return secrets_match(parts[1], expected)


def get_user_id(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    """
    Authenticated user id, as forwarded by the auth gateway in USER_ID_HEADER.

    The hosted auth service terminates sessions; this service only trusts the
    header set in front of it.
    """
    user_id = request.headers.get(settings.USER_ID_HEADER)
    if user_id:
        user_id = user_id.strip()
    return user_id or None
