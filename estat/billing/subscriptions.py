"""Trial and subscription state of a user profile."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from estat.models import Profile, as_utc, utcnow

logger = logging.getLogger(__name__)

ACTIVE = "active"
INACTIVE = "inactive"


@dataclass
class AccessStatus:
    has_access: bool
    subscription_status: str
    trial_days_remaining: int = 0
    subscription_days_remaining: int = 0

    def to_dict(self) -> dict:
        return {
            "hasAccess": self.has_access,
            "subscriptionStatus": self.subscription_status,
            "trialDaysRemaining": self.trial_days_remaining,
            "subscriptionDaysRemaining": self.subscription_days_remaining,
        }


def _days_until(moment: Optional[datetime], now: datetime) -> int:
    if moment is None or moment <= now:
        return 0
    return math.ceil((moment - now).total_seconds() / 86400)


def access_status(profile: Optional[Profile], now: Optional[datetime] = None) -> AccessStatus:
    """
    Access is granted while the trial runs or while an active subscription
    has not expired. An active status without an expiry date (rows written
    before expiries were tracked) counts as open-ended.
    """
    if profile is None:
        return AccessStatus(has_access=False, subscription_status=INACTIVE)

    now = as_utc(now) or utcnow()
    trial_ends_at = as_utc(profile.trial_ends_at)
    expires_at = as_utc(profile.subscription_expires_at)

    in_trial = trial_ends_at is not None and now <= trial_ends_at
    subscribed = profile.subscription_status == ACTIVE and (expires_at is None or now <= expires_at)
    return AccessStatus(
        has_access=in_trial or subscribed,
        subscription_status=profile.subscription_status,
        trial_days_remaining=_days_until(trial_ends_at, now),
        subscription_days_remaining=_days_until(expires_at, now) if subscribed else 0,
    )


async def get_profile(session: AsyncSession, user_id: str) -> Optional[Profile]:
    return await session.get(Profile, user_id)


async def get_or_create_profile(
    session: AsyncSession,
    user_id: str,
    email: Optional[str] = None,
    trial_days: int = 7,
) -> Profile:
    """
    Return the user's profile, creating it with a fresh trial on first sight.

    Two first requests of the same user may race; the loser of the insert
    rolls back and reads the winner's row.
    """
    profile = await get_profile(session, user_id)
    if profile is not None:
        return profile

    now = utcnow()
    profile = Profile(
        id=user_id,
        email=email,
        trial_ends_at=now + timedelta(days=trial_days),
        subscription_status=INACTIVE,
        created_at=now,
        updated_at=now,
    )
    session.add(profile)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info(f"Profile {user_id} created concurrently, re-reading")
        existing = await get_profile(session, user_id)
        if existing is None:
            raise
        return existing

    await session.refresh(profile)
    logger.info(f"Created profile {user_id} with a {trial_days}-day trial")
    return profile


def extend_subscription(profile: Profile, days: int, now: Optional[datetime] = None) -> Profile:
    """Activate and push the expiry `days` past max(now, current expiry)."""
    now = as_utc(now) or utcnow()
    base = now
    expires_at = as_utc(profile.subscription_expires_at)
    if expires_at is not None and expires_at > now:
        base = expires_at
    profile.subscription_status = ACTIVE
    profile.subscription_expires_at = base + timedelta(days=days)
    profile.updated_at = now
    return profile
