"""Database models using SQLModel."""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Current UTC time, timezone-aware. Every persisted timestamp carries tzinfo."""
    return datetime.now(timezone.utc)


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Naive values (SQLite may drop the offset) are read as UTC."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


class DailyPrediction(SQLModel, table=True):
    """One row per calendar day holding the ordered prediction list of that day's scan."""

    __tablename__ = "daily_cached_predictions"

    id: Optional[int] = Field(default=None, primary_key=True)
    prediction_date: date = Field(unique=True, index=True, description="Scan day (UTC)")
    games_data: list = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False), description="Ordered prediction records"
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False), description="Last upsert"
    )


class Profile(SQLModel, table=True):
    """
    Subscription state for an authenticated user.

    Identity lives in the hosted auth service; `id` is its user id.
    """

    __tablename__ = "profiles"

    id: str = Field(primary_key=True, max_length=64, description="Auth user id")
    email: Optional[str] = Field(default=None, max_length=255)

    trial_ends_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True)), description="End of free trial (UTC)"
    )
    subscription_status: str = Field(
        default="inactive", max_length=20, description="'active' or 'inactive'"
    )
    subscription_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True)), description="End of the paid period (UTC)"
    )

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
