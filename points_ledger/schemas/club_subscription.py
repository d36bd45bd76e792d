from datetime import date, datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field

from points_ledger.models.enums import ClubStatus, Program


class ClubSubscriptionCreate(BaseModel):
    account_id: UUID
    program: Program
    subscribed_at: date
    renewal_day: Optional[int] = None
    last_renewed_at: Optional[date] = None
    price_cents: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class ClubSubscriptionUpdate(BaseModel):
    status: Optional[ClubStatus] = None
    renewal_day: Optional[int] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class ClubRenew(BaseModel):
    renewed_at: Optional[date] = None


class ClubSubscriptionOut(BaseModel):
    id: UUID
    team: str
    account_id: UUID
    program: Program
    status: ClubStatus

    subscribed_at: date
    last_renewed_at: Optional[date] = None
    renewal_day: int

    price_cents: int
    notes: Optional[str] = None

    next_renewal_at: Optional[date] = None
    inactive_at: Optional[date] = None
    cancel_at: Optional[date] = None
    bonus_eligible_at: Optional[date] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClubSweepOut(BaseModel):
    team: Optional[str] = None
    teams: int = 1
    scanned: int
    changed: int
