from datetime import date, datetime
from typing import Optional, Union

from uuid import UUID

from pydantic import BaseModel, Field

from points_ledger.models.enums import EmissionSource, Program


class EmissionEventCreate(BaseModel):
    account_id: UUID
    program: Program
    # a bare date, or a timestamp converted to the reference zone
    issued_at: Union[datetime, date]
    passengers_count: int = Field(ge=1)
    source: EmissionSource = EmissionSource.MANUAL
    note: Optional[str] = None


class EmissionEventUpdate(BaseModel):
    passengers_count: Optional[int] = Field(default=None, ge=1)
    note: Optional[str] = None


class EmissionEventOut(BaseModel):
    id: UUID
    account_id: UUID
    program: Program
    issued_at: date
    passengers_count: int
    source: EmissionSource
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmissionUsageOut(BaseModel):
    account_id: UUID
    program: Program
    window_start: date
    window_end: date
    limit: int
    used: int
    remaining: int
