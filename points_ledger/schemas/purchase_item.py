from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel

from points_ledger.models.enums import BonusMode, ItemStatus, ItemType, Program, TransferMode


class PurchaseItemDraft(BaseModel):
    type: ItemType
    title: Optional[str] = None
    details: Optional[str] = None

    program_from: Optional[Program] = None
    program_to: Optional[Program] = None

    points_base: Optional[float] = None
    bonus_mode: Optional[BonusMode] = None
    bonus_value: Optional[float] = None

    transfer_mode: Optional[TransferMode] = None
    points_debited_from_origin: Optional[float] = None

    amount_cents: Optional[float] = None


class PurchaseItemUpdate(BaseModel):
    title: Optional[str] = None
    details: Optional[str] = None

    points_base: Optional[float] = None
    bonus_mode: Optional[BonusMode] = None
    bonus_value: Optional[float] = None

    points_debited_from_origin: Optional[float] = None
    amount_cents: Optional[float] = None


class PurchaseItemOut(BaseModel):
    id: UUID
    purchase_id: UUID

    type: ItemType
    status: ItemStatus

    title: str
    details: Optional[str] = None

    program_from: Optional[Program] = None
    program_to: Optional[Program] = None

    points_base: int
    bonus_mode: Optional[BonusMode] = None
    bonus_value: Optional[int] = None
    points_final: int

    transfer_mode: Optional[TransferMode] = None
    points_debited_from_origin: int

    amount_cents: int

    released_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
