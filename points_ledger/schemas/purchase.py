from datetime import datetime
from typing import List, Optional

from uuid import UUID

from pydantic import BaseModel, Field

from points_ledger.models.enums import PurchaseStatus
from points_ledger.schemas.purchase_item import PurchaseItemDraft, PurchaseItemOut


class PurchaseCreate(BaseModel):
    account_id: UUID
    note: Optional[str] = None

    vendor_commission_bps: int = Field(default=0, ge=0)
    account_pay_cents: int = Field(default=0, ge=0)
    target_markup_cents: int = Field(default=0, ge=0)

    items: List[PurchaseItemDraft] = Field(default_factory=list)


class PurchaseClose(BaseModel):
    closed_by: Optional[str] = None


class PurchaseOut(BaseModel):
    id: UUID
    team: str
    account_id: UUID

    status: PurchaseStatus
    note: Optional[str] = None

    vendor_commission_bps: int
    account_pay_cents: int
    target_markup_cents: int

    subtotal_cents: int
    commission_cents: int
    total_cents: int
    points_total: int
    cost_per_thousand_cents: int
    target_per_thousand_cents: int

    closed_at: Optional[datetime] = None
    closed_by: Optional[str] = None
    created_at: Optional[datetime] = None

    items: List[PurchaseItemOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class PurchaseReleaseOut(BaseModel):
    purchase_id: UUID
    released: List[PurchaseItemOut] = Field(default_factory=list)
    failed_item_id: Optional[UUID] = None
    error: Optional[str] = None
    detail: Optional[str] = None
