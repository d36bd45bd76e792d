from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from points_ledger.db import get_db
from points_ledger.deps.team import get_active_team
from points_ledger.models.enums import PurchaseStatus
from points_ledger.schemas.purchase import PurchaseClose, PurchaseCreate, PurchaseOut, PurchaseReleaseOut
from points_ledger.schemas.purchase_item import PurchaseItemDraft, PurchaseItemOut, PurchaseItemUpdate
from points_ledger.services import purchase_service
from points_ledger.services.release_service import release_item, release_purchase


router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("", response_model=PurchaseOut, status_code=201)
def create_purchase(
    payload: PurchaseCreate,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return purchase_service.create_purchase(db, team=active_team, payload=payload)


@router.get("", response_model=list[PurchaseOut])
def list_purchases(
    active_team: str = Depends(get_active_team),
    accountId: UUID | None = None,
    status: PurchaseStatus | None = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return purchase_service.list_purchases(
        db,
        team=active_team,
        account_id=accountId,
        status=status,
        limit=limit,
        offset=offset,
    )


@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_purchase(
    purchase_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return purchase_service.get_purchase(db, team=active_team, purchase_id=purchase_id)


@router.post("/{purchase_id}/close", response_model=PurchaseOut)
def close_purchase(
    purchase_id: UUID,
    payload: PurchaseClose | None = None,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    closed_by = payload.closed_by if payload else None
    return purchase_service.close_purchase(db, team=active_team, purchase_id=purchase_id, closed_by=closed_by)


@router.post("/{purchase_id}/cancel", response_model=PurchaseOut)
def cancel_purchase(
    purchase_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return purchase_service.cancel_purchase(db, team=active_team, purchase_id=purchase_id)


@router.post("/{purchase_id}/release", response_model=PurchaseReleaseOut)
def release_all_items(
    purchase_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return release_purchase(db, team=active_team, purchase_id=purchase_id)


# ─── Items ────────────────────────────────────────────────────────

@router.post("/{purchase_id}/items", response_model=PurchaseItemOut, status_code=201)
def create_item(
    purchase_id: UUID,
    draft: PurchaseItemDraft,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return purchase_service.create_purchase_item(db, team=active_team, purchase_id=purchase_id, draft=draft)


@router.patch("/{purchase_id}/items/{item_id}", response_model=PurchaseItemOut)
def update_item(
    purchase_id: UUID,
    item_id: UUID,
    patch: PurchaseItemUpdate,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return purchase_service.update_purchase_item(
        db,
        team=active_team,
        purchase_id=purchase_id,
        item_id=item_id,
        patch=patch,
    )


@router.delete("/{purchase_id}/items/{item_id}", status_code=204)
def delete_item(
    purchase_id: UUID,
    item_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    purchase_service.delete_purchase_item(db, team=active_team, purchase_id=purchase_id, item_id=item_id)
    return Response(status_code=204)


@router.post("/{purchase_id}/items/{item_id}/release", response_model=PurchaseItemOut)
def release(
    purchase_id: UUID,
    item_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return release_item(db, team=active_team, purchase_id=purchase_id, item_id=item_id)


@router.post("/{purchase_id}/items/{item_id}/cancel", response_model=PurchaseItemOut)
def cancel(
    purchase_id: UUID,
    item_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return purchase_service.cancel_item(db, team=active_team, purchase_id=purchase_id, item_id=item_id)
