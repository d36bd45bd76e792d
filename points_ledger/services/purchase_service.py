import logging
from datetime import datetime

from sqlalchemy.orm import Session

from points_ledger.errors import InvalidState, LedgerError, NotFound
from points_ledger.models.enums import ItemStatus, ItemType, PurchaseStatus
from points_ledger.models.purchase import Purchase
from points_ledger.models.purchase_item import PurchaseItem
from points_ledger.schemas.purchase import PurchaseCreate
from points_ledger.schemas.purchase_item import PurchaseItemDraft, PurchaseItemUpdate
from points_ledger.services.account_service import get_account
from points_ledger.services.dates import utcnow
from points_ledger.services.purchase_calc import draft_from_item, normalize_item_draft


logger = logging.getLogger(__name__)

# item types whose points_final lands on a program balance
POINT_CARRYING_TYPES = {ItemType.POINTS_BUY, ItemType.TRANSFER}


def _round_div(numerator: int, denominator: int) -> int:
    # half-up rounding for non-negative operands
    return (2 * numerator + denominator) // (2 * denominator)


# ============================================================
# TOTALS
# ============================================================

def recompute_purchase(purchase: Purchase) -> Purchase:
    active = [i for i in purchase.items if i.status is not ItemStatus.CANCELED]

    subtotal = sum(int(i.amount_cents or 0) for i in active)
    commission = _round_div(subtotal * int(purchase.vendor_commission_bps or 0), 10000)
    total = subtotal + commission + int(purchase.account_pay_cents or 0)

    points = sum(int(i.points_final or 0) for i in active if i.type in POINT_CARRYING_TYPES)
    cost_per_thousand = _round_div(total * 1000, points) if points > 0 else 0

    purchase.subtotal_cents = subtotal
    purchase.commission_cents = commission
    purchase.total_cents = total
    purchase.points_total = points
    purchase.cost_per_thousand_cents = cost_per_thousand
    purchase.target_per_thousand_cents = cost_per_thousand + int(purchase.target_markup_cents or 0)
    return purchase


# ============================================================
# PURCHASES
# ============================================================

def get_purchase(db: Session, *, team: str, purchase_id, for_update: bool = False) -> Purchase:
    q = db.query(Purchase).filter(Purchase.id == purchase_id, Purchase.team == team)
    if for_update:
        q = q.with_for_update()
    purchase = q.first()
    if not purchase:
        raise NotFound("Purchase not found")
    return purchase


def _require_open(purchase: Purchase) -> None:
    if purchase.status is not PurchaseStatus.OPEN:
        raise InvalidState(f"Purchase is {purchase.status.value}; items can only change while OPEN")


def create_purchase(db: Session, *, team: str, payload: PurchaseCreate) -> Purchase:
    # account must exist inside the caller's team
    get_account(db, team=team, account_id=payload.account_id)

    # validate every draft before writing anything
    normalized = [normalize_item_draft(d) for d in payload.items]

    purchase = Purchase(
        team=team,
        account_id=payload.account_id,
        status=PurchaseStatus.OPEN,
        note=payload.note,
        vendor_commission_bps=payload.vendor_commission_bps,
        account_pay_cents=payload.account_pay_cents,
        target_markup_cents=payload.target_markup_cents,
    )
    for n in normalized:
        purchase.items.append(PurchaseItem(status=ItemStatus.PENDING, **n.as_columns()))

    recompute_purchase(purchase)
    db.add(purchase)
    db.commit()
    db.refresh(purchase)

    logger.info(
        "purchase created",
        extra={"purchase_id": str(purchase.id), "team": team, "items": len(normalized)},
    )
    return purchase


def list_purchases(
    db: Session,
    *,
    team: str,
    account_id=None,
    status: PurchaseStatus | None = None,
    limit: int = 50,
    offset: int = 0,
):
    q = db.query(Purchase).filter(Purchase.team == team)
    if account_id:
        q = q.filter(Purchase.account_id == account_id)
    if status:
        q = q.filter(Purchase.status == status)

    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    return q.order_by(Purchase.created_at.desc()).offset(offset).limit(limit).all()


def close_purchase(db: Session, *, team: str, purchase_id, closed_by: str | None = None, now: datetime | None = None):
    purchase = get_purchase(db, team=team, purchase_id=purchase_id, for_update=True)
    if purchase.status is not PurchaseStatus.OPEN:
        db.rollback()
        raise InvalidState("Only OPEN purchases can be closed")

    recompute_purchase(purchase)
    purchase.status = PurchaseStatus.CLOSED
    purchase.closed_at = now or utcnow()
    purchase.closed_by = closed_by
    db.commit()
    db.refresh(purchase)

    logger.info("purchase closed", extra={"purchase_id": str(purchase.id), "total_cents": purchase.total_cents})
    return purchase


def cancel_purchase(db: Session, *, team: str, purchase_id, now: datetime | None = None):
    """Cancel the purchase and every item still PENDING. Released items keep their effect."""
    purchase = get_purchase(db, team=team, purchase_id=purchase_id, for_update=True)
    if purchase.status is PurchaseStatus.CANCELED:
        db.rollback()
        return purchase

    now = now or utcnow()
    canceled = 0
    for item in purchase.items:
        if item.status is ItemStatus.PENDING:
            item.status = ItemStatus.CANCELED
            item.canceled_at = now
            canceled += 1

    purchase.status = PurchaseStatus.CANCELED
    recompute_purchase(purchase)
    db.commit()
    db.refresh(purchase)

    logger.info("purchase canceled", extra={"purchase_id": str(purchase.id), "items_canceled": canceled})
    return purchase


# ============================================================
# ITEMS
# ============================================================

def get_item(db: Session, *, team: str, purchase_id, item_id, for_update: bool = False) -> PurchaseItem:
    q = (
        db.query(PurchaseItem)
        .join(Purchase, Purchase.id == PurchaseItem.purchase_id)
        .filter(PurchaseItem.id == item_id)
        .filter(PurchaseItem.purchase_id == purchase_id)
        .filter(Purchase.team == team)
    )
    if for_update:
        q = q.with_for_update(of=PurchaseItem)
    item = q.first()
    if not item:
        raise NotFound("Item not found in this purchase")
    return item


def create_purchase_item(db: Session, *, team: str, purchase_id, draft: PurchaseItemDraft) -> PurchaseItem:
    try:
        purchase = get_purchase(db, team=team, purchase_id=purchase_id, for_update=True)
        _require_open(purchase)

        normalized = normalize_item_draft(draft)
        item = PurchaseItem(status=ItemStatus.PENDING, **normalized.as_columns())
        purchase.items.append(item)

        recompute_purchase(purchase)
        db.commit()
    except LedgerError:
        db.rollback()
        raise

    db.refresh(item)
    logger.info(
        "purchase item created",
        extra={"purchase_id": str(purchase_id), "item_id": str(item.id), "type": item.type.value},
    )
    return item


def update_purchase_item(
    db: Session,
    *,
    team: str,
    purchase_id,
    item_id,
    patch: PurchaseItemUpdate,
) -> PurchaseItem:
    try:
        item = get_item(db, team=team, purchase_id=purchase_id, item_id=item_id, for_update=True)
        _require_open(item.purchase)
        if item.status is not ItemStatus.PENDING:
            raise InvalidState(f"Item is {item.status.value}; only PENDING items can be edited")

        changes = patch.model_dump(exclude_unset=True)
        draft = draft_from_item(item).model_copy(update=changes)
        normalized = normalize_item_draft(draft)

        for k, v in normalized.as_columns().items():
            setattr(item, k, v)

        recompute_purchase(item.purchase)
        db.commit()
    except LedgerError:
        db.rollback()
        raise

    db.refresh(item)
    return item


def delete_purchase_item(db: Session, *, team: str, purchase_id, item_id) -> None:
    try:
        item = get_item(db, team=team, purchase_id=purchase_id, item_id=item_id, for_update=True)
        purchase = item.purchase
        _require_open(purchase)
        if item.status is not ItemStatus.PENDING:
            raise InvalidState(f"Item is {item.status.value}; only PENDING items can be deleted")

        purchase.items.remove(item)
        recompute_purchase(purchase)
        db.commit()
    except LedgerError:
        db.rollback()
        raise

    logger.info("purchase item deleted", extra={"purchase_id": str(purchase_id), "item_id": str(item_id)})


def cancel_item(db: Session, *, team: str, purchase_id, item_id, now: datetime | None = None) -> PurchaseItem:
    try:
        item = get_item(db, team=team, purchase_id=purchase_id, item_id=item_id, for_update=True)

        if item.status is ItemStatus.CANCELED:
            db.rollback()
            return item

        if item.status is ItemStatus.RELEASED:
            raise InvalidState("Released items cannot be canceled; create a compensating item instead")

        item.status = ItemStatus.CANCELED
        item.canceled_at = now or utcnow()
        recompute_purchase(item.purchase)
        db.commit()
    except LedgerError:
        db.rollback()
        raise

    db.refresh(item)
    logger.info("purchase item canceled", extra={"purchase_id": str(purchase_id), "item_id": str(item.id)})
    return item
