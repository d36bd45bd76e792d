"""
Balance release engine.

A release applies one PENDING item's point delta to the owning account and
flips the item to RELEASED inside a single unit of work. The item row and,
when balances move, the account row are locked with ``SELECT ... FOR UPDATE``
so concurrent releases on the same account serialize; releases on other
accounts do not contend.
"""

import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy.orm import Session

from points_ledger.errors import InsufficientBalance, InvalidState, LedgerError, NotFound
from points_ledger.models.account import get_balance, set_balance
from points_ledger.models.enums import ItemStatus, ItemType, Program, TransferMode
from points_ledger.models.purchase import Purchase
from points_ledger.models.purchase_item import PurchaseItem
from points_ledger.services.account_service import get_account
from points_ledger.services.dates import utcnow
from points_ledger.services.purchase_calc import draft_from_item, normalize_item_draft


logger = logging.getLogger(__name__)


def compute_balance_delta(item) -> dict[Program, int]:
    """Signed per-program delta a release of ``item`` applies. Empty for monetary-only items."""
    deltas: dict[Program, int] = defaultdict(int)

    if item.type is ItemType.POINTS_BUY:
        if item.program_to:
            deltas[item.program_to] += item.points_final

    elif item.type is ItemType.TRANSFER:
        if item.program_from and item.program_to:
            if item.transfer_mode is TransferMode.POINTS_PLUS_CASH:
                debit = item.points_debited_from_origin
            else:
                debit = item.points_base
            deltas[item.program_from] -= debit
            deltas[item.program_to] += item.points_final

    elif item.type is ItemType.ADJUSTMENT:
        if item.program_to:
            deltas[item.program_to] += item.points_base

    # CLUB / EXTRA_COST: no balance effect

    return {program: delta for program, delta in deltas.items() if delta != 0}


def apply_balance_delta(account, deltas: dict[Program, int]) -> dict[Program, int]:
    """Apply every delta or none of them."""
    updated: dict[Program, int] = {}
    for program, delta in deltas.items():
        current = get_balance(account, program)
        new_balance = current + delta
        if new_balance < 0:
            raise InsufficientBalance(
                f"Insufficient {program.value} balance: {current} available, {-delta} required."
            )
        updated[program] = new_balance

    for program, value in updated.items():
        set_balance(account, program, value)
    return updated


def _load_item_for_release(db: Session, *, team: str, purchase_id, item_id) -> PurchaseItem:
    item = (
        db.query(PurchaseItem)
        .join(Purchase, Purchase.id == PurchaseItem.purchase_id)
        .filter(PurchaseItem.id == item_id)
        .filter(PurchaseItem.purchase_id == purchase_id)
        .filter(Purchase.team == team)
        .with_for_update(of=PurchaseItem)
        .first()
    )
    if not item:
        raise NotFound("Item not found in this purchase")
    return item


def release_item(
    db: Session,
    *,
    team: str,
    purchase_id,
    item_id,
    now: datetime | None = None,
) -> PurchaseItem:
    if now is None:
        now = utcnow()

    try:
        item = _load_item_for_release(db, team=team, purchase_id=purchase_id, item_id=item_id)

        if item.status is ItemStatus.RELEASED:
            # already applied: report the stored state, never apply twice
            db.rollback()
            return item

        if item.status is not ItemStatus.PENDING:
            raise InvalidState(f"Item is {item.status.value} and cannot be released")

        normalized = normalize_item_draft(draft_from_item(item))
        if normalized.points_final != item.points_final:
            logger.warning(
                "stored points_final out of sync; recomputed before release",
                extra={
                    "item_id": str(item.id),
                    "stored": item.points_final,
                    "recomputed": normalized.points_final,
                },
            )
            item.points_final = normalized.points_final

        deltas = compute_balance_delta(item)
        if deltas:
            account = get_account(db, team=team, account_id=item.purchase.account_id, for_update=True)
            apply_balance_delta(account, deltas)

        item.status = ItemStatus.RELEASED
        item.released_at = now
        db.commit()

    except LedgerError as e:
        db.rollback()
        logger.warning(
            "item release rejected",
            extra={"purchase_id": str(purchase_id), "item_id": str(item_id), "error": e.code, "detail": e.message},
        )
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(item)
    logger.info(
        "item released",
        extra={
            "purchase_id": str(purchase_id),
            "item_id": str(item.id),
            "type": item.type.value,
            "deltas": {p.value: d for p, d in deltas.items()},
        },
    )
    return item


def release_purchase(db: Session, *, team: str, purchase_id, now: datetime | None = None) -> dict:
    """
    Release every PENDING item of a purchase, oldest first.

    Each item is its own unit of work; the first failure stops the batch and
    leaves the remaining items PENDING.
    """
    purchase = db.query(Purchase).filter(Purchase.id == purchase_id, Purchase.team == team).first()
    if not purchase:
        raise NotFound("Purchase not found")

    pending_ids = [
        row[0]
        for row in (
            db.query(PurchaseItem.id)
            .filter(PurchaseItem.purchase_id == purchase_id)
            .filter(PurchaseItem.status == ItemStatus.PENDING)
            .order_by(PurchaseItem.created_at.asc())
            .all()
        )
    ]

    released = []
    for item_id in pending_ids:
        try:
            released.append(release_item(db, team=team, purchase_id=purchase_id, item_id=item_id, now=now))
        except LedgerError as e:
            return {
                "purchase_id": purchase_id,
                "released": released,
                "failed_item_id": item_id,
                "error": e.code,
                "detail": e.message,
            }

    return {"purchase_id": purchase_id, "released": released}
