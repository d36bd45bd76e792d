"""Purchases and their items: totals, editing rules and cancellation."""

import uuid

import pytest

from points_ledger.errors import InvalidState, NotFound, ValidationError
from points_ledger.models.enums import BonusMode, ItemStatus, ItemType, Program, PurchaseStatus
from points_ledger.schemas.purchase import PurchaseCreate
from points_ledger.schemas.purchase_item import PurchaseItemDraft, PurchaseItemUpdate
from points_ledger.services import purchase_service
from points_ledger.services.release_service import release_item

TEAM = "team-a"
OTHER_TEAM = "team-b"


def _points_buy(points=100000, **kw):
    return PurchaseItemDraft(
        type=ItemType.POINTS_BUY,
        title="Livelo points",
        program_to=Program.LIVELO,
        points_base=points,
        **kw,
    )


def _extra(amount=2500):
    return PurchaseItemDraft(type=ItemType.EXTRA_COST, title="Fee", amount_cents=amount)


class TestCreatePurchase:

    def test_totals_are_recomputed_from_items(self, db, make_account):
        account = make_account()
        payload = PurchaseCreate(
            account_id=account.id,
            vendor_commission_bps=150,
            account_pay_cents=1000,
            target_markup_cents=50,
            items=[
                _points_buy(bonus_mode=BonusMode.PERCENT, bonus_value=30, amount_cents=50000),
                _extra(2500),
            ],
        )

        purchase = purchase_service.create_purchase(db, team=TEAM, payload=payload)

        assert purchase.status is PurchaseStatus.OPEN
        assert len(purchase.items) == 2
        assert purchase.subtotal_cents == 52500
        assert purchase.commission_cents == 788
        assert purchase.total_cents == 54288
        assert purchase.points_total == 130000
        assert purchase.cost_per_thousand_cents == 418
        assert purchase.target_per_thousand_cents == 468

    def test_invalid_item_writes_nothing(self, db, make_account):
        account = make_account()
        payload = PurchaseCreate(
            account_id=account.id,
            items=[_points_buy(), PurchaseItemDraft(type=ItemType.CLUB, title="Club")],
        )

        with pytest.raises(ValidationError) as exc:
            purchase_service.create_purchase(db, team=TEAM, payload=payload)

        assert exc.value.errors == ["CLUB requires amount_cents > 0."]
        assert purchase_service.list_purchases(db, team=TEAM) == []

    def test_account_of_another_team_is_not_found(self, db, make_account):
        account = make_account(team=OTHER_TEAM)

        with pytest.raises(NotFound):
            purchase_service.create_purchase(db, team=TEAM, payload=PurchaseCreate(account_id=account.id))


class TestItemEditing:

    @pytest.fixture
    def purchase(self, db, make_account):
        account = make_account(livelo=0)
        return purchase_service.create_purchase(
            db, team=TEAM, payload=PurchaseCreate(account_id=account.id, items=[_points_buy()])
        )

    def test_update_recomputes_final_points(self, db, purchase):
        item = purchase.items[0]
        patch = PurchaseItemUpdate(bonus_mode=BonusMode.TOTAL, bonus_value=30000)

        updated = purchase_service.update_purchase_item(
            db, team=TEAM, purchase_id=purchase.id, item_id=item.id, patch=patch
        )

        assert updated.points_final == 130000
        db.refresh(purchase)
        assert purchase.points_total == 130000

    def test_update_that_breaks_a_rule_is_rejected(self, db, purchase):
        item = purchase.items[0]

        with pytest.raises(ValidationError):
            purchase_service.update_purchase_item(
                db, team=TEAM, purchase_id=purchase.id, item_id=item.id, patch=PurchaseItemUpdate(points_base=0)
            )

        db.refresh(item)
        assert item.points_base == 100000

    def test_released_item_cannot_be_edited_or_deleted(self, db, purchase):
        item = purchase.items[0]
        release_item(db, team=TEAM, purchase_id=purchase.id, item_id=item.id)

        with pytest.raises(InvalidState):
            purchase_service.update_purchase_item(
                db, team=TEAM, purchase_id=purchase.id, item_id=item.id, patch=PurchaseItemUpdate(title="x")
            )
        with pytest.raises(InvalidState):
            purchase_service.delete_purchase_item(db, team=TEAM, purchase_id=purchase.id, item_id=item.id)

    def test_closed_purchase_rejects_new_items(self, db, purchase):
        purchase_service.close_purchase(db, team=TEAM, purchase_id=purchase.id, closed_by="ops")

        with pytest.raises(InvalidState):
            purchase_service.create_purchase_item(db, team=TEAM, purchase_id=purchase.id, draft=_extra())

    def test_close_twice_is_invalid(self, db, purchase):
        closed = purchase_service.close_purchase(db, team=TEAM, purchase_id=purchase.id, closed_by="ops")
        assert closed.status is PurchaseStatus.CLOSED
        assert closed.closed_by == "ops"
        assert closed.closed_at is not None

        with pytest.raises(InvalidState):
            purchase_service.close_purchase(db, team=TEAM, purchase_id=purchase.id)

    def test_delete_pending_item(self, db, purchase):
        extra = purchase_service.create_purchase_item(db, team=TEAM, purchase_id=purchase.id, draft=_extra(900))
        db.refresh(purchase)
        assert purchase.subtotal_cents == 900

        purchase_service.delete_purchase_item(db, team=TEAM, purchase_id=purchase.id, item_id=extra.id)

        db.refresh(purchase)
        assert len(purchase.items) == 1
        assert purchase.subtotal_cents == 0

    def test_items_keep_creation_order(self, db, purchase):
        first = purchase_service.create_purchase_item(db, team=TEAM, purchase_id=purchase.id, draft=_extra(100))
        second = purchase_service.create_purchase_item(db, team=TEAM, purchase_id=purchase.id, draft=_extra(200))

        db.refresh(purchase)
        assert [i.id for i in purchase.items][-2:] == [first.id, second.id]
        assert purchase.items[0].created_at <= first.created_at <= second.created_at

    def test_unknown_item_is_not_found(self, db, purchase):
        with pytest.raises(NotFound):
            purchase_service.get_item(db, team=TEAM, purchase_id=purchase.id, item_id=uuid.uuid4())


class TestCancellation:

    def test_cancel_item_is_idempotent(self, db, make_account):
        account = make_account()
        purchase = purchase_service.create_purchase(
            db, team=TEAM, payload=PurchaseCreate(account_id=account.id, items=[_extra(1200)])
        )
        item_id = purchase.items[0].id

        first = purchase_service.cancel_item(db, team=TEAM, purchase_id=purchase.id, item_id=item_id)
        second = purchase_service.cancel_item(db, team=TEAM, purchase_id=purchase.id, item_id=item_id)

        assert first.status is ItemStatus.CANCELED
        assert second.status is ItemStatus.CANCELED
        assert second.canceled_at == first.canceled_at
        db.refresh(purchase)
        assert purchase.subtotal_cents == 0

    def test_released_item_cannot_be_canceled(self, db, make_account):
        account = make_account()
        purchase = purchase_service.create_purchase(
            db, team=TEAM, payload=PurchaseCreate(account_id=account.id, items=[_points_buy()])
        )
        item_id = purchase.items[0].id
        release_item(db, team=TEAM, purchase_id=purchase.id, item_id=item_id)

        with pytest.raises(InvalidState):
            purchase_service.cancel_item(db, team=TEAM, purchase_id=purchase.id, item_id=item_id)

    def test_cancel_purchase_cancels_pending_items_only(self, db, make_account):
        account = make_account()
        purchase = purchase_service.create_purchase(
            db, team=TEAM, payload=PurchaseCreate(account_id=account.id, items=[_points_buy(), _extra()])
        )
        buy = next(i for i in purchase.items if i.type is ItemType.POINTS_BUY)
        release_item(db, team=TEAM, purchase_id=purchase.id, item_id=buy.id)

        canceled = purchase_service.cancel_purchase(db, team=TEAM, purchase_id=purchase.id)

        assert canceled.status is PurchaseStatus.CANCELED
        statuses = {i.type: i.status for i in canceled.items}
        assert statuses[ItemType.POINTS_BUY] is ItemStatus.RELEASED
        assert statuses[ItemType.EXTRA_COST] is ItemStatus.CANCELED

        again = purchase_service.cancel_purchase(db, team=TEAM, purchase_id=purchase.id)
        assert again.status is PurchaseStatus.CANCELED
