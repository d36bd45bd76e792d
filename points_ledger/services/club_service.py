import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from points_ledger.errors import InvalidState, NotFound
from points_ledger.models.club_subscription import ClubSubscription
from points_ledger.models.enums import ClubStatus, Program
from points_ledger.schemas.club_subscription import ClubSubscriptionCreate, ClubSubscriptionUpdate
from points_ledger.services.account_service import get_account
from points_ledger.services.club_automaton import describe_subscription
from points_ledger.services.dates import clamp_day


logger = logging.getLogger(__name__)


def get_subscription(db: Session, *, team: str, subscription_id, for_update: bool = False) -> ClubSubscription:
    q = db.query(ClubSubscription).filter(
        ClubSubscription.id == subscription_id,
        ClubSubscription.team == team,
    )
    if for_update:
        q = q.with_for_update()
    sub = q.first()
    if not sub:
        raise NotFound("Club subscription not found")
    return sub


def list_subscriptions(
    db: Session,
    *,
    team: str,
    account_id=None,
    program: Program | None = None,
    status: ClubStatus | None = None,
):
    q = db.query(ClubSubscription).filter(ClubSubscription.team == team)
    if account_id:
        q = q.filter(ClubSubscription.account_id == account_id)
    if program:
        q = q.filter(ClubSubscription.program == program)
    if status:
        q = q.filter(ClubSubscription.status == status)

    subs = q.order_by(ClubSubscription.subscribed_at.desc(), ClubSubscription.created_at.desc()).all()
    return [describe_subscription(s) for s in subs]


def create_subscription(db: Session, *, team: str, payload: ClubSubscriptionCreate) -> ClubSubscription:
    get_account(db, team=team, account_id=payload.account_id)

    renewal_day = payload.renewal_day
    if renewal_day is None:
        renewal_day = payload.subscribed_at.day

    sub = ClubSubscription(
        team=team,
        account_id=payload.account_id,
        program=payload.program,
        status=ClubStatus.ACTIVE,
        subscribed_at=payload.subscribed_at,
        last_renewed_at=payload.last_renewed_at,
        renewal_day=clamp_day(renewal_day),
        price_cents=payload.price_cents,
        notes=payload.notes,
    )
    db.add(sub)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidState(f"Account already has a {payload.program.value} club subscription")
    db.refresh(sub)

    logger.info(
        "club subscription created",
        extra={"subscription_id": str(sub.id), "account_id": str(sub.account_id), "program": sub.program.value},
    )
    return sub


def update_subscription(db: Session, *, team: str, subscription_id, patch: ClubSubscriptionUpdate) -> ClubSubscription:
    sub = get_subscription(db, team=team, subscription_id=subscription_id, for_update=True)
    data = patch.model_dump(exclude_unset=True)

    new_status = data.get("status")
    if new_status is not None and new_status is not sub.status and sub.status.is_terminal:
        db.rollback()
        raise InvalidState("CANCELED subscriptions cannot change status")

    if new_status is not None:
        sub.status = new_status
    if data.get("renewal_day") is not None:
        sub.renewal_day = clamp_day(data["renewal_day"])
    if data.get("price_cents") is not None:
        sub.price_cents = data["price_cents"]
    if "notes" in data:
        sub.notes = data["notes"]

    db.commit()
    db.refresh(sub)
    return sub


def renew_subscription(db: Session, *, team: str, subscription_id, renewed_at: date) -> ClubSubscription:
    """Explicit renewal: records the date and reactivates a PAUSED subscription."""
    sub = get_subscription(db, team=team, subscription_id=subscription_id, for_update=True)
    if sub.status.is_terminal:
        db.rollback()
        raise InvalidState("CANCELED subscriptions cannot be renewed")

    previous = sub.status
    sub.last_renewed_at = renewed_at
    if sub.program is Program.LIVELO:
        # LIVELO has no renewal cycle: renewing is a fresh subscription
        sub.subscribed_at = renewed_at
    sub.status = ClubStatus.ACTIVE
    db.commit()
    db.refresh(sub)

    logger.info(
        "club subscription renewed",
        extra={
            "subscription_id": str(sub.id),
            "renewed_at": renewed_at.isoformat(),
            "previous_status": previous.value,
        },
    )
    return sub
