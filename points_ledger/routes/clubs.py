import re
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from points_ledger import config
from points_ledger.db import get_db
from points_ledger.deps.team import get_active_team
from points_ledger.models.enums import ClubStatus, Program
from points_ledger.schemas.club_subscription import (
    ClubRenew,
    ClubSubscriptionCreate,
    ClubSubscriptionOut,
    ClubSweepOut,
    ClubSubscriptionUpdate,
)
from points_ledger.services import club_service
from points_ledger.services.club_automaton import (
    describe_subscription,
    run_club_sweep,
    run_club_sweep_all_teams,
)
from points_ledger.services.dates import reference_today


router = APIRouter(prefix="/clubs", tags=["clubs"])
cron_router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("", response_model=list[ClubSubscriptionOut])
def list_subscriptions(
    active_team: str = Depends(get_active_team),
    accountId: UUID | None = None,
    program: Program | None = None,
    status: ClubStatus | None = None,
    db: Session = Depends(get_db),
):
    return club_service.list_subscriptions(
        db,
        team=active_team,
        account_id=accountId,
        program=program,
        status=status,
    )


@router.post("", response_model=ClubSubscriptionOut, status_code=201)
def create_subscription(
    payload: ClubSubscriptionCreate,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    sub = club_service.create_subscription(db, team=active_team, payload=payload)
    return describe_subscription(sub)


@router.post("/sweep", response_model=ClubSweepOut)
def sweep_team(
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    stats = run_club_sweep(db, team=active_team, today=reference_today())
    return ClubSweepOut(team=stats.team, teams=1, scanned=stats.scanned, changed=stats.changed)


@router.get("/{subscription_id}", response_model=ClubSubscriptionOut)
def get_subscription(
    subscription_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    sub = club_service.get_subscription(db, team=active_team, subscription_id=subscription_id)
    return describe_subscription(sub)


@router.patch("/{subscription_id}", response_model=ClubSubscriptionOut)
def update_subscription(
    subscription_id: UUID,
    patch: ClubSubscriptionUpdate,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    sub = club_service.update_subscription(db, team=active_team, subscription_id=subscription_id, patch=patch)
    return describe_subscription(sub)


@router.post("/{subscription_id}/renew", response_model=ClubSubscriptionOut)
def renew_subscription(
    subscription_id: UUID,
    payload: ClubRenew | None = None,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    renewed_at = (payload.renewed_at if payload else None) or reference_today()
    sub = club_service.renew_subscription(
        db,
        team=active_team,
        subscription_id=subscription_id,
        renewed_at=renewed_at,
    )
    return describe_subscription(sub)


# ─── Scheduled trigger ────────────────────────────────────────────

def _bearer(authorization: str | None) -> str:
    m = re.match(r"^Bearer\s+(.+)$", authorization or "", flags=re.IGNORECASE)
    return m.group(1).strip() if m else ""


@cron_router.get("/clubs", response_model=ClubSweepOut)
def cron_sweep_all_teams(
    authorization: str | None = Header(default=None),
    secret: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    token = _bearer(authorization) or (secret or "").strip()
    if not config.CRON_SECRET or token != config.CRON_SECRET:
        raise HTTPException(status_code=401, detail="Unauthorized")

    stats = run_club_sweep_all_teams(db, today=reference_today())
    return ClubSweepOut(team=None, teams=stats["teams"], scanned=stats["scanned"], changed=stats["changed"])
