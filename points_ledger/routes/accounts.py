from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from points_ledger.db import get_db
from points_ledger.deps.team import get_active_team
from points_ledger.models.account import Account
from points_ledger.schemas.account import AccountCreate, AccountOut
from points_ledger.services.account_service import create_account, get_account

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.post("", response_model=AccountOut, status_code=201)
def register_account(
    payload: AccountCreate,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return create_account(db, team=active_team, payload=payload)


@router.get("", response_model=list[AccountOut])
def list_accounts(
    active_team: str = Depends(get_active_team),
    q: str | None = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    query = db.query(Account).filter(Account.team == active_team)
    if q:
        query = query.filter(Account.identifier.ilike(f"%{q.strip()[:80]}%"))

    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    return query.order_by(Account.identifier.asc()).offset(offset).limit(limit).all()


@router.get("/{account_id}", response_model=AccountOut)
def read_account(
    account_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return get_account(db, team=active_team, account_id=account_id)
