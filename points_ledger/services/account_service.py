import logging

from sqlalchemy.orm import Session

from points_ledger.errors import NotFound
from points_ledger.models.account import Account
from points_ledger.schemas.account import AccountCreate


logger = logging.getLogger(__name__)


def get_account(db: Session, *, team: str, account_id, for_update: bool = False) -> Account:
    q = db.query(Account).filter(Account.id == account_id, Account.team == team)
    if for_update:
        # serializes balance read-modify-write per account
        q = q.with_for_update()
    account = q.first()
    if not account:
        raise NotFound("Account not found")
    return account


def create_account(db: Session, *, team: str, payload: AccountCreate) -> Account:
    account = Account(
        team=team,
        identifier=payload.identifier.strip(),
        full_name=payload.full_name,
        points_latam=payload.points_latam,
        points_smiles=payload.points_smiles,
        points_livelo=payload.points_livelo,
        points_esfera=payload.points_esfera,
    )
    db.add(account)
    db.commit()
    db.refresh(account)

    logger.info("account registered", extra={"account_id": str(account.id), "team": team})
    return account
