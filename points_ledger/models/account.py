import uuid
from sqlalchemy import CheckConstraint, Column, String, TIMESTAMP, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from points_ledger.db import Base
from points_ledger.models.enums import Program


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        CheckConstraint("points_latam >= 0", name="ck_accounts_points_latam_non_negative"),
        CheckConstraint("points_smiles >= 0", name="ck_accounts_points_smiles_non_negative"),
        CheckConstraint("points_livelo >= 0", name="ck_accounts_points_livelo_non_negative"),
        CheckConstraint("points_esfera >= 0", name="ck_accounts_points_esfera_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    team = Column(String(50), nullable=False, index=True)
    identifier = Column(String(100), nullable=False)
    full_name = Column(String(200))

    points_latam = Column(Integer, nullable=False, default=0)
    points_smiles = Column(Integer, nullable=False, default=0)
    points_livelo = Column(Integer, nullable=False, default=0)
    points_esfera = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())


# balance column per program
BALANCE_COLUMNS: dict[Program, str] = {
    Program.LATAM: "points_latam",
    Program.SMILES: "points_smiles",
    Program.LIVELO: "points_livelo",
    Program.ESFERA: "points_esfera",
}


def get_balance(account: Account, program: Program) -> int:
    return int(getattr(account, BALANCE_COLUMNS[program]) or 0)


def set_balance(account: Account, program: Program, value: int) -> None:
    setattr(account, BALANCE_COLUMNS[program], int(value))


def balances_of(account: Account) -> dict[Program, int]:
    return {program: get_balance(account, program) for program in Program}
