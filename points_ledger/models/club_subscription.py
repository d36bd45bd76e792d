import uuid

from sqlalchemy import Column, Date, Enum, ForeignKey, Integer, String, TIMESTAMP, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from points_ledger.db import Base
from points_ledger.models.enums import ClubStatus, Program


class ClubSubscription(Base):
    __tablename__ = "club_subscriptions"

    __table_args__ = (
        UniqueConstraint("account_id", "program", name="uq_club_subscriptions_account_program"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    team = Column(String(50), nullable=False, index=True)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False)

    program = Column(Enum(Program, native_enum=False, length=20), nullable=False)
    status = Column(
        Enum(ClubStatus, native_enum=False, length=20),
        nullable=False,
        default=ClubStatus.ACTIVE,
    )

    subscribed_at = Column(Date, nullable=False)
    last_renewed_at = Column(Date, nullable=True)
    renewal_day = Column(Integer, nullable=False, default=1)

    price_cents = Column(Integer, nullable=False, default=0)
    notes = Column(String(1000), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
