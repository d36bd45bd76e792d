import uuid

from sqlalchemy import Column, Date, Enum, ForeignKey, Index, Integer, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from points_ledger.db import Base
from points_ledger.models.enums import EmissionSource, Program


class EmissionEvent(Base):
    __tablename__ = "emission_events"

    __table_args__ = (
        Index("ix_emission_events_account_program_issued_at", "account_id", "program", "issued_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    team = Column(String(50), nullable=False)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False)

    program = Column(Enum(Program, native_enum=False, length=20), nullable=False)

    # calendar date in the reference time zone
    issued_at = Column(Date, nullable=False)
    passengers_count = Column(Integer, nullable=False)

    source = Column(
        Enum(EmissionSource, native_enum=False, length=20),
        nullable=False,
        default=EmissionSource.MANUAL,
    )
    note = Column(String(500), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
