import uuid
from sqlalchemy import Column, Enum, ForeignKey, Integer, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from points_ledger.db import Base
from points_ledger.models.enums import BonusMode, ItemStatus, ItemType, Program, TransferMode
from points_ledger.services.dates import utcnow


class PurchaseItem(Base):
    __tablename__ = "purchase_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    purchase_id = Column(UUID(as_uuid=True), ForeignKey("purchases.id"), nullable=False, index=True)

    type = Column(Enum(ItemType, native_enum=False, length=20), nullable=False)
    status = Column(
        Enum(ItemStatus, native_enum=False, length=20),
        nullable=False,
        default=ItemStatus.PENDING,
    )

    title = Column(String(200), nullable=False)
    details = Column(String(2000), nullable=True)

    program_from = Column(Enum(Program, native_enum=False, length=20), nullable=True)
    program_to = Column(Enum(Program, native_enum=False, length=20), nullable=True)

    points_base = Column(Integer, nullable=False, default=0)
    bonus_mode = Column(Enum(BonusMode, native_enum=False, length=20), nullable=True)
    bonus_value = Column(Integer, nullable=True)
    # always derived from points_base / bonus_mode / bonus_value
    points_final = Column(Integer, nullable=False, default=0)

    transfer_mode = Column(Enum(TransferMode, native_enum=False, length=20), nullable=True)
    points_debited_from_origin = Column(Integer, nullable=False, default=0)

    amount_cents = Column(Integer, nullable=False, default=0)

    released_at = Column(TIMESTAMP, nullable=True)
    canceled_at = Column(TIMESTAMP, nullable=True)

    # client-side default keeps sub-second ordering inside a purchase
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    purchase = relationship("Purchase", back_populates="items")
