import uuid
from sqlalchemy import Column, Enum, ForeignKey, Integer, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from points_ledger.db import Base
from points_ledger.models.enums import PurchaseStatus


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    team = Column(String(50), nullable=False, index=True)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True)

    status = Column(
        Enum(PurchaseStatus, native_enum=False, length=20),
        nullable=False,
        default=PurchaseStatus.OPEN,
    )
    note = Column(String(500))

    # pricing inputs
    vendor_commission_bps = Column(Integer, nullable=False, default=0)
    account_pay_cents = Column(Integer, nullable=False, default=0)
    target_markup_cents = Column(Integer, nullable=False, default=0)

    # recomputed from the items
    subtotal_cents = Column(Integer, nullable=False, default=0)
    commission_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)
    points_total = Column(Integer, nullable=False, default=0)
    cost_per_thousand_cents = Column(Integer, nullable=False, default=0)
    target_per_thousand_cents = Column(Integer, nullable=False, default=0)

    closed_at = Column(TIMESTAMP, nullable=True)
    closed_by = Column(String(100), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "PurchaseItem",
        back_populates="purchase",
        order_by="PurchaseItem.created_at",
        cascade="all, delete-orphan",
    )
