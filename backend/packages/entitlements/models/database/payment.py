"""
Database entity for payments.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, UTCDateTime


class PaymentEntity(Base):
    """
    Payment database entity.

    An amount already captured elsewhere, recorded against one invoice.
    Rows are append-only.
    """

    __tablename__ = "payments"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    invoice_id = Column(
        BigIntegerType,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id = Column(
        BigIntegerType,
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    amount_cents = Column(Integer, nullable=False)
    paid_at = Column(UTCDateTime, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
