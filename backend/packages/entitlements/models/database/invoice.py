"""
Database entities for invoices and their feature line items.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, UTCDateTime


class InvoiceEntity(Base):
    """
    Invoice (ledger) database entity.

    One billing period for an organization. Renewals point at the first
    invoice of their chain through first_invoice_id; the head has it NULL.
    amount_paid_cents and is_active are derived and rewritten on every save.
    """

    __tablename__ = "invoices"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(
        BigIntegerType,
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # organization, standalone
    kind = Column(
        String(50), nullable=False, default="organization", server_default="organization"
    )
    currency = Column(String(3), nullable=False, default="USD", server_default="USD")

    first_invoice_id = Column(
        BigIntegerType,
        ForeignKey("invoices.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Billing period
    subscription_start_at = Column(UTCDateTime, nullable=True)
    subscription_end_at = Column(UTCDateTime, nullable=True)

    # Money, in minor units
    amount_due_cents = Column(Integer, nullable=True)
    amount_paid_cents = Column(Integer, nullable=False, server_default="0", default=0)

    force_active = Column(Boolean, nullable=False, server_default="0", default=False)
    is_active = Column(Boolean, nullable=False, server_default="0", default=False)

    # Snapshot of the slugs this invoice grants to child organizations
    child_feature_slugs = Column(JSON, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_invoice_active_end", "is_active", "subscription_end_at"),
    )


class InvoiceFeatureEntity(Base):
    """
    Join row between an invoice and a feature.

    (invoice_id, feature_id) is deliberately not unique: each row is one
    unit of the feature bought on the invoice.
    """

    __tablename__ = "invoice_features"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    invoice_id = Column(
        BigIntegerType,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    feature_id = Column(
        BigIntegerType,
        ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
