"""
Database entity for purchasable features.
"""

from sqlalchemy import Column, String, DateTime, Integer, JSON, Text
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class FeatureEntity(Base):
    """
    Purchasable feature database entity.

    A feature carries a price and the entitlement slugs it unlocks.
    Linked to invoices through invoice_features (with repeats).
    """

    __tablename__ = "features"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    currency = Column(String(3), nullable=False, default="USD", server_default="USD")
    amount_cents = Column(Integer, nullable=False, default=0, server_default="0")

    # standard, standard_one_time, custom, custom_one_time
    kind = Column(
        String(50),
        nullable=False,
        default="standard",
        server_default="standard",
        index=True,
    )

    # Ordered list of allow-listed entitlement slugs
    feature_slugs = Column(JSON, nullable=False, default=list)

    description = Column(Text, nullable=True)
    details_link = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
