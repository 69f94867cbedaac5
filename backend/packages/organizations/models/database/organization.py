"""
Database entity for organizations.
"""

from sqlalchemy import Boolean, Column, DateTime, JSON, String
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class OrganizationEntity(Base):
    """
    Organization database entity.

    paid_feature_slugs and is_paid are a cache of the organization's active
    invoices, rebuilt by the refresh worker.
    """

    __tablename__ = "organizations"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)

    paid_feature_slugs = Column(JSON, nullable=False, default=list)
    is_paid = Column(Boolean, nullable=False, server_default="0", default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
