"""Database models for the entitlement ledger."""

# invoices and payments reference organizations.id
from packages.organizations.models.database.organization import (  # noqa: F401
    OrganizationEntity,
)
from packages.entitlements.models.database.feature import FeatureEntity
from packages.entitlements.models.database.invoice import (
    InvoiceEntity,
    InvoiceFeatureEntity,
)
from packages.entitlements.models.database.payment import PaymentEntity

__all__ = [
    "FeatureEntity",
    "InvoiceEntity",
    "InvoiceFeatureEntity",
    "PaymentEntity",
]
