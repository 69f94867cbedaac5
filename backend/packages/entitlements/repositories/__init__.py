"""Repositories for the entitlement ledger."""

from packages.entitlements.repositories.feature_repository import FeatureRepository
from packages.entitlements.repositories.invoice_feature_repository import (
    InvoiceFeatureRepository,
)
from packages.entitlements.repositories.invoice_repository import InvoiceRepository
from packages.entitlements.repositories.payment_repository import PaymentRepository

__all__ = [
    "FeatureRepository",
    "InvoiceFeatureRepository",
    "InvoiceRepository",
    "PaymentRepository",
]
