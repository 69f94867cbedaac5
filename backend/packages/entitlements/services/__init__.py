"""Entitlement ledger services."""

from packages.entitlements.services.feature_catalog_service import (
    FeatureCatalogService,
)
from packages.entitlements.services.invoice_service import InvoiceService
from packages.entitlements.services.organization_notifier import OrganizationNotifier
from packages.entitlements.services.payment_service import PaymentService
from packages.entitlements.services.renewal_scan_service import RenewalScanService
from packages.entitlements.services.subscription_chain_service import (
    SubscriptionChainService,
)

__all__ = [
    "FeatureCatalogService",
    "InvoiceService",
    "OrganizationNotifier",
    "PaymentService",
    "RenewalScanService",
    "SubscriptionChainService",
]
