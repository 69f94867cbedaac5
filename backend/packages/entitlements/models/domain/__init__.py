"""Domain models for the entitlement ledger."""

from packages.entitlements.models.domain.enums import (
    FeatureKind,
    InvoiceScope,
    InvoiceState,
    SubscriptionKind,
)
from packages.entitlements.models.domain.feature import (
    Feature,
    FeatureCreateModel,
    FeatureUpdateModel,
)
from packages.entitlements.models.domain.invoice import (
    Invoice,
    InvoiceCreateModel,
    InvoiceFeature,
    InvoiceSummary,
    InvoiceUpdateModel,
)
from packages.entitlements.models.domain.payment import Payment, PaymentCreateModel
from packages.entitlements.models.domain.renewal_scan import RenewalScanResult

__all__ = [
    # Enums
    "FeatureKind",
    "InvoiceScope",
    "InvoiceState",
    "SubscriptionKind",
    # Feature
    "Feature",
    "FeatureCreateModel",
    "FeatureUpdateModel",
    # Invoice
    "Invoice",
    "InvoiceCreateModel",
    "InvoiceFeature",
    "InvoiceSummary",
    "InvoiceUpdateModel",
    # Payment
    "Payment",
    "PaymentCreateModel",
    # Renewal scan
    "RenewalScanResult",
]
