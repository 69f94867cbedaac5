"""Pure helpers for the entitlement ledger: amounts, slugs, derived state, reconciliation."""

from packages.entitlements.utils.amounts import amount_to_cents, display_amount
from packages.entitlements.utils.feature_quantities import (
    FeatureQuantityPlan,
    normalize_feature_request,
    plan_feature_quantities,
)
from packages.entitlements.utils.ledger_state import (
    add_years,
    compute_is_active,
    default_end_at,
    is_expired,
    is_paid_in_full,
    utcnow,
    was_active,
)
from packages.entitlements.utils.slugs import (
    clean_feature_slugs,
    filter_child_slugs,
    matching_slugs,
    slugs_string,
    split_slugs,
)

__all__ = [
    "amount_to_cents",
    "display_amount",
    "FeatureQuantityPlan",
    "normalize_feature_request",
    "plan_feature_quantities",
    "add_years",
    "compute_is_active",
    "default_end_at",
    "is_expired",
    "is_paid_in_full",
    "utcnow",
    "was_active",
    "clean_feature_slugs",
    "filter_child_slugs",
    "matching_slugs",
    "slugs_string",
    "split_slugs",
]
