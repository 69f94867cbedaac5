"""
Ledger enums - feature recurrence, invoice kind and derived invoice state.
"""

from enum import Enum


class FeatureKind(str, Enum):
    """
    How a feature behaves across renewals.

    Recurring kinds are carried onto the next invoice of a chain;
    one-time kinds never are.
    """

    STANDARD = "standard"
    STANDARD_ONE_TIME = "standard_one_time"
    CUSTOM = "custom"
    CUSTOM_ONE_TIME = "custom_one_time"

    def is_recurring(self) -> bool:
        return self in (FeatureKind.STANDARD, FeatureKind.CUSTOM)

    @classmethod
    def recurring_kinds(cls) -> list["FeatureKind"]:
        return [kind for kind in cls if kind.is_recurring()]


class SubscriptionKind(str, Enum):
    """Whether an invoice must belong to an organization."""

    ORGANIZATION = "organization"
    STANDALONE = "standalone"


class InvoiceState(str, Enum):
    """
    Derived invoice state.

    Flow: pending -> current -> expired / expired_but_was_active
    """

    PENDING = "pending"  # Not started, or started and awaiting payment
    CURRENT = "current"  # Active and within its period
    EXPIRED = "expired"  # Period over, never in good standing
    EXPIRED_BUT_WAS_ACTIVE = "expired_but_was_active"


class InvoiceScope(str, Enum):
    """Named invoice listings."""

    FIRST = "first"  # Chain heads
    RENEWAL = "renewal"
    ACTIVE = "active"
    INACTIVE = "inactive"
    CURRENT = "current"  # Period contains now
    EXPIRED = "expired"  # Period ended
    SHOULD_EXPIRE = "should_expire"  # Still flagged active after the period ended
