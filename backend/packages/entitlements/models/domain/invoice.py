"""
Domain models for invoices.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from packages.entitlements.constants import DEFAULT_CURRENCY
from packages.entitlements.models.domain.enums import InvoiceState, SubscriptionKind
from packages.entitlements.utils.amounts import amount_to_cents, display_amount
from packages.entitlements.utils.ledger_state import (
    is_expired,
    is_paid_in_full,
    was_active,
)
from packages.entitlements.utils.slugs import slugs_string


class Invoice(BaseModel):
    """
    Invoice (ledger) domain model.

    One billing period of an organization's subscription:
    - Billing period (start/end)
    - Amount due and amount paid, in minor units
    - Active flag derived on every save
    - Position in its renewal chain (first_invoice_id)
    """

    id: int
    organization_id: Optional[int] = None
    kind: SubscriptionKind = SubscriptionKind.ORGANIZATION
    currency: str = DEFAULT_CURRENCY

    first_invoice_id: Optional[int] = None

    subscription_start_at: Optional[datetime] = None
    subscription_end_at: Optional[datetime] = None

    amount_due_cents: Optional[int] = None
    amount_paid_cents: int = 0

    force_active: bool = False
    is_active: bool = False

    child_feature_slugs: list[str] = Field(default_factory=list)
    notes: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("child_feature_slugs", mode="before")
    @classmethod
    def default_child_slugs(cls, v):
        return v or []

    @property
    def display_name(self) -> str:
        return f"Invoice #{self.id}"

    @property
    def chain_head_id(self) -> int:
        return self.first_invoice_id or self.id

    def is_renewal(self) -> bool:
        return self.first_invoice_id is not None

    def is_first(self) -> bool:
        return self.first_invoice_id is None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return is_expired(self.subscription_end_at, now)

    def paid_in_full(self) -> bool:
        return is_paid_in_full(self.amount_paid_cents, self.amount_due_cents)

    def was_active(self, now: Optional[datetime] = None) -> bool:
        return was_active(
            self.subscription_start_at,
            self.subscription_end_at,
            self.force_active,
            self.amount_paid_cents,
            self.amount_due_cents,
            now,
        )

    def active_or_was_active(self, now: Optional[datetime] = None) -> bool:
        return self.is_active or self.was_active(now)

    def state(self, now: Optional[datetime] = None) -> InvoiceState:
        if self.subscription_start_at is None:
            return InvoiceState.PENDING
        if self.is_expired(now):
            if self.was_active(now):
                return InvoiceState.EXPIRED_BUT_WAS_ACTIVE
            return InvoiceState.EXPIRED
        if self.is_active:
            return InvoiceState.CURRENT
        return InvoiceState.PENDING

    def display_amount_due(self) -> Union[int, float]:
        return display_amount(self.amount_due_cents)

    def display_amount_paid(self) -> Union[int, float]:
        return display_amount(self.amount_paid_cents)

    def child_feature_slugs_string(self) -> str:
        return slugs_string(self.child_feature_slugs)


class InvoiceSummary(BaseModel):
    """An invoice together with the totals of its linked features."""

    invoice: Invoice
    feature_ids: list[int] = Field(default_factory=list)
    feature_slugs: list[str] = Field(default_factory=list)
    feature_cost_cents: int = 0
    state: InvoiceState

    @property
    def discount_cents(self) -> int:
        """Catalog price of the linked features minus what is due. May be negative."""
        return self.feature_cost_cents - (self.invoice.amount_due_cents or 0)

    def display_discount(self) -> Union[int, float]:
        return display_amount(self.discount_cents)


def _amount_due_to_cents(data):
    """Accept amount_due in major units ("80.50") and store it as cents."""
    if isinstance(data, dict) and "amount_due" in data:
        data = dict(data)
        data["amount_due_cents"] = amount_to_cents(data.pop("amount_due"))
    return data


class InvoiceCreateModel(BaseModel):
    """Model for creating a new invoice."""

    class Config:
        use_enum_values = True
        validate_default = True

    organization_id: Optional[int] = None
    kind: SubscriptionKind = SubscriptionKind.ORGANIZATION
    currency: str = DEFAULT_CURRENCY
    first_invoice_id: Optional[int] = None
    subscription_start_at: Optional[datetime] = None
    subscription_end_at: Optional[datetime] = None
    amount_due_cents: Optional[int] = None
    force_active: bool = False
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def parse_amount_due(cls, data):
        return _amount_due_to_cents(data)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class InvoiceUpdateModel(BaseModel):
    """Model for updating an invoice. Only fields that are set are written."""

    class Config:
        use_enum_values = True
        validate_default = True

    organization_id: Optional[int] = None
    kind: Optional[SubscriptionKind] = None
    currency: Optional[str] = None
    subscription_start_at: Optional[datetime] = None
    subscription_end_at: Optional[datetime] = None
    amount_due_cents: Optional[int] = None
    force_active: Optional[bool] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def parse_amount_due(cls, data):
        return _amount_due_to_cents(data)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class InvoiceFeature(BaseModel):
    """One unit of a feature bought on an invoice."""

    id: int
    invoice_id: int
    feature_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
