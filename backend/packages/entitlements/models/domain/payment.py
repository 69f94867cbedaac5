"""
Domain models for payments.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel

from packages.entitlements.utils.amounts import display_amount


class Payment(BaseModel):
    """An amount paid against one invoice. Never mutated."""

    id: int
    invoice_id: int
    organization_id: Optional[int] = None
    amount_cents: int
    paid_at: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def display_amount(self) -> Union[int, float]:
        return display_amount(self.amount_cents)


class PaymentCreateModel(BaseModel):
    invoice_id: int
    organization_id: Optional[int] = None
    amount_cents: int
    paid_at: datetime
