"""
Domain models for features.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from packages.entitlements.constants import DEFAULT_CURRENCY
from packages.entitlements.models.domain.enums import FeatureKind
from packages.entitlements.utils.amounts import display_amount
from packages.entitlements.utils.slugs import clean_feature_slugs, slugs_string


class Feature(BaseModel):
    """Purchasable feature domain model."""

    id: int
    name: str
    currency: str
    amount_cents: int
    kind: FeatureKind
    feature_slugs: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    details_link: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("feature_slugs", mode="before")
    @classmethod
    def default_slugs(cls, v):
        return v or []

    def is_recurring(self) -> bool:
        return self.kind.is_recurring()

    def is_one_time(self) -> bool:
        return not self.kind.is_recurring()

    def display_amount(self) -> Union[int, float]:
        return display_amount(self.amount_cents)

    def feature_slugs_string(self) -> str:
        return slugs_string(self.feature_slugs)


class FeatureCreateModel(BaseModel):
    """Model for registering a new feature."""

    class Config:
        use_enum_values = True
        validate_default = True

    name: str
    currency: str = DEFAULT_CURRENCY
    amount_cents: int = 0
    kind: FeatureKind = FeatureKind.STANDARD
    feature_slugs: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    details_link: Optional[str] = None

    @field_validator("name", "currency", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("feature_slugs", mode="before")
    @classmethod
    def clean_slugs(cls, v):
        return clean_feature_slugs(v)


class FeatureUpdateModel(BaseModel):
    """Model for updating a feature. Only fields that are set are written."""

    class Config:
        use_enum_values = True
        validate_default = True

    name: Optional[str] = None
    currency: Optional[str] = None
    amount_cents: Optional[int] = None
    kind: Optional[FeatureKind] = None
    feature_slugs: Optional[list[str]] = None
    description: Optional[str] = None
    details_link: Optional[str] = None

    @field_validator("name", "currency", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("feature_slugs", mode="before")
    @classmethod
    def clean_slugs(cls, v):
        if v is None:
            return None
        return clean_feature_slugs(v)
