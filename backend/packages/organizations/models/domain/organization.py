"""
Domain models for organizations.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Organization(BaseModel):
    """Organization domain model."""

    id: int
    name: str
    paid_feature_slugs: list[str] = Field(default_factory=list)
    is_paid: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("paid_feature_slugs", mode="before")
    @classmethod
    def default_slugs(cls, v):
        return v or []

    def has_feature(self, slug: str) -> bool:
        return slug in self.paid_feature_slugs


class OrganizationCreateModel(BaseModel):
    name: str


class OrganizationUpdateModel(BaseModel):
    name: Optional[str] = None
    paid_feature_slugs: Optional[list[str]] = None
    is_paid: Optional[bool] = None
