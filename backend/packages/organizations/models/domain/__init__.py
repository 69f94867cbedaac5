"""Domain models for organizations."""

from packages.organizations.models.domain.organization import (
    Organization,
    OrganizationCreateModel,
    OrganizationUpdateModel,
)

__all__ = [
    "Organization",
    "OrganizationCreateModel",
    "OrganizationUpdateModel",
]
