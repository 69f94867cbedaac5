"""Organization repositories."""

from packages.organizations.repositories.organization_repository import (
    OrganizationRepository,
)

__all__ = ["OrganizationRepository"]
