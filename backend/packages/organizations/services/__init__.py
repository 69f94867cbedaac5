"""Organization services."""

from packages.organizations.services.organization_service import OrganizationService

__all__ = ["OrganizationService"]
