"""Database models for organizations."""

from packages.organizations.models.database.organization import OrganizationEntity

__all__ = ["OrganizationEntity"]
