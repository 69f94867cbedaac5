"""
Repository for organizations.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from common.repositories.base import BaseRepository
from packages.organizations.models.database.organization import OrganizationEntity
from packages.organizations.models.domain.organization import Organization


class OrganizationRepository(BaseRepository[OrganizationEntity, Organization]):
    """Repository for organizations."""

    def __init__(self, db_session: Optional[AsyncSession] = None):
        super().__init__(OrganizationEntity, Organization, db_session)
