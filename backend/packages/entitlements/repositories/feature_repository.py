"""
Repository for the feature catalog.
"""

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.telemetry import trace_span
from common.repositories.base import BaseRepository
from packages.entitlements.exceptions import DuplicateNameError
from packages.entitlements.models.database.feature import FeatureEntity
from packages.entitlements.models.database.invoice import (
    InvoiceEntity,
    InvoiceFeatureEntity,
)
from packages.entitlements.models.domain.enums import FeatureKind
from packages.entitlements.models.domain.feature import (
    Feature,
    FeatureCreateModel,
    FeatureUpdateModel,
)


class FeatureRepository(BaseRepository[FeatureEntity, Feature]):
    """Repository for purchasable features."""

    def __init__(self, db_session: Optional[AsyncSession] = None):
        super().__init__(FeatureEntity, Feature, db_session)

    @trace_span
    async def create(self, create_model: FeatureCreateModel) -> Feature:
        """Insert a feature; a unique-name violation raises DuplicateNameError."""
        try:
            return await super().create(create_model)
        except IntegrityError as e:
            raise DuplicateNameError(create_model.name) from e

    @trace_span
    async def update(
        self, id: int, update_model: FeatureUpdateModel
    ) -> Optional[Feature]:
        try:
            return await super().update(id, update_model)
        except IntegrityError as e:
            if update_model.name is None:
                raise
            raise DuplicateNameError(update_model.name) from e

    @trace_span
    async def get_by_name(self, name: str) -> Optional[Feature]:
        async with self._get_session() as session:
            result = await session.execute(
                select(FeatureEntity).where(FeatureEntity.name == name)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def list_by_kind(
        self, kinds: Optional[Sequence[FeatureKind]] = None
    ) -> list[Feature]:
        """List features ordered by id, optionally restricted to some kinds."""
        query = select(FeatureEntity).order_by(FeatureEntity.id)
        if kinds:
            query = query.where(FeatureEntity.kind.in_([k.value for k in kinds]))

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    async def list_recurring(self) -> list[Feature]:
        return await self.list_by_kind(FeatureKind.recurring_kinds())

    @trace_span
    async def has_active_invoice(self, feature_id: int) -> bool:
        """Whether any invoice currently flagged active sells this feature."""
        query = (
            select(InvoiceFeatureEntity.id)
            .join(InvoiceEntity, InvoiceEntity.id == InvoiceFeatureEntity.invoice_id)
            .where(
                InvoiceFeatureEntity.feature_id == feature_id,
                InvoiceEntity.is_active.is_(True),
            )
            .limit(1)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            return result.scalar_one_or_none() is not None

    async def is_locked(self, feature: Feature) -> bool:
        """
        A feature is locked once it grants slugs and is sold on an active invoice.

        Computed on every call, never cached.
        """
        if not feature.feature_slugs:
            return False
        return await self.has_active_invoice(feature.id)
