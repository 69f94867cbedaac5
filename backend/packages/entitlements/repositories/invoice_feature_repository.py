"""
Repository for invoice <-> feature join rows.

Rows are fungible: two rows with the same (invoice_id, feature_id) are
interchangeable, so every write here works on counts.
"""

from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.telemetry import trace_span
from common.repositories.base import BaseRepository
from packages.entitlements.models.database.feature import FeatureEntity
from packages.entitlements.models.database.invoice import InvoiceFeatureEntity
from packages.entitlements.models.domain.feature import Feature
from packages.entitlements.models.domain.invoice import InvoiceFeature
from packages.entitlements.utils.feature_quantities import FeatureQuantityPlan


class InvoiceFeatureRepository(BaseRepository[InvoiceFeatureEntity, InvoiceFeature]):
    """Repository for feature line items on invoices."""

    def __init__(self, db_session: Optional[AsyncSession] = None):
        super().__init__(InvoiceFeatureEntity, InvoiceFeature, db_session)

    @trace_span
    async def list_feature_ids(self, invoice_id: int) -> list[int]:
        """Feature ids on an invoice, one entry per row (repeats included)."""
        query = (
            select(InvoiceFeatureEntity.feature_id)
            .where(InvoiceFeatureEntity.invoice_id == invoice_id)
            .order_by(InvoiceFeatureEntity.id)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    @trace_span
    async def list_features(self, invoice_id: int) -> list[Feature]:
        """Features on an invoice, one entry per row (repeats included)."""
        query = (
            select(FeatureEntity)
            .join(
                InvoiceFeatureEntity,
                InvoiceFeatureEntity.feature_id == FeatureEntity.id,
            )
            .where(InvoiceFeatureEntity.invoice_id == invoice_id)
            .order_by(InvoiceFeatureEntity.id)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            return [Feature.model_validate(entity) for entity in result.scalars().all()]

    @trace_span
    async def feature_cost_cents(self, invoice_id: int) -> int:
        """Catalog price of every row on the invoice."""
        query = (
            select(func.coalesce(func.sum(FeatureEntity.amount_cents), 0))
            .select_from(InvoiceFeatureEntity)
            .join(FeatureEntity, FeatureEntity.id == InvoiceFeatureEntity.feature_id)
            .where(InvoiceFeatureEntity.invoice_id == invoice_id)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            return int(result.scalar_one())

    @trace_span
    async def list_invoice_ids_for_feature(self, feature_id: int) -> list[int]:
        query = (
            select(InvoiceFeatureEntity.invoice_id)
            .where(InvoiceFeatureEntity.feature_id == feature_id)
            .distinct()
            .order_by(InvoiceFeatureEntity.invoice_id)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    @trace_span
    async def list_feature_slugs(self, invoice_ids: Sequence[int]) -> list[str]:
        """Union of the slugs of every feature on the given invoices, first seen first."""
        if not invoice_ids:
            return []

        query = (
            select(FeatureEntity.feature_slugs)
            .join(
                InvoiceFeatureEntity,
                InvoiceFeatureEntity.feature_id == FeatureEntity.id,
            )
            .where(InvoiceFeatureEntity.invoice_id.in_(list(invoice_ids)))
            .order_by(InvoiceFeatureEntity.id)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            slugs: dict[str, None] = {}
            for feature_slugs in result.scalars().all():
                for slug in feature_slugs or []:
                    slugs.setdefault(slug, None)
            return list(slugs)

    @trace_span
    async def add_rows(self, invoice_id: int, feature_id: int, count: int) -> None:
        if count <= 0:
            return
        async with self._get_session() as session:
            session.add_all(
                InvoiceFeatureEntity(invoice_id=invoice_id, feature_id=feature_id)
                for _ in range(count)
            )
            await session.flush()

    @trace_span
    async def remove_rows(self, invoice_id: int, feature_id: int, count: int) -> int:
        """Delete up to `count` rows for the pair, newest first. Returns rows deleted."""
        if count <= 0:
            return 0
        async with self._get_session() as session:
            ids = (
                await session.execute(
                    select(InvoiceFeatureEntity.id)
                    .where(
                        InvoiceFeatureEntity.invoice_id == invoice_id,
                        InvoiceFeatureEntity.feature_id == feature_id,
                    )
                    .order_by(InvoiceFeatureEntity.id.desc())
                    .limit(count)
                )
            ).scalars().all()
            if not ids:
                return 0
            result = await session.execute(
                delete(InvoiceFeatureEntity).where(InvoiceFeatureEntity.id.in_(ids))
            )
            await session.flush()
            return result.rowcount

    async def apply_plan(self, invoice_id: int, plan: FeatureQuantityPlan) -> None:
        for feature_id, count in plan.removals.items():
            await self.remove_rows(invoice_id, feature_id, count)
        for feature_id, count in plan.additions.items():
            await self.add_rows(invoice_id, feature_id, count)
