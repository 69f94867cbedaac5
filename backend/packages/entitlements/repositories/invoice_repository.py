"""
Repository for invoices and their renewal chains.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.telemetry import trace_span
from common.repositories.base import BaseRepository
from packages.entitlements.models.database.invoice import InvoiceEntity
from packages.entitlements.models.domain.invoice import Invoice
from packages.entitlements.repositories.payment_repository import PaymentRepository
from packages.entitlements.utils.ledger_state import (
    as_utc,
    compute_is_active,
    default_end_at,
    utcnow,
)


class InvoiceRepository(BaseRepository[InvoiceEntity, Invoice]):
    """Repository for invoices (ledger entries)."""

    def __init__(self, db_session: Optional[AsyncSession] = None):
        super().__init__(InvoiceEntity, Invoice, db_session)

    @trace_span
    async def get_for_update(self, invoice_id: int) -> Optional[Invoice]:
        """
        Load an invoice and take a row lock on it.

        Only meaningful inside transaction(); the lock is held until the
        surrounding transaction ends.
        """
        query = (
            select(InvoiceEntity)
            .where(InvoiceEntity.id == invoice_id)
            .with_for_update()
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def save_with_derived_state(
        self,
        invoice_id: int,
        values: dict[str, Any],
        duration_years: int = 1,
        now: Optional[datetime] = None,
    ) -> Optional[Invoice]:
        """
        Apply field changes and recompute every derived field before flushing.

        - amount_paid_cents is the sum of the invoice's payments
        - subscription_end_at defaults to start + duration_years
        - is_active = not expired and (force_active or paid in full)
        - child_feature_slugs defaults to an empty list
        """
        async with self._get_session() as session:
            entity = await session.get(InvoiceEntity, invoice_id)
            if entity is None:
                return None

            for field, value in values.items():
                setattr(entity, field, value)

            entity.amount_paid_cents = await PaymentRepository(session).sum_for_invoice(
                invoice_id
            )
            entity.subscription_end_at = default_end_at(
                entity.subscription_start_at, entity.subscription_end_at, duration_years
            )
            entity.is_active = compute_is_active(
                entity.subscription_end_at,
                entity.force_active,
                entity.amount_paid_cents,
                entity.amount_due_cents,
                now,
            )
            if entity.child_feature_slugs is None:
                entity.child_feature_slugs = []

            await session.flush()
            await session.refresh(entity)
            return self._entity_to_domain(entity)

    @trace_span
    async def list_for_organization(
        self, organization_id: int, active_only: bool = False
    ) -> list[Invoice]:
        query = (
            select(InvoiceEntity)
            .where(InvoiceEntity.organization_id == organization_id)
            .order_by(InvoiceEntity.id)
        )
        if active_only:
            query = query.where(InvoiceEntity.is_active.is_(True))

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    # -------------------------------------------------------------------------
    # Chain lookups (by head id)
    # -------------------------------------------------------------------------

    @trace_span
    async def list_renewals_of(
        self, head_id: int, exclude_id: Optional[int] = None
    ) -> list[Invoice]:
        """Invoices whose first_invoice_id is head_id, oldest first."""
        query = (
            select(InvoiceEntity)
            .where(InvoiceEntity.first_invoice_id == head_id)
            .order_by(InvoiceEntity.id)
        )
        if exclude_id is not None:
            query = query.where(InvoiceEntity.id != exclude_id)

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def get_previous_renewal(
        self, head_id: int, before_id: int
    ) -> Optional[Invoice]:
        query = (
            select(InvoiceEntity)
            .where(
                InvoiceEntity.first_invoice_id == head_id,
                InvoiceEntity.id < before_id,
            )
            .order_by(InvoiceEntity.id.desc())
            .limit(1)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_following_renewal(
        self, head_id: int, after_id: int
    ) -> Optional[Invoice]:
        query = (
            select(InvoiceEntity)
            .where(
                InvoiceEntity.first_invoice_id == head_id,
                InvoiceEntity.id > after_id,
            )
            .order_by(InvoiceEntity.id)
            .limit(1)
        )
        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    # -------------------------------------------------------------------------
    # Scopes
    # -------------------------------------------------------------------------

    async def _list_where(self, *criteria, limit: Optional[int] = None) -> list[Invoice]:
        query = select(InvoiceEntity).where(*criteria).order_by(InvoiceEntity.id)
        if limit is not None:
            query = query.limit(limit)

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def list_first(self) -> list[Invoice]:
        return await self._list_where(InvoiceEntity.first_invoice_id.is_(None))

    @trace_span
    async def list_renewals(self) -> list[Invoice]:
        return await self._list_where(InvoiceEntity.first_invoice_id.is_not(None))

    @trace_span
    async def list_active(self) -> list[Invoice]:
        return await self._list_where(InvoiceEntity.is_active.is_(True))

    @trace_span
    async def list_inactive(self) -> list[Invoice]:
        return await self._list_where(InvoiceEntity.is_active.is_(False))

    @trace_span
    async def list_current(self, now: Optional[datetime] = None) -> list[Invoice]:
        """Invoices whose period contains now."""
        now = as_utc(now) or utcnow()
        return await self._list_where(
            InvoiceEntity.subscription_start_at <= now,
            or_(
                InvoiceEntity.subscription_end_at.is_(None),
                InvoiceEntity.subscription_end_at > now,
            ),
        )

    @trace_span
    async def list_expired(self, now: Optional[datetime] = None) -> list[Invoice]:
        now = as_utc(now) or utcnow()
        return await self._list_where(InvoiceEntity.subscription_end_at < now)

    @trace_span
    async def list_should_expire(
        self,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        after_id: int = 0,
    ) -> list[Invoice]:
        """Invoices still flagged active although their period has ended."""
        now = as_utc(now) or utcnow()
        return await self._list_where(
            InvoiceEntity.is_active.is_(True),
            InvoiceEntity.subscription_end_at < now,
            InvoiceEntity.id > after_id,
            limit=limit,
        )
