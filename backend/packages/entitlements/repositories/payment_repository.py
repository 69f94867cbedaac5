"""
Repository for payments.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.telemetry import trace_span
from common.repositories.base import BaseRepository
from packages.entitlements.models.database.payment import PaymentEntity
from packages.entitlements.models.domain.payment import Payment


class PaymentRepository(BaseRepository[PaymentEntity, Payment]):
    """Repository for payments. Rows are only ever inserted."""

    def __init__(self, db_session: Optional[AsyncSession] = None):
        super().__init__(PaymentEntity, Payment, db_session)

    @trace_span
    async def list_for_invoice(self, invoice_id: int) -> list[Payment]:
        async with self._get_session() as session:
            result = await session.execute(
                select(PaymentEntity)
                .where(PaymentEntity.invoice_id == invoice_id)
                .order_by(PaymentEntity.paid_at, PaymentEntity.id)
            )
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def sum_for_invoice(self, invoice_id: int) -> int:
        async with self._get_session() as session:
            result = await session.execute(
                select(func.coalesce(func.sum(PaymentEntity.amount_cents), 0)).where(
                    PaymentEntity.invoice_id == invoice_id
                )
            )
            return int(result.scalar_one())
