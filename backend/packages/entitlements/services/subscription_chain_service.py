"""
Service for walking and extending subscription chains.

A chain is a first invoice plus every invoice whose first_invoice_id points
at it. Lookups always go through the head id.
"""

from datetime import datetime
from typing import Optional

from common.core.exceptions import NotFoundError
from common.core.telemetry import get_logger, trace_span
from common.db.context import readonly
from common.db.scoped import transaction
from packages.entitlements.models.domain.invoice import Invoice, InvoiceCreateModel
from packages.entitlements.repositories.invoice_feature_repository import (
    InvoiceFeatureRepository,
)
from packages.entitlements.repositories.invoice_repository import InvoiceRepository
from packages.entitlements.services.invoice_service import InvoiceService

logger = get_logger(__name__)


class SubscriptionChainService:
    """Service for invoice renewal chains."""

    def __init__(self):
        self.invoice_repo = InvoiceRepository()
        self.invoice_feature_repo = InvoiceFeatureRepository()
        self.invoice_service = InvoiceService()

    @trace_span
    @readonly
    async def chain_head(self, invoice: Invoice) -> Invoice:
        if invoice.is_first():
            return invoice
        head = await self.invoice_repo.get(invoice.first_invoice_id)
        return head or invoice

    @trace_span
    @readonly
    async def chain_members(self, invoice: Invoice) -> list[Invoice]:
        """Renewals sharing this invoice's head, excluding the invoice itself."""
        return await self.invoice_repo.list_renewals_of(
            invoice.chain_head_id, exclude_id=invoice.id
        )

    @trace_span
    @readonly
    async def previous_invoice(self, invoice: Invoice) -> Optional[Invoice]:
        if not invoice.is_renewal():
            return None
        previous = await self.invoice_repo.get_previous_renewal(
            invoice.chain_head_id, invoice.id
        )
        return previous or await self.chain_head(invoice)

    @trace_span
    @readonly
    async def following_invoice(self, invoice: Invoice) -> Optional[Invoice]:
        return await self.invoice_repo.get_following_renewal(
            invoice.chain_head_id, invoice.id
        )

    @trace_span
    async def create_following_invoice(
        self, invoice_id: int, now: Optional[datetime] = None
    ) -> Optional[Invoice]:
        """
        Create the next period's invoice, or return it if it already exists.

        Returns None unless the invoice is active or was active. The new
        invoice starts where this one ends, points at the chain head, gets
        only the recurring features and copies child_feature_slugs as is.
        """
        async with transaction():
            invoice = await self.invoice_repo.get_for_update(invoice_id)
            if not invoice:
                raise NotFoundError(f"Invoice {invoice_id} not found")

            if not invoice.active_or_was_active(now):
                logger.info(
                    f"Invoice {invoice_id} is not active; no renewal created",
                    extra={"invoice_id": invoice_id},
                )
                return None

            existing = await self.following_invoice(invoice)
            if existing:
                return existing

            features = await self.invoice_feature_repo.list_features(invoice.id)
            recurring_ids = [f.id for f in features if f.is_recurring()]

            following = await self.invoice_service.create_invoice(
                InvoiceCreateModel(
                    organization_id=invoice.organization_id,
                    kind=invoice.kind,
                    currency=invoice.currency,
                    first_invoice_id=invoice.chain_head_id,
                    subscription_start_at=invoice.subscription_end_at,
                ),
                now=now,
            )
            await self.invoice_service.set_feature_quantities(
                following.id, recurring_ids, now=now
            )
            following = await self.invoice_service.save_invoice(
                following.id,
                {"child_feature_slugs": list(invoice.child_feature_slugs)},
                now=now,
            )

        logger.info(
            f"Created renewal {following.id} for invoice {invoice_id}",
            extra={
                "invoice_id": invoice_id,
                "following_invoice_id": following.id,
                "first_invoice_id": following.first_invoice_id,
                "recurring_feature_count": len(recurring_ids),
            },
        )
        return following
