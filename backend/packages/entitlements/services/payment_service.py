"""
Service for recording payments against invoices.
"""

from datetime import datetime
from typing import Optional

from common.core.exceptions import NotFoundError
from common.core.telemetry import get_logger, trace_span
from common.db.scoped import transaction
from packages.entitlements.exceptions import InvalidAmountError
from packages.entitlements.models.domain.payment import Payment, PaymentCreateModel
from packages.entitlements.repositories.invoice_repository import InvoiceRepository
from packages.entitlements.repositories.payment_repository import PaymentRepository
from packages.entitlements.services.invoice_service import InvoiceService
from packages.entitlements.utils.ledger_state import utcnow

logger = get_logger(__name__)


class PaymentService:
    """Service for the payment ledger."""

    def __init__(self):
        self.payment_repo = PaymentRepository()
        self.invoice_repo = InvoiceRepository()
        self.invoice_service = InvoiceService()

    @trace_span
    async def record_payment(
        self,
        invoice_id: int,
        amount_cents: int,
        paid_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Payment:
        """
        Append a captured payment and recompute the invoice.

        amount_paid_cents and is_active are rewritten in the same
        transaction; the organization is notified after it commits.
        """
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
            raise InvalidAmountError(amount_cents)
        if amount_cents <= 0:
            raise InvalidAmountError(amount_cents)

        async with transaction():
            invoice = await self.invoice_repo.get_for_update(invoice_id)
            if not invoice:
                raise NotFoundError(f"Invoice {invoice_id} not found")

            payment = await self.payment_repo.create(
                PaymentCreateModel(
                    invoice_id=invoice.id,
                    organization_id=invoice.organization_id,
                    amount_cents=amount_cents,
                    paid_at=paid_at or utcnow(),
                )
            )
            invoice = await self.invoice_service.save_invoice(invoice.id, now=now)

        logger.info(
            f"Recorded payment {payment.id} of {amount_cents} on invoice {invoice_id}",
            extra={
                "payment_id": payment.id,
                "invoice_id": invoice_id,
                "organization_id": invoice.organization_id,
                "amount_cents": amount_cents,
                "amount_paid_cents": invoice.amount_paid_cents,
                "is_active": invoice.is_active,
            },
        )
        return payment

    @trace_span
    async def list_payments(self, invoice_id: int) -> list[Payment]:
        return await self.payment_repo.list_for_invoice(invoice_id)
