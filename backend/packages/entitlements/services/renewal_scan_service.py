"""
Daily renewal scan.

Walks invoices still flagged active after their period ended, pre-creates
each one's renewal and re-saves it so is_active catches up. Invoices are
handled one transaction each; a failure is logged and the scan moves on.
"""

from datetime import datetime
from typing import Optional

from common.core.config import settings
from common.core.telemetry import get_logger, trace_span
from common.db.scoped import transaction
from common.providers.locking.factory import get_lock_provider
from packages.entitlements.lock_keys import (
    RENEWAL_SCAN_LOCK_ACQUIRE_TIMEOUT,
    renewal_scan_lock_key,
)
from packages.entitlements.models.domain.invoice import Invoice
from packages.entitlements.models.domain.renewal_scan import RenewalScanResult
from packages.entitlements.repositories.invoice_repository import InvoiceRepository
from packages.entitlements.services.invoice_service import InvoiceService
from packages.entitlements.services.subscription_chain_service import (
    SubscriptionChainService,
)
from packages.entitlements.utils.ledger_state import as_utc, utcnow

logger = get_logger(__name__)


class RenewalScanService:
    """Runs the daily renewal scan under a distributed lock."""

    def __init__(self):
        self.invoice_repo = InvoiceRepository()
        self.invoice_service = InvoiceService()
        self.chain_service = SubscriptionChainService()
        self.lock_provider = get_lock_provider()

    async def _renew(self, invoice: Invoice, now: datetime, result: RenewalScanResult):
        async with transaction():
            renewal = await self.chain_service.create_following_invoice(invoice.id, now)
            saved = await self.invoice_service.touch_invoice(invoice.id, now)

        if renewal:
            result.renewed_invoice_ids.append(invoice.id)
        if not saved.is_active:
            result.deactivated_invoice_ids.append(invoice.id)

    @trace_span
    async def run_daily_renewal_scan(
        self, now: Optional[datetime] = None
    ) -> RenewalScanResult:
        now = as_utc(now) or utcnow()
        result = RenewalScanResult(started_at=now)
        lock_key = renewal_scan_lock_key()

        token = await self.lock_provider.acquire_lock_with_retry(
            lock_key,
            lock_ttl_seconds=settings.renewal_scan_lock_ttl_seconds,
            acquire_timeout_seconds=RENEWAL_SCAN_LOCK_ACQUIRE_TIMEOUT,
        )
        if not token:
            logger.warning("Renewal scan already running elsewhere; skipping")
            result.skipped = True
            return result

        try:
            after_id = 0
            while True:
                batch = await self.invoice_repo.list_should_expire(
                    now, limit=settings.renewal_scan_batch_size, after_id=after_id
                )
                if not batch:
                    break

                for invoice in batch:
                    result.scanned += 1
                    try:
                        await self._renew(invoice, now, result)
                    except Exception as e:
                        result.failed_invoice_ids.append(invoice.id)
                        logger.error(
                            f"Renewal scan failed for invoice {invoice.id}: {e}",
                            exc_info=True,
                            extra={"invoice_id": invoice.id},
                        )

                after_id = batch[-1].id
                await self.lock_provider.extend_lock(
                    lock_key, token, settings.renewal_scan_lock_ttl_seconds
                )
        finally:
            await self.lock_provider.release_lock(lock_key, token)

        logger.info(
            f"Renewal scan finished: {result.scanned} scanned, "
            f"{len(result.renewed_invoice_ids)} renewed, "
            f"{len(result.failed_invoice_ids)} failed",
            extra={
                "scanned": result.scanned,
                "renewed": len(result.renewed_invoice_ids),
                "deactivated": len(result.deactivated_invoice_ids),
                "failed": len(result.failed_invoice_ids),
            },
        )
        return result
