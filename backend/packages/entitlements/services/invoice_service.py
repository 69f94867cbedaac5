"""
Service for invoices: creation, updates, feature line items and derived state.
"""

import re
from collections import Counter
from datetime import datetime
from typing import Any, Optional

from common.core.config import settings
from common.core.exceptions import NotFoundError, ValidationError
from common.core.telemetry import get_logger, trace_span
from common.db.context import readonly, transactional
from common.db.scoped import transaction
from packages.entitlements.exceptions import MissingOrganizationError
from packages.entitlements.models.domain.enums import InvoiceScope, SubscriptionKind
from packages.entitlements.models.domain.invoice import (
    Invoice,
    InvoiceCreateModel,
    InvoiceSummary,
    InvoiceUpdateModel,
)
from packages.entitlements.repositories.feature_repository import FeatureRepository
from packages.entitlements.repositories.invoice_feature_repository import (
    InvoiceFeatureRepository,
)
from packages.entitlements.repositories.invoice_repository import InvoiceRepository
from packages.entitlements.services.organization_notifier import OrganizationNotifier
from packages.entitlements.utils.feature_quantities import (
    FeatureRequest,
    normalize_feature_request,
    plan_feature_quantities,
)
from packages.entitlements.utils.slugs import SlugInput, filter_child_slugs
from packages.organizations.repositories.organization_repository import (
    OrganizationRepository,
)

logger = get_logger(__name__)

_DIGITS = re.compile(r"\d+")


class InvoiceService:
    """
    Service for invoices (ledger entries).

    Every write goes through save_invoice(), which takes the invoice row
    lock, recomputes derived state and queues the organization refresh.
    """

    def __init__(self):
        self.invoice_repo = InvoiceRepository()
        self.invoice_feature_repo = InvoiceFeatureRepository()
        self.feature_repo = FeatureRepository()
        self.organization_repo = OrganizationRepository()
        self.notifier = OrganizationNotifier()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @trace_span
    async def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = await self.invoice_repo.get(invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    @trace_span
    async def friendly_find(self, value: Any) -> Optional[Invoice]:
        """Find by any string containing the id, e.g. "Invoice #12"."""
        if isinstance(value, int):
            return await self.invoice_repo.get(value)
        match = _DIGITS.search(str(value or ""))
        if not match:
            return None
        return await self.invoice_repo.get(int(match.group()))

    @trace_span
    async def list_for_organization(
        self, organization_id: int, active_only: bool = False
    ) -> list[Invoice]:
        return await self.invoice_repo.list_for_organization(
            organization_id, active_only=active_only
        )

    @trace_span
    @readonly
    async def list_by_scope(
        self, scope: InvoiceScope, now: Optional[datetime] = None
    ) -> list[Invoice]:
        scope = InvoiceScope(scope)
        if scope == InvoiceScope.FIRST:
            return await self.invoice_repo.list_first()
        if scope == InvoiceScope.RENEWAL:
            return await self.invoice_repo.list_renewals()
        if scope == InvoiceScope.ACTIVE:
            return await self.invoice_repo.list_active()
        if scope == InvoiceScope.INACTIVE:
            return await self.invoice_repo.list_inactive()
        if scope == InvoiceScope.CURRENT:
            return await self.invoice_repo.list_current(now)
        if scope == InvoiceScope.EXPIRED:
            return await self.invoice_repo.list_expired(now)
        return await self.invoice_repo.list_should_expire(now)

    @trace_span
    async def feature_slugs(self, invoice_id: int) -> list[str]:
        """Union of the slugs of every feature on the invoice."""
        return await self.invoice_feature_repo.list_feature_slugs([invoice_id])

    @trace_span
    async def feature_cost_cents(self, invoice_id: int) -> int:
        return await self.invoice_feature_repo.feature_cost_cents(invoice_id)

    @trace_span
    async def discount_cents(self, invoice_id: int) -> int:
        summary = await self.get_summary(invoice_id)
        return summary.discount_cents

    @trace_span
    async def get_summary(
        self, invoice_id: int, now: Optional[datetime] = None
    ) -> InvoiceSummary:
        invoice = await self.get_invoice(invoice_id)
        return InvoiceSummary(
            invoice=invoice,
            feature_ids=await self.invoice_feature_repo.list_feature_ids(invoice_id),
            feature_slugs=await self.feature_slugs(invoice_id),
            feature_cost_cents=await self.feature_cost_cents(invoice_id),
            state=invoice.state(now),
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _validate(
        self,
        kind: SubscriptionKind,
        organization_id: Optional[int],
        currency: Optional[str],
        invoice_id: Optional[int] = None,
    ) -> None:
        if SubscriptionKind(kind) == SubscriptionKind.ORGANIZATION and not organization_id:
            raise MissingOrganizationError(invoice_id)
        if not (currency or "").strip():
            raise ValidationError("Currency is required")

    async def _ensure_organization(self, organization_id: Optional[int]) -> None:
        if organization_id is None:
            return
        if not await self.organization_repo.get(organization_id):
            raise NotFoundError(f"Organization {organization_id} not found")

    @trace_span
    async def save_invoice(
        self,
        invoice_id: int,
        values: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Invoice:
        """
        Persist changes to an invoice with its derived state recomputed.

        Runs in (or joins) a transaction holding the invoice row lock. The
        owning organization is notified once the transaction commits.
        """
        values = values or {}
        async with transaction():
            current = await self.invoice_repo.get_for_update(invoice_id)
            if not current:
                raise NotFoundError(f"Invoice {invoice_id} not found")

            self._validate(
                values.get("kind", current.kind),
                values.get("organization_id", current.organization_id),
                values.get("currency", current.currency),
                invoice_id,
            )

            saved = await self.invoice_repo.save_with_derived_state(
                invoice_id,
                values,
                duration_years=settings.subscription_duration_years,
                now=now,
            )

            if current.organization_id != saved.organization_id:
                await self.notifier.notify_organization_changed(current.organization_id)
            await self.notifier.notify_organization_changed(saved.organization_id)

        return saved

    @trace_span
    async def touch_invoice(
        self, invoice_id: int, now: Optional[datetime] = None
    ) -> Invoice:
        """Re-save without changes so derived state catches up with the clock."""
        return await self.save_invoice(invoice_id, now=now)

    @trace_span
    async def create_invoice(
        self, data: InvoiceCreateModel, now: Optional[datetime] = None
    ) -> Invoice:
        self._validate(data.kind, data.organization_id, data.currency)

        async with transaction():
            await self._ensure_organization(data.organization_id)
            created = await self.invoice_repo.create(data)
            invoice = await self.save_invoice(created.id, now=now)

        logger.info(
            f"Created invoice {invoice.id} for organization {invoice.organization_id}",
            extra={
                "invoice_id": invoice.id,
                "organization_id": invoice.organization_id,
                "first_invoice_id": invoice.first_invoice_id,
            },
        )
        return invoice

    @trace_span
    @transactional
    async def update_invoice(
        self,
        invoice_id: int,
        data: InvoiceUpdateModel,
        now: Optional[datetime] = None,
    ) -> Invoice:
        values = data.model_dump(exclude_unset=True)
        for field in ("kind", "currency", "force_active"):
            if field in values and values[field] is None:
                del values[field]
        if values.get("organization_id") is not None:
            await self._ensure_organization(values["organization_id"])
        return await self.save_invoice(invoice_id, values, now=now)

    @trace_span
    @transactional
    async def set_feature_quantities(
        self,
        invoice_id: int,
        requested: FeatureRequest,
        now: Optional[datetime] = None,
    ) -> Invoice:
        """
        Make the invoice's line items match the requested multiset exactly.

        Features missing from the request lose all their rows; unknown
        feature ids are ignored. Repeating the call is a no-op.
        """
        counts = normalize_feature_request(requested)

        if not await self.invoice_repo.get_for_update(invoice_id):
            raise NotFoundError(f"Invoice {invoice_id} not found")

        known = {f.id for f in await self.feature_repo.get_by_ids(list(counts))}
        unknown = sorted(set(counts) - known)
        if unknown:
            logger.warning(
                f"Ignoring unknown feature ids {unknown} for invoice {invoice_id}",
                extra={"invoice_id": invoice_id, "feature_ids": unknown},
            )
        counts = Counter({fid: n for fid, n in counts.items() if fid in known})

        existing = await self.invoice_feature_repo.list_feature_ids(invoice_id)
        plan = plan_feature_quantities(existing, counts)
        if not plan.is_noop():
            await self.invoice_feature_repo.apply_plan(invoice_id, plan)
            logger.info(
                f"Reconciled features on invoice {invoice_id}",
                extra={
                    "invoice_id": invoice_id,
                    "additions": plan.additions,
                    "removals": plan.removals,
                },
            )

        return await self.save_invoice(invoice_id, now=now)

    @trace_span
    @transactional
    async def set_child_feature_slugs(
        self,
        invoice_id: int,
        value: SlugInput,
        now: Optional[datetime] = None,
    ) -> Invoice:
        """
        Set the slugs granted to child organizations.

        Only slugs exposed by the invoice's own features are kept. Blank
        input leaves the current value untouched.
        """
        invoice = await self.invoice_repo.get_for_update(invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")

        available = await self.feature_slugs(invoice_id)
        slugs = filter_child_slugs(value, available)
        if slugs is None:
            return invoice
        return await self.save_invoice(
            invoice_id, {"child_feature_slugs": slugs}, now=now
        )
