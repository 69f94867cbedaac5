"""
Service for organizations and their paid entitlements.
"""

from common.core.exceptions import NotFoundError, ValidationError
from common.core.telemetry import get_logger, trace_span
from common.db.scoped import transaction
from packages.entitlements.repositories.invoice_feature_repository import (
    InvoiceFeatureRepository,
)
from packages.entitlements.repositories.invoice_repository import InvoiceRepository
from packages.organizations.models.domain.organization import (
    Organization,
    OrganizationCreateModel,
    OrganizationUpdateModel,
)
from packages.organizations.repositories.organization_repository import (
    OrganizationRepository,
)

logger = get_logger(__name__)


class OrganizationService:
    """Service for organization identity and the entitlement cache."""

    def __init__(self):
        self.organization_repo = OrganizationRepository()
        self.invoice_repo = InvoiceRepository()
        self.invoice_feature_repo = InvoiceFeatureRepository()

    @trace_span
    async def create_organization(self, name: str) -> Organization:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Organization name is required")
        organization = await self.organization_repo.create(
            OrganizationCreateModel(name=name)
        )
        logger.info(
            f"Created organization {organization.id}",
            extra={"organization_id": organization.id},
        )
        return organization

    @trace_span
    async def get_organization(self, organization_id: int) -> Organization:
        organization = await self.organization_repo.get(organization_id)
        if not organization:
            raise NotFoundError(f"Organization {organization_id} not found")
        return organization

    @trace_span
    async def refresh_paid_features(self, organization_id: int) -> Organization:
        """
        Rebuild the organization's entitlement cache from its active invoices.

        paid_feature_slugs becomes the union of the slugs of every feature on
        an active invoice; is_paid is whether any invoice is active. Running
        it twice gives the same result.
        """
        async with transaction():
            organization = await self.get_organization(organization_id)
            active = await self.invoice_repo.list_for_organization(
                organization_id, active_only=True
            )
            slugs = await self.invoice_feature_repo.list_feature_slugs(
                [invoice.id for invoice in active]
            )
            updated = await self.organization_repo.update(
                organization.id,
                OrganizationUpdateModel(paid_feature_slugs=slugs, is_paid=bool(active)),
            )

        logger.info(
            f"Refreshed organization {organization_id}: {len(active)} active invoices, {len(slugs)} slugs",
            extra={
                "organization_id": organization_id,
                "active_invoice_count": len(active),
                "is_paid": bool(active),
            },
        )
        return updated
