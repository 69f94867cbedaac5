"""
Service for the feature catalog.
"""

from typing import Optional, Sequence

from common.core.exceptions import NotFoundError, ValidationError
from common.core.telemetry import get_logger, trace_span
from common.db.scoped import transaction
from packages.entitlements.exceptions import DuplicateNameError, FeatureLockedError
from packages.entitlements.models.domain.enums import FeatureKind
from packages.entitlements.models.domain.feature import (
    Feature,
    FeatureCreateModel,
    FeatureUpdateModel,
)
from packages.entitlements.repositories.feature_repository import FeatureRepository
from packages.entitlements.repositories.invoice_feature_repository import (
    InvoiceFeatureRepository,
)
from packages.entitlements.services.invoice_service import InvoiceService
from packages.entitlements.utils.slugs import SlugInput, matching_slugs

logger = get_logger(__name__)

# Terms that cannot change while the feature is sold on an active invoice
LOCKED_FIELDS = ("amount_cents", "currency", "feature_slugs")


class FeatureCatalogService:
    """Service for purchasable features."""

    def __init__(self):
        self.feature_repo = FeatureRepository()
        self.invoice_feature_repo = InvoiceFeatureRepository()
        self.invoice_service = InvoiceService()

    @staticmethod
    def matching_slugs(candidates: SlugInput) -> Optional[list[str]]:
        return matching_slugs(candidates)

    def _validate(self, name: Optional[str], currency: Optional[str], amount_cents):
        if name is not None and not name:
            raise ValidationError("Feature name is required")
        if currency is not None and not currency:
            raise ValidationError("Currency is required")
        if amount_cents is not None and amount_cents < 0:
            raise ValidationError(f"Feature price cannot be negative, got {amount_cents}")

    @trace_span
    async def register_feature(self, data: FeatureCreateModel) -> Feature:
        self._validate(data.name, data.currency, data.amount_cents)

        async with transaction():
            if await self.feature_repo.get_by_name(data.name):
                raise DuplicateNameError(data.name)
            feature = await self.feature_repo.create(data)

        logger.info(
            f"Registered feature {feature.id} ({feature.name})",
            extra={"feature_id": feature.id, "kind": feature.kind.value},
        )
        return feature

    @trace_span
    async def get_feature(self, feature_id: int) -> Feature:
        feature = await self.feature_repo.get(feature_id)
        if not feature:
            raise NotFoundError(f"Feature {feature_id} not found")
        return feature

    @trace_span
    async def list_features(
        self, kinds: Optional[Sequence[FeatureKind]] = None
    ) -> list[Feature]:
        return await self.feature_repo.list_by_kind(kinds)

    @trace_span
    async def list_recurring_features(self) -> list[Feature]:
        return await self.feature_repo.list_recurring()

    @trace_span
    async def is_locked(self, feature_id: int) -> bool:
        feature = await self.get_feature(feature_id)
        return await self.feature_repo.is_locked(feature)

    @trace_span
    async def update_feature(self, feature_id: int, data: FeatureUpdateModel) -> Feature:
        """
        Update a feature and re-save every invoice that carries it.

        Price and slug changes are rejected while the feature is locked,
        before anything is written.
        """
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in ("description", "details_link")
        }
        self._validate(
            changes.get("name"), changes.get("currency"), changes.get("amount_cents")
        )

        async with transaction():
            feature = await self.get_feature(feature_id)

            locked_changes = [
                field
                for field in LOCKED_FIELDS
                if field in changes and changes[field] != getattr(feature, field)
            ]
            if locked_changes and await self.feature_repo.is_locked(feature):
                logger.warning(
                    f"Rejected change to locked feature {feature_id}",
                    extra={"feature_id": feature_id, "fields": locked_changes},
                )
                raise FeatureLockedError(feature_id, locked_changes)

            new_name = changes.get("name")
            if new_name and new_name != feature.name:
                if await self.feature_repo.get_by_name(new_name):
                    raise DuplicateNameError(new_name)

            updated = await self.feature_repo.update(
                feature_id, FeatureUpdateModel(**changes)
            )

            invoice_ids = await self.invoice_feature_repo.list_invoice_ids_for_feature(
                feature_id
            )
            for invoice_id in invoice_ids:
                await self.invoice_service.save_invoice(invoice_id)

        logger.info(
            f"Updated feature {feature_id}, re-saved {len(invoice_ids)} invoices",
            extra={"feature_id": feature_id, "fields": sorted(changes)},
        )
        return updated
