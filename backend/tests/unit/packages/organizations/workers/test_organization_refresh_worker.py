"""
Unit tests for OrganizationRefreshWorker.
"""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from common.providers.messaging.constants import QueueName
from common.providers.messaging.messages import OrganizationRefreshMessage
from packages.entitlements.models.domain.invoice import InvoiceUpdateModel
from packages.organizations.workers.organization_refresh_worker import (
    OrganizationRefreshWorker,
)


@pytest.mark.asyncio
class TestOrganizationRefreshWorker:
    async def test_listens_on_refresh_queue(self):
        worker = OrganizationRefreshWorker(max_concurrent_messages=2)

        assert worker.queue_name == QueueName.ORGANIZATION_REFRESH
        assert worker.message_class is OrganizationRefreshMessage
        assert worker.max_concurrent_messages == 2

    async def test_raw_message_refreshes_organization(self):
        worker = OrganizationRefreshWorker()
        worker.organization_service = AsyncMock()

        await worker._message_handler({"organization_id": 12})

        worker.organization_service.refresh_paid_features.assert_called_once_with(12)

    async def test_refresh_against_database(
        self,
        sample_organization,
        sample_invoice,
        invoice_service,
        standard_feature,
        now,
    ):
        await invoice_service.set_feature_quantities(
            sample_invoice.id, [standard_feature.id], now=now
        )
        await invoice_service.update_invoice(
            sample_invoice.id,
            InvoiceUpdateModel(amount_due_cents=0),
            now=now,
        )
        worker = OrganizationRefreshWorker()

        await worker.process_message(
            OrganizationRefreshMessage(organization_id=sample_organization.id)
        )

        organization = await worker.organization_service.get_organization(
            sample_organization.id
        )
        assert organization.is_paid
        assert organization.paid_feature_slugs == ["csv_exports", "messages"]

    async def test_failure_propagates_for_redelivery(self):
        worker = OrganizationRefreshWorker()
        worker.organization_service = AsyncMock()
        worker.organization_service.refresh_paid_features.side_effect = RuntimeError(
            "db down"
        )

        with pytest.raises(RuntimeError):
            await worker._message_handler({"organization_id": 12})

    async def test_malformed_message_is_rejected(self):
        worker = OrganizationRefreshWorker()
        worker.organization_service = AsyncMock()

        with pytest.raises(ValidationError):
            await worker._message_handler({"organization": "nope"})

        worker.organization_service.refresh_paid_features.assert_not_called()
