"""
Unit tests for OrganizationNotifier.
"""

from unittest.mock import AsyncMock

import pytest

from common.db.scoped import transaction
from common.providers.messaging.constants import QueueName
from packages.entitlements.services.organization_notifier import (
    OrganizationNotifier,
)


@pytest.mark.asyncio
class TestOrganizationNotifier:
    """Tests for deferred, de-duplicated organization refresh publishing."""

    async def test_publishes_immediately_outside_transaction(self, mock_message_queue):
        notifier = OrganizationNotifier(mock_message_queue)

        await notifier.notify_organization_changed(42)

        mock_message_queue.publish.assert_called_once_with(
            QueueName.ORGANIZATION_REFRESH, {"organization_id": 42}
        )

    async def test_none_is_ignored(self, mock_message_queue):
        notifier = OrganizationNotifier(mock_message_queue)

        await notifier.notify_organization_changed(None)

        mock_message_queue.publish.assert_not_called()

    async def test_deferred_until_commit(self, mock_message_queue):
        notifier = OrganizationNotifier(mock_message_queue)

        async with transaction():
            await notifier.notify_organization_changed(42)
            mock_message_queue.publish.assert_not_called()

        mock_message_queue.publish.assert_called_once()

    async def test_one_message_per_organization_per_transaction(
        self, mock_message_queue, published_organization_ids
    ):
        notifier = OrganizationNotifier(mock_message_queue)

        async with transaction():
            await notifier.notify_organization_changed(1)
            await notifier.notify_organization_changed(2)
            await notifier.notify_organization_changed(1)
            async with transaction():
                await notifier.notify_organization_changed(2)

        assert published_organization_ids() == [1, 2]

    async def test_dropped_on_rollback(self, mock_message_queue):
        notifier = OrganizationNotifier(mock_message_queue)

        with pytest.raises(ValueError):
            async with transaction():
                await notifier.notify_organization_changed(42)
                raise ValueError("rolled back")

        mock_message_queue.publish.assert_not_called()

    async def test_publish_failure_is_logged_not_raised(self):
        queue = AsyncMock()
        queue.publish = AsyncMock(side_effect=ConnectionError("broker down"))
        notifier = OrganizationNotifier(queue)

        await notifier.notify_organization_changed(42)

        queue.publish.assert_called_once()

    async def test_unpublished_message_is_not_retried(self):
        queue = AsyncMock()
        queue.publish = AsyncMock(return_value=False)
        notifier = OrganizationNotifier(queue)

        await notifier.notify_organization_changed(42)

        queue.publish.assert_called_once()

    async def test_uses_factory_queue_by_default(self, mock_message_queue):
        notifier = OrganizationNotifier()

        await notifier.notify_organization_changed(7)

        mock_message_queue.publish.assert_called_once()
