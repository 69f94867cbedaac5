"""
Outbound "organization changed" signal.

Publishing is deferred to after the outermost commit and never happens for
a rolled-back transaction. One transaction produces at most one message per
organization.
"""

from typing import Optional

from common.core.telemetry import get_logger
from common.db.context import after_commit, get_write_session
from common.providers.messaging.constants import QueueName
from common.providers.messaging.factory import get_message_queue
from common.providers.messaging.interface import MessageQueueInterface
from common.providers.messaging.messages import OrganizationRefreshMessage

logger = get_logger(__name__)

PENDING_REFRESH_KEY = "pending_organization_refresh"


class OrganizationNotifier:
    """Publishes OrganizationRefreshMessage on the organization_refresh queue."""

    def __init__(self, message_queue: Optional[MessageQueueInterface] = None):
        self._message_queue = message_queue

    @property
    def message_queue(self) -> MessageQueueInterface:
        if self._message_queue is None:
            self._message_queue = get_message_queue()
        return self._message_queue

    async def notify_organization_changed(self, organization_id: Optional[int]) -> None:
        if organization_id is None:
            return

        session = get_write_session()
        if session is None:
            await self._publish(organization_id)
            return

        pending = session.info.setdefault(PENDING_REFRESH_KEY, set())
        if organization_id in pending:
            return

        async def publish_after_commit() -> None:
            pending.discard(organization_id)
            await self._publish(organization_id)

        if after_commit(publish_after_commit):
            pending.add(organization_id)
        else:
            await self._publish(organization_id)

    async def _publish(self, organization_id: int) -> None:
        message = OrganizationRefreshMessage(organization_id=organization_id)
        try:
            published = await self.message_queue.publish(
                QueueName.ORGANIZATION_REFRESH, message.model_dump()
            )
        except Exception as e:
            logger.error(
                f"Organization refresh for {organization_id} failed to publish: {e}",
                extra={"organization_id": organization_id},
            )
            return
        if not published:
            logger.warning(
                f"Organization refresh for {organization_id} was not published",
                extra={"organization_id": organization_id},
            )
