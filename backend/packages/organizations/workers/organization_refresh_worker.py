from common.core.telemetry import get_logger, trace_span
from common.providers.messaging.constants import QueueName
from common.providers.messaging.messages import OrganizationRefreshMessage
from common.workers.base_worker import BaseWorker
from packages.organizations.services.organization_service import OrganizationService

logger = get_logger(__name__)


class OrganizationRefreshWorker(BaseWorker[OrganizationRefreshMessage]):
    """Consumes organization_refresh and rebuilds the organization's paid entitlements."""

    def __init__(self, max_concurrent_messages: int = 4):
        super().__init__(
            QueueName.ORGANIZATION_REFRESH,
            None,
            OrganizationRefreshMessage,
            max_concurrent_messages=max_concurrent_messages,
        )
        self.organization_service = OrganizationService()

    @trace_span
    async def process_message(self, message: OrganizationRefreshMessage):
        logger.info(
            f"Refreshing organization {message.organization_id}",
            extra={"organization_id": message.organization_id},
        )
        await self.organization_service.refresh_paid_features(message.organization_id)
