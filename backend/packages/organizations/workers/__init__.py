"""Organization workers."""

from packages.organizations.workers.organization_refresh_worker import (
    OrganizationRefreshWorker,
)

__all__ = ["OrganizationRefreshWorker"]
