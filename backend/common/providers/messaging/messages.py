from pydantic import BaseModel


class OrganizationRefreshMessage(BaseModel):
    """Sent after a committed ledger change; the organization's entitlements must be recomputed."""

    organization_id: int
