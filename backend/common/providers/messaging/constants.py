"""Constants for messaging system."""

from enum import StrEnum


class QueueName(StrEnum):
    """Queue names for the messaging system."""

    ORGANIZATION_REFRESH = "organization_refresh"
