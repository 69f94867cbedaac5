from enum import Enum


class Environment(str, Enum):
    """Deployment profile, reported on every trace as deployment.environment."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PRODUCTION = "production"
