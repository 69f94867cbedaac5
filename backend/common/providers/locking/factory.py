from typing import Optional

from common.core.telemetry import get_logger

from .interface import DistributedLockInterface
from .redis_lock import RedisLock

logger = get_logger(__name__)

_lock_provider: Optional[DistributedLockInterface] = None


def get_lock_provider() -> DistributedLockInterface:
    """Get the process-wide distributed lock provider."""
    global _lock_provider

    if _lock_provider is None:
        _lock_provider = RedisLock()
        logger.info("Initialized Redis lock provider")

    return _lock_provider
