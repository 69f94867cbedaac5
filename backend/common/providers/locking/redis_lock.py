import uuid
from typing import Optional

import redis.asyncio as redis

from common.core.config import settings
from common.core.telemetry import get_logger
from .interface import DistributedLockInterface

logger = get_logger(__name__)

# Only the holder of the token may delete or extend the key
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

_EXTEND_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("expire", KEYS[1], ARGV[2])
else
    return 0
end
"""


class RedisLock(DistributedLockInterface):
    """Redis SET NX EX lock with token-checked release."""

    def __init__(self, key_prefix: str = "lock:"):
        self._client: Optional[redis.Redis] = None
        self._lock_prefix = key_prefix
        self._connected = False

    def _key(self, resource_key: str) -> str:
        return f"{self._lock_prefix}{resource_key}"

    async def connect(self) -> bool:
        try:
            self._client = redis.Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                password=settings.redis_password,
                db=settings.redis_db,
                decode_responses=True,
            )
            await self._client.ping()
            self._connected = True
            logger.info("Redis lock provider connected")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._connected = False
            return False

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._connected = False
            logger.info("Redis lock provider disconnected")

    async def _ensure_connected(self) -> None:
        if not self._connected:
            await self.connect()

    async def acquire_lock(
        self, resource_key: str, timeout_seconds: int = 30
    ) -> Optional[str]:
        await self._ensure_connected()
        lock_token = str(uuid.uuid4())

        try:
            acquired = await self._client.set(
                self._key(resource_key), lock_token, nx=True, ex=timeout_seconds
            )
        except Exception as e:
            logger.error(f"Error acquiring lock for {resource_key}: {e}")
            return None

        if not acquired:
            logger.debug(f"Lock for {resource_key} is already held")
            return None
        logger.info(f"Acquired lock for {resource_key}")
        return lock_token

    async def release_lock(self, resource_key: str, lock_token: str) -> bool:
        await self._ensure_connected()
        try:
            result = await self._client.eval(
                _RELEASE_SCRIPT, 1, self._key(resource_key), lock_token
            )
        except Exception as e:
            logger.error(f"Error releasing lock for {resource_key}: {e}")
            return False

        if not result:
            logger.warning(
                f"Cannot release lock for {resource_key} - token mismatch or lock expired"
            )
            return False
        logger.info(f"Released lock for {resource_key}")
        return True

    async def extend_lock(
        self, resource_key: str, lock_token: str, additional_seconds: int
    ) -> bool:
        await self._ensure_connected()
        try:
            result = await self._client.eval(
                _EXTEND_SCRIPT,
                1,
                self._key(resource_key),
                lock_token,
                additional_seconds,
            )
        except Exception as e:
            logger.error(f"Error extending lock for {resource_key}: {e}")
            return False

        if not result:
            logger.warning(
                f"Cannot extend lock for {resource_key} - token mismatch or lock expired"
            )
            return False
        return True
