import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional


class DistributedLockInterface(ABC):
    """Interface for distributed lock providers."""

    @abstractmethod
    async def connect(self) -> bool:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def acquire_lock(
        self, resource_key: str, timeout_seconds: int = 30
    ) -> Optional[str]:
        """
        Acquire a distributed lock for a resource.

        Args:
            resource_key: The resource to lock (e.g., "entitlements:renewal_scan")
            timeout_seconds: Lock expiration time in seconds

        Returns:
            Lock token if acquired, None otherwise
        """
        pass

    @abstractmethod
    async def release_lock(self, resource_key: str, lock_token: str) -> bool:
        """Release a lock. False if the token no longer owns it."""
        pass

    @abstractmethod
    async def extend_lock(
        self, resource_key: str, lock_token: str, additional_seconds: int
    ) -> bool:
        """Reset the lock's TTL. False if the token no longer owns it."""
        pass

    async def acquire_lock_with_retry(
        self,
        resource_key: str,
        lock_ttl_seconds: int = 30,
        acquire_timeout_seconds: float = 5.0,
        retry_interval_ms: int = 50,
    ) -> Optional[str]:
        """
        Acquire a distributed lock, retrying until acquire_timeout_seconds passes.

        Returns:
            Lock token if acquired, None if timeout exceeded
        """
        end_time = time.time() + acquire_timeout_seconds
        while time.time() < end_time:
            token = await self.acquire_lock(resource_key, lock_ttl_seconds)
            if token:
                return token
            await asyncio.sleep(retry_interval_ms / 1000)
        return None
