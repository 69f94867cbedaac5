from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict


class MessageQueueInterface(ABC):
    @abstractmethod
    async def connect(self) -> bool:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def publish(self, queue: str, message: Dict[str, Any]) -> bool:
        """Publish one JSON-serializable message. Returns False instead of raising."""
        pass

    @abstractmethod
    async def consume(
        self,
        queue: str,
        callback: Callable[[Dict[str, Any]], Awaitable[None]],
        auto_ack: bool = False,
        prefetch_count: int = 1,
    ) -> None:
        pass

    @abstractmethod
    async def declare_queue(
        self, queue: str, durable: bool = True, dlq_enabled: bool = True
    ) -> bool:
        pass
