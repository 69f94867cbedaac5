from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from common.core.telemetry import get_logger
from common.providers.messaging.factory import get_message_queue
from common.providers.messaging.interface import MessageQueueInterface

logger = get_logger(__name__)


T = TypeVar("T", bound=BaseModel)


class BaseWorker(ABC, Generic[T]):
    """Consumes one queue and hands each parsed message to process_message()."""

    def __init__(
        self,
        queue_name: str,
        worker_id: Optional[str] = None,
        message_class: Optional[Type[T]] = None,
        max_concurrent_messages: int = 1,
    ):
        self.queue_name = queue_name
        self.worker_id = worker_id or f"{queue_name}_worker_{uuid4()}"
        self.message_queue: Optional[MessageQueueInterface] = None
        self.running = False
        self.message_class = message_class
        self.max_concurrent_messages = max_concurrent_messages

    async def setup(self):
        self.message_queue = get_message_queue()
        if not await self.message_queue.connect():
            raise ConnectionError(f"Worker {self.worker_id} could not reach the queue")
        await self.message_queue.declare_queue(
            self.queue_name, durable=True, dlq_enabled=True
        )
        logger.info(f"Worker {self.worker_id} setup completed")

    async def cleanup(self):
        if self.message_queue:
            await self.message_queue.disconnect()
        logger.info(f"Worker {self.worker_id} cleanup completed")

    async def start(self):
        """Start the worker to consume messages."""
        if self.running:
            logger.warning(f"Worker {self.worker_id} is already running")
            return

        self.running = True
        logger.info(f"Starting worker {self.worker_id} on queue {self.queue_name}")

        try:
            await self.setup()
            await self.message_queue.consume(
                self.queue_name,
                self._message_handler,
                auto_ack=False,
                prefetch_count=self.max_concurrent_messages,
            )
        finally:
            self.running = False
            await self.cleanup()

    async def stop(self):
        self.running = False
        logger.info(f"Stopping worker {self.worker_id}")

    async def _message_handler(self, message: Dict[str, Any]):
        """Parse the raw payload and process it. Errors propagate so the queue can retry."""
        logger.info(f"Worker {self.worker_id} received message: {message}")

        try:
            parsed = self.message_class(**message) if self.message_class else message
            await self.process_message(parsed)
        except Exception as e:
            logger.error(
                f"Error processing message in worker {self.worker_id}: {e}",
                exc_info=True,
            )
            raise

        logger.info(f"Worker {self.worker_id} successfully processed message")

    @abstractmethod
    async def process_message(self, message: T):
        """Process a message from the queue. Must be implemented by subclasses."""
        pass
