import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import quote

import aio_pika
from aio_pika import Message, connect_robust
from opentelemetry import trace
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from common.core.config import settings
from common.core.telemetry import get_logger
from .interface import MessageQueueInterface

logger = get_logger(__name__)

tracer = trace.get_tracer(__name__)
propagator = TraceContextTextMapPropagator()


class QueueConfig:
    DLQ_MESSAGE_TTL_MS = 86400000  # 24 hours
    DLQ_MAX_LENGTH = 10000
    DLX_SUFFIX = ".dlx"
    DLQ_SUFFIX = ".dlq"


class RabbitMQClient(MessageQueueInterface):
    """aio-pika client. Publishes persistent JSON messages on the default exchange."""

    def __init__(self):
        self.connection: Optional[aio_pika.abc.AbstractRobustConnection] = None
        self.channel: Optional[aio_pika.abc.AbstractChannel] = None
        self.host = settings.rabbitmq_host
        self.port = settings.rabbitmq_port
        self.username = settings.rabbitmq_username
        self.password = settings.rabbitmq_password
        self.vhost = settings.rabbitmq_vhost
        self._declared: set[str] = set()

    @property
    def _url(self) -> str:
        vhost = "" if self.vhost == "/" else quote(self.vhost, safe="")
        return (
            f"amqp://{quote(self.username, safe='')}:"
            f"{quote(self.password, safe='')}"
            f"@{self.host}:{self.port}/{vhost}"
        )

    async def _ensure_channel(self) -> None:
        if not self.channel or self.channel.is_closed:
            await self.connect()

    async def _setup_dead_letter_queue(self, queue_name: str) -> Dict[str, str]:
        """Declare <queue>.dlx and <queue>.dlq and return the main queue's DLX arguments."""
        dlx_name = f"{queue_name}{QueueConfig.DLX_SUFFIX}"
        dlq_name = f"{queue_name}{QueueConfig.DLQ_SUFFIX}"

        await self.channel.declare_exchange(
            name=dlx_name, type=aio_pika.ExchangeType.DIRECT, durable=True
        )
        dlq = await self.channel.declare_queue(
            dlq_name,
            durable=True,
            arguments={
                "x-message-ttl": QueueConfig.DLQ_MESSAGE_TTL_MS,
                "x-max-length": QueueConfig.DLQ_MAX_LENGTH,
            },
        )
        await dlq.bind(dlx_name, routing_key=queue_name)
        logger.info(f"Declared dead letter exchange {dlx_name} and queue {dlq_name}")

        return {
            "x-dead-letter-exchange": dlx_name,
            "x-dead-letter-routing-key": queue_name,
        }

    async def connect(self) -> bool:
        try:
            self.connection = await connect_robust(self._url)
            self.channel = await self.connection.channel()
            logger.info("Connected to RabbitMQ")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to RabbitMQ: {e}")
            return False

    async def disconnect(self) -> None:
        try:
            if self.channel and not self.channel.is_closed:
                await self.channel.close()
            if self.connection and not self.connection.is_closed:
                await self.connection.close()
            self._declared.clear()
            logger.info("Disconnected from RabbitMQ")
        except Exception as e:
            logger.error(f"Error disconnecting from RabbitMQ: {e}")

    async def declare_queue(
        self, queue: str, durable: bool = True, dlq_enabled: bool = True
    ) -> bool:
        try:
            await self._ensure_channel()

            arguments = None
            if dlq_enabled:
                arguments = await self._setup_dead_letter_queue(queue)

            await self.channel.declare_queue(queue, durable=durable, arguments=arguments)
            self._declared.add(queue)
            logger.info(f"Declared queue: {queue} (DLQ enabled: {dlq_enabled})")
            return True
        except Exception as e:
            logger.error(f"Failed to declare queue {queue}: {e}")
            return False

    async def publish(self, queue: str, message: Dict[str, Any]) -> bool:
        try:
            await self._ensure_channel()
            if queue not in self._declared:
                await self.declare_queue(queue, durable=True, dlq_enabled=True)

            # Carry the current trace into the consumer
            headers: Dict[str, Any] = {}
            propagator.inject(headers)

            await self.channel.default_exchange.publish(
                Message(
                    body=json.dumps(message).encode(),
                    delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                    content_type="application/json",
                    headers=headers,
                ),
                routing_key=queue,
                mandatory=True,
            )
            logger.info(f"Published message to queue {queue}")
            return True
        except Exception as e:
            logger.error(f"Failed to publish message to {queue}: {e}")
            return False

    async def consume(
        self,
        queue: str,
        callback: Callable[[Dict[str, Any]], Awaitable[None]],
        auto_ack: bool = False,
        prefetch_count: int = 1,
    ) -> None:
        """
        Consume until cancelled.

        A failing message is requeued once; if it fails again after
        redelivery it is rejected into the dead letter queue.
        """
        await self._ensure_channel()
        await self.channel.set_qos(prefetch_count=prefetch_count)
        if queue not in self._declared:
            await self.declare_queue(queue, durable=True, dlq_enabled=True)
        queue_obj = await self.channel.get_queue(queue)

        async def handle(message: aio_pika.abc.AbstractIncomingMessage) -> None:
            ctx = propagator.extract(message.headers or {})
            redelivered = bool(message.redelivered)
            with tracer.start_as_current_span("consume_message", context=ctx) as span:
                span.set_attribute("messaging.system", "rabbitmq")
                span.set_attribute("messaging.source", queue)
                span.set_attribute("messaging.redelivered", redelivered)
                try:
                    payload = json.loads(message.body.decode())
                except json.JSONDecodeError as e:
                    logger.error(f"Dropping malformed message on {queue}: {e}")
                    if not auto_ack:
                        await message.reject(requeue=False)
                    return

                try:
                    await callback(payload)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(trace.Status(trace.StatusCode.ERROR))
                    logger.error(f"Error processing message: {e}", exc_info=True)
                    if not auto_ack:
                        await message.reject(requeue=not redelivered)
                    return

                if not auto_ack:
                    await message.ack()

        logger.info(
            f"Starting to consume from queue {queue} with prefetch={prefetch_count}, auto_ack={auto_ack}"
        )
        await queue_obj.consume(handle, no_ack=auto_ack)

        try:
            await asyncio.Future()
        except asyncio.CancelledError:
            logger.info(f"Consumer cancelled for queue {queue}")
            raise
