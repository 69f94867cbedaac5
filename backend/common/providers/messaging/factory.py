from .interface import MessageQueueInterface
from .rabbitmq import RabbitMQClient


def get_message_queue() -> MessageQueueInterface:
    """Get RabbitMQ client instance (async)."""
    return RabbitMQClient()
