import json
from unittest.mock import AsyncMock, MagicMock

import aio_pika
import pytest

from common.providers.messaging.constants import QueueName
from common.providers.messaging.messages import OrganizationRefreshMessage
from common.providers.messaging.rabbitmq import RabbitMQClient


@pytest.fixture
def channel():
    channel = MagicMock()
    channel.is_closed = False
    channel.declare_exchange = AsyncMock()
    channel.declare_queue = AsyncMock()
    channel.default_exchange.publish = AsyncMock()
    return channel


@pytest.fixture
def client(channel):
    client = RabbitMQClient()
    client.channel = channel
    return client


@pytest.mark.asyncio
class TestRabbitMQPublish:
    async def test_publishes_persistent_json(self, client, channel):
        payload = OrganizationRefreshMessage(organization_id=5).model_dump()

        assert await client.publish(QueueName.ORGANIZATION_REFRESH, payload) is True

        publish = channel.default_exchange.publish
        publish.assert_called_once()
        message = publish.call_args.args[0]
        assert json.loads(message.body) == {"organization_id": 5}
        assert message.delivery_mode == aio_pika.DeliveryMode.PERSISTENT
        assert publish.call_args.kwargs["routing_key"] == "organization_refresh"

    async def test_declares_queue_with_dead_letter_queue_once(self, client, channel):
        await client.publish(QueueName.ORGANIZATION_REFRESH, {"organization_id": 1})
        await client.publish(QueueName.ORGANIZATION_REFRESH, {"organization_id": 2})

        channel.declare_exchange.assert_called_once()
        declared = [call.args[0] for call in channel.declare_queue.call_args_list]
        assert declared == ["organization_refresh.dlq", "organization_refresh"]
        main_queue = channel.declare_queue.call_args_list[-1]
        assert (
            main_queue.kwargs["arguments"]["x-dead-letter-exchange"]
            == "organization_refresh.dlx"
        )

    async def test_publish_failure_returns_false(self, client, channel):
        channel.default_exchange.publish = AsyncMock(
            side_effect=aio_pika.exceptions.AMQPConnectionError("closed")
        )

        published = await client.publish("organization_refresh", {"organization_id": 1})

        assert published is False


def test_url_quotes_credentials():
    client = RabbitMQClient()
    client.username = "ledger"
    client.password = "p@ss/word"
    client.host = "mq"
    client.port = 5672
    client.vhost = "/"

    assert client._url == "amqp://ledger:p%40ss%2Fword@mq:5672/"
