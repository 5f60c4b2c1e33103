import json
from unittest.mock import MagicMock

import pika

from sales_service.app.messaging import producer as producer_module
from sales_service.app.messaging.producer import RabbitMQProducer


def _fake_connection():
    connection = MagicMock()
    connection.is_closed = False
    return connection


def test_publish_sends_persistent_json(monkeypatch):
    connection = _fake_connection()
    channel = connection.channel.return_value
    monkeypatch.setattr(producer_module.pika, "BlockingConnection", MagicMock(return_value=connection))

    producer = RabbitMQProducer(host="broker")
    assert producer.publish("order.created", {"order_id": 1}) is True

    channel.exchange_declare.assert_called_once_with(exchange="events", exchange_type="topic", durable=True)
    kwargs = channel.basic_publish.call_args.kwargs
    assert kwargs["exchange"] == "events"
    assert kwargs["routing_key"] == "order.created"
    assert json.loads(kwargs["body"]) == {"order_id": 1}
    assert kwargs["properties"].delivery_mode == 2
    connection.close.assert_called_once()


def test_each_publish_uses_a_fresh_connection(monkeypatch):
    first, second = _fake_connection(), _fake_connection()
    blocking = MagicMock(side_effect=[first, second])
    monkeypatch.setattr(producer_module.pika, "BlockingConnection", blocking)

    producer = RabbitMQProducer(host="broker")
    assert producer.publish("order.created", {"order_id": 1}) is True
    # The previous connection is gone; the next event still goes out.
    first.is_closed = True
    assert producer.publish("order.completed", {"order_id": 1}) is True

    assert blocking.call_count == 2
    second.channel.return_value.basic_publish.assert_called_once()
    assert second.channel.return_value.basic_publish.call_args.kwargs["routing_key"] == "order.completed"
    first.close.assert_called_once()
    second.close.assert_called_once()


def test_publish_recovers_after_a_stale_connection(monkeypatch):
    stale, fresh = _fake_connection(), _fake_connection()
    stale.channel.return_value.basic_publish.side_effect = pika.exceptions.StreamLostError("lost")
    monkeypatch.setattr(producer_module.pika, "BlockingConnection", MagicMock(side_effect=[stale, fresh]))

    producer = RabbitMQProducer(host="broker")
    assert producer.publish("order.created", {"order_id": 1}) is False
    stale.close.assert_called_once()

    assert producer.publish("order.created", {"order_id": 2}) is True
    body = fresh.channel.return_value.basic_publish.call_args.kwargs["body"]
    assert json.loads(body) == {"order_id": 2}


def test_publish_reports_broker_failure(monkeypatch):
    monkeypatch.setattr(
        producer_module.pika,
        "BlockingConnection",
        MagicMock(side_effect=pika.exceptions.AMQPConnectionError("down")),
    )

    producer = RabbitMQProducer(host="broker")
    assert producer.publish("order.completed", {"order_id": 1}) is False
