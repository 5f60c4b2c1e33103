import json
import logging

import pika

from .. import config

logger = logging.getLogger(__name__)


class RabbitMQProducer:
    """
    Publishes order events to the RabbitMQ topic exchange.
    Each publish opens its own connection and closes it afterwards, so one
    producer can be shared by request threads and never holds an idle socket.
    """

    def __init__(self, host=None, exchange_name=config.EVENTS_EXCHANGE, exchange_type="topic"):
        self.host = host or config.RABBITMQ_HOST
        self.exchange_name = exchange_name
        self.exchange_type = exchange_type

    def connect(self):
        """Opens a connection and declares the exchange. Returns the connection and its channel."""
        parameters = pika.ConnectionParameters(
            host=self.host,
            heartbeat=600,
            blocked_connection_timeout=300,
            connection_attempts=3,
            retry_delay=2,
        )
        connection = pika.BlockingConnection(parameters)
        channel = connection.channel()
        # Declare the exchange (durable ensures it survives restarts)
        channel.exchange_declare(
            exchange=self.exchange_name,
            exchange_type=self.exchange_type,
            durable=True,
        )
        return connection, channel

    def publish(self, routing_key, message):
        """
        Publishes a message to the exchange with a specific routing key.

        Args:
            routing_key (str): The topic key (e.g., 'order.created', 'order.completed').
            message (dict): The data payload to send.

        Returns:
            bool: True if the broker accepted the message.
        """
        connection = None
        try:
            connection, channel = self.connect()
            channel.basic_publish(
                exchange=self.exchange_name,
                routing_key=routing_key,
                body=json.dumps(message, default=str),
                properties=pika.BasicProperties(
                    delivery_mode=2,  # Make message persistent
                    content_type="application/json",
                ),
            )
        except pika.exceptions.AMQPError as e:
            logger.error("Failed to publish '%s': %s", routing_key, e)
            return False
        finally:
            if connection is not None and not connection.is_closed:
                try:
                    connection.close()
                except pika.exceptions.AMQPError as e:
                    logger.warning("Failed to close broker connection: %s", e)

        logger.info("Sent event '%s': %s", routing_key, message)
        return True
