"""Publication of assembled orders to the downstream queue."""

from typing import Optional, Protocol

from confluent_kafka import KafkaException, Producer
from confluent_kafka.admin import AdminClient

from . import SERVICE_NAME
from .errors import PublishError, QueueTransportError
from .logger import kafka_logger as logger
from .result import Result
from .schemas import AssembledOrder, PublishReceipt


class QueueTransport(Protocol):
    """Hands a message body and its attributes to a queue."""

    def send(self, body: str, attributes: dict[str, str], key: Optional[str] = None) -> str:
        """Send one message.

        Returns:
            str: Identifier the queue assigned to the message.

        Raises:
            QueueTransportError: If the queue did not accept the message.
        """
        ...

    def is_ready(self) -> bool:
        """Check if the queue behind the transport is reachable."""
        ...

    def close(self) -> None:
        """Deliver or drop anything still buffered."""
        ...


class KafkaQueueTransport:
    """Kafka-backed queue transport.

    Message attributes travel as Kafka headers and the message key is the order
    id, so every message of one order lands on the same partition. ``send``
    blocks until the delivery report arrives or the timeout elapses.

    Attributes:
        _producer: The underlying Kafka producer instance.
        _topic: Topic receiving the messages.
        _timeout: Seconds to wait for a delivery report.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        topic: str = "assembled-orders",
        timeout: float = 5.0,
        client_id: str = SERVICE_NAME,
    ):
        """Initialize the Kafka producer with the given bootstrap servers.

        Args:
            bootstrap_servers (str): Comma-separated list of Kafka broker addresses.
            topic (str): Destination topic.
            timeout (float): Delivery timeout in seconds, also used as ``message.timeout.ms``.
            client_id (str): Client id reported to the brokers.
        """
        self._bootstrap_servers = bootstrap_servers
        self._topic = topic
        self._timeout = timeout
        self._producer = Producer(
            {
                "bootstrap.servers": bootstrap_servers,
                "client.id": client_id,
                "acks": "all",
                "message.timeout.ms": int(timeout * 1000),
            }
        )

    @property
    def producer(self):
        """Get the underlying Kafka producer instance."""
        return self._producer

    @property
    def topic(self) -> str:
        """Get the destination topic."""
        return self._topic

    def send(self, body: str, attributes: dict[str, str], key: Optional[str] = None) -> str:
        """Produce one message and wait for its delivery report.

        Args:
            body (str): Serialized message body.
            attributes (dict[str, str]): Message attributes, sent as Kafka headers.
            key (str | None): Optional message key.

        Returns:
            str: Message id in the form ``topic:partition:offset``.

        Raises:
            QueueTransportError: If the message was rejected, the producer buffer is
                full, or no delivery report arrived in time.
        """
        delivery = {}

        def on_delivery(err, msg):
            """Record the delivery report of the message produced below."""
            delivery["error"] = err
            delivery["message"] = msg

        try:
            self._producer.produce(
                topic=self._topic,
                key=key.encode("utf-8") if key is not None else None,
                value=body.encode("utf-8"),
                headers=[(name, value.encode("utf-8")) for name, value in attributes.items()],
                on_delivery=on_delivery,
            )
            self._producer.flush(self._timeout)
        except BufferError as e:
            raise QueueTransportError(f"Producer queue is full: {e}") from e
        except KafkaException as e:
            raise QueueTransportError(str(e)) from e

        if not delivery:
            raise QueueTransportError(f"Timed out after {self._timeout}s waiting for delivery to {self._topic}")
        if delivery["error"] is not None:
            raise QueueTransportError(str(delivery["error"]))

        msg = delivery["message"]
        return f"{msg.topic()}:{msg.partition()}:{msg.offset()}"

    def is_ready(self) -> bool:
        """Check if the Kafka cluster answers a metadata request."""
        try:
            admin = AdminClient({"bootstrap.servers": self._bootstrap_servers})
            return bool(admin.list_topics(timeout=self._timeout))
        except KafkaException as e:
            logger.error(f"Kafka connection failed: {e}")
            return False

    def close(self) -> None:
        """Flush pending messages, waiting at most the delivery timeout."""
        remaining = self._producer.flush(self._timeout)
        if remaining > 0:
            logger.warning(f"{remaining} messages still pending delivery")


class QueuePublisher:
    """Serializes assembled orders and publishes them through a transport.

    Failures are returned, never retried here.
    """

    def __init__(self, transport: QueueTransport):
        """Initialize the publisher.

        Args:
            transport (QueueTransport): Queue the serialized orders are handed to.
        """
        self._transport = transport

    @property
    def transport(self) -> QueueTransport:
        """Get the transport messages are handed to."""
        return self._transport

    def publish(self, order: AssembledOrder) -> Result[PublishReceipt, PublishError]:
        """Publish an assembled order.

        Args:
            order (AssembledOrder): The order to publish.

        Returns:
            Result holding the queue receipt, or the transport failure.
        """
        body = order.model_dump_json()
        try:
            message_id = self._transport.send(body, order.message_attributes(), key=order.order_id)
        except QueueTransportError as e:
            logger.error(f"Error publishing order {order.order_id} to queue: {e}")
            return Result.err(PublishError(cause=str(e)))

        logger.bind(assembly_id=order.assembly_id).info(f"Message sent to queue: {message_id}")
        return Result.ok(PublishReceipt(message_id=message_id))

    def is_ready(self) -> bool:
        """Check if the underlying transport is reachable.

        Returns:
            bool: True if the queue accepts connections, False otherwise.
        """
        return self._transport.is_ready()

    def close(self) -> None:
        """Close the underlying transport, flushing buffered messages."""
        self._transport.close()
