"""
MQTT Message Bus
================

Bounded Context: MQTT Infrastructure

The orchestrator and the actuator only ever need two things from the
transport: "give me the messages on this topic, in order" and "send this
message to that topic". MessageBus is that contract; MQTTMessageBus is the
paho-mqtt implementation.

Threading:
    paho-mqtt runs its network loop in a background thread (loop_start).
    _on_message only enqueues raw payloads on a per-topic queue.Queue;
    subscribe() iterators are drained by the consuming thread, so handlers
    never run on the network thread and may block for minutes without
    starving keepalives.

QoS Policy:
    QoS 1 by default (at-least-once) for commands, acknowledgments and UI.

Example:
    >>> bus = MQTTMessageBus(broker_host="localhost", logger=create_logger("bus"))
    >>> inbound = bus.subscribe("wafflebot/results")
    >>> bus.connect()
    >>> bus.publish("wafflebot/commands", {"message": "open_lid"})
    >>> for payload in inbound:
    ...     print(payload)
"""

import json
import queue
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, Optional, Union

import paho.mqtt.client as mqtt

from .logging import StructuredLogger, LogEvent

# Ends a subscribe() iterator
_CLOSED = object()


class MessageBus(ABC):
    """
    Publish/subscribe transport as seen by the wafflebot services.

    Payloads are raw bytes (or str) on the way in; dicts are JSON-encoded
    on the way out.
    """

    @abstractmethod
    def publish(self, topic: str, payload: Union[Dict[str, Any], str, bytes]) -> bool:
        """Publish one message. Returns True on success."""
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, topic: str) -> Iterator[Union[bytes, str]]:
        """Blocking iterator over raw payloads delivered on topic."""
        raise NotImplementedError

    @staticmethod
    def encode(payload: Union[Dict[str, Any], str, bytes]) -> Union[str, bytes]:
        """Serialize dict payloads to JSON; pass str/bytes through."""
        if isinstance(payload, (str, bytes, bytearray)):
            return payload
        return json.dumps(payload)


class MQTTMessageBus(MessageBus):
    """
    MessageBus over an MQTT broker.

    Attributes:
        broker_host: MQTT broker hostname
        broker_port: MQTT broker port
        client_id: MQTT client identifier
        qos: Quality of Service for publish and subscribe
        logger: Structured logger instance

    Thread Safety:
        publish() is safe from any thread. Each subscribe() iterator must be
        consumed by a single thread.
    """

    def __init__(
        self,
        broker_host: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "wafflebot",
        username: Optional[str] = None,
        password: Optional[str] = None,
        ca_cert: Optional[str] = None,
        client_cert: Optional[str] = None,
        client_key: Optional[str] = None,
        qos: int = 1,
        keepalive: int = 60,
    ):
        """
        Initialize MQTT message bus.

        Args:
            broker_host: MQTT broker hostname
            logger: Structured logger for observability
            broker_port: MQTT broker port (default: 1883)
            client_id: Unique client identifier
            username: MQTT authentication username (optional)
            password: MQTT authentication password (optional)
            ca_cert: CA certificate path; enables TLS when set
            client_cert: Client certificate path for mutual TLS (optional)
            client_key: Client private key path for mutual TLS (optional)
            qos: Quality of Service (default: 1, at-least-once)
            keepalive: MQTT keepalive interval in seconds
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.logger = logger
        self.qos = qos
        self.keepalive = keepalive

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username and password:
            self.client.username_pw_set(username, password)
        if ca_cert:
            self.client.tls_set(ca_certs=ca_cert, certfile=client_cert, keyfile=client_key)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        self._connected = threading.Event()
        self._running = False
        self._queues: Dict[str, queue.Queue] = {}
        self._queues_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._published = 0
        self._received = 0

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker ({reason_code})",
                metadata={'broker': self.broker}
            )
            self._connected.clear()
            return

        # Re-subscribe on every (re)connect; the broker forgets clean sessions
        with self._queues_lock:
            topics = list(self._queues)
        for topic in topics:
            client.subscribe(topic, qos=self.qos)

        self._connected.set()
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={'broker': self.broker, 'client_id': self.client_id, 'topics': topics}
        )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        with self._queues_lock:
            inbox = self._queues.get(msg.topic)

        if inbox is None:
            self.logger.warning(
                event=LogEvent.DESERIALIZATION_ERROR,
                message=f"Received message from unknown topic: {msg.topic}"
            )
            return

        with self._stats_lock:
            self._received += 1
        inbox.put(msg.payload)

    # ===== Lifecycle =====

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to MQTT broker and start the network loop.

        Returns:
            True if connected within timeout, False otherwise
        """
        try:
            self.client.connect(self.broker_host, self.broker_port, keepalive=self.keepalive)
            self.client.loop_start()
            self._running = True

            if self._connected.wait(timeout=timeout):
                return True

            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Connection timeout",
                metadata={'timeout': timeout, 'broker': self.broker}
            )
            return False

        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

    def close(self) -> None:
        """End every subscribe() iterator; consumers return from their loops."""
        with self._queues_lock:
            inboxes = list(self._queues.values())
        for inbox in inboxes:
            inbox.put(_CLOSED)

    def disconnect(self) -> None:
        """
        Close subscriptions and disconnect from the broker.

        Safe to call multiple times.
        """
        self.close()
        if not self._running:
            return
        try:
            self.client.loop_stop()
            self.client.disconnect()
            self.logger.info(
                event=LogEvent.MQTT_DISCONNECTED,
                message="Disconnected from broker",
                metadata=self.get_stats()
            )
        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Error during disconnect",
                exc_info=e
            )
        finally:
            self._running = False
            self._connected.clear()

    def is_connected(self) -> bool:
        """Check if currently connected to broker."""
        return self._connected.is_set()

    # ===== MessageBus =====

    def subscribe(self, topic: str) -> Iterator[Union[bytes, str]]:
        """
        Register topic and return a blocking iterator over its payloads.

        The subscription is registered immediately, so messages arriving
        before iteration starts are buffered, not lost.
        """
        with self._queues_lock:
            if topic in self._queues:
                raise ValueError(f"Topic '{topic}' already subscribed")
            inbox: queue.Queue = queue.Queue()
            self._queues[topic] = inbox

        if self._connected.is_set():
            self.client.subscribe(topic, qos=self.qos)

        self.logger.info(
            event=LogEvent.MQTT_SUBSCRIBED,
            message=f"Subscribed to {topic}",
            metadata={'topic': topic, 'qos': self.qos}
        )
        return self._drain(inbox)

    @staticmethod
    def _drain(inbox: queue.Queue) -> Iterator[Union[bytes, str]]:
        while True:
            payload = inbox.get()
            if payload is _CLOSED:
                return
            yield payload

    def publish(self, topic: str, payload: Union[Dict[str, Any], str, bytes]) -> bool:
        """
        Publish one message.

        Returns:
            True if handed to the client successfully, False otherwise.
            Nothing is retried.
        """
        if not self._connected.is_set():
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Cannot publish: not connected to broker",
                metadata={'topic': topic}
            )
            return False

        try:
            result = self.client.publish(
                topic=topic,
                payload=self.encode(payload),
                qos=self.qos,
            )

            if result.rc == mqtt.MQTT_ERR_SUCCESS:
                with self._stats_lock:
                    self._published += 1
                self.logger.debug(
                    event=LogEvent.MQTT_PUBLISH_SUCCESS,
                    message="Published message",
                    metadata={'topic': topic, 'payload': payload}
                )
                return True

            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"Publish failed (rc={result.rc})",
                metadata={'topic': topic}
            )
            return False

        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="Error publishing message",
                exc_info=e,
                metadata={'topic': topic}
            )
            return False

    def get_stats(self) -> Dict[str, Any]:
        """Message counters and connection status."""
        with self._stats_lock:
            return {
                'published': self._published,
                'received': self._received,
                'connected': self._connected.is_set(),
                'topics': sorted(self._queues),
                'broker': self.broker,
            }
