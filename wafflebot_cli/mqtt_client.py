"""
MQTT client wrapper for the wafflebot CLI.

Handles connection, one-shot publishing and watching a topic.
"""

import json
import paho.mqtt.client as mqtt
from typing import Any, Callable, Dict, Optional


class MQTTCommandClient:
    """Short-lived MQTT client used by the CLI."""

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        ca_cert: Optional[str] = None,
        client_cert: Optional[str] = None,
        client_key: Optional[str] = None,
    ):
        self.broker = broker
        self.port = port

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

        if username and password:
            self.client.username_pw_set(username, password)
        if ca_cert:
            self.client.tls_set(ca_certs=ca_cert, certfile=client_cert, keyfile=client_key)

    def send(self, topic: str, message: Dict[str, Any], qos: int = 1) -> None:
        """
        Publish one JSON message and disconnect.

        Raises:
            ConnectionError: If unable to connect to MQTT broker
            RuntimeError: If publishing fails
        """
        try:
            self.client.connect(self.broker, self.port, keepalive=60)
            self.client.loop_start()

            result = self.client.publish(topic, json.dumps(message), qos=qos)
            result.wait_for_publish(timeout=10.0)

            self.client.loop_stop()
            self.client.disconnect()

        except ConnectionRefusedError:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                "Is mosquitto running?"
            )
        except Exception as e:
            raise RuntimeError(f"Failed to send message: {e}")

        if not result.is_published():
            raise RuntimeError(f"Message to {topic} was not acknowledged by the broker")

    def watch(self, topic: str, on_payload: Callable[[bytes], None], qos: int = 1) -> None:
        """Subscribe to topic and call on_payload for every message. Blocks."""

        def _on_connect(client, userdata, flags, reason_code, properties):
            if not reason_code.is_failure:
                client.subscribe(topic, qos=qos)

        def _on_message(client, userdata, msg):
            on_payload(msg.payload)

        self.client.on_connect = _on_connect
        self.client.on_message = _on_message

        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except ConnectionRefusedError:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                "Is mosquitto running?"
            )

        try:
            self.client.loop_forever()
        finally:
            self.client.disconnect()
