"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for the bus infrastructure's structured logs.

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, action, error
    category: connected, publish, received
    action: success, failed

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.action
    | filter event = "action.acknowledged"
    | stats count() by metadata.action
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - action.*: Command/acknowledgment traffic between processes
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_SUBSCRIBED = "mqtt.subscribed"
    """Subscription registered for a topic."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Action Events ==========
    ACTION_RECEIVED = "action.received"
    """Action message decoded from an inbound topic."""

    ACTION_ACKNOWLEDGED = "action.acknowledged"
    """Completion acknowledgment (<action>_done) published."""

    # ========== Error Events ==========
    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to decode an inbound payload."""

    SCHEMA_VALIDATION_ERROR = "error.schema_validation"
    """Payload decoded but failed envelope validation."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""

    ACTION_FAILED = "error.action_handler"
    """Handler raised while performing an action."""

