"""
Wafflebot MQTT Communication Package
====================================

Bounded Context: Communication Protocol between Orchestrator, Actuator and Display

Topics (names come from configuration):
    commands: orchestrator -> actuator   {"message": "<action>"}
    results:  actuator -> orchestrator   {"message": "<action>_done"}
    ui:       orchestrator -> display    {"message": "<text>", "color": "<name>"}

Example:
    >>> from wafflebot_mqtt import MQTTMessageBus, ActionMessage, create_logger
    >>> bus = MQTTMessageBus(broker_host="localhost", logger=create_logger("bus"))
    >>> bus.connect()
    >>> bus.publish("wafflebot/commands", ActionMessage("open_lid").to_dict())
"""

__version__ = "1.0.0"

from .schemas import (
    ACK_SUFFIX,
    ActionMessage,
    UIMessage,
    decode_payload,
)

from .bus import MessageBus, MQTTMessageBus

from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    # Schemas
    'ACK_SUFFIX',
    'ActionMessage',
    'UIMessage',
    'decode_payload',
    # Bus
    'MessageBus',
    'MQTTMessageBus',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
