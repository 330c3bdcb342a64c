"""
Structured Logging for Wafflebot MQTT
=====================================

Bounded Context: Observability

JSON-structured logging for the bus infrastructure.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from wafflebot_mqtt.logging import StructuredLogger, LogEvent
    >>> logger = StructuredLogger(component="bus")
    >>> logger.info(
    ...     event=LogEvent.MQTT_PUBLISH_SUCCESS,
    ...     message="Published message",
    ...     metadata={'topic': 'wafflebot/commands'}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
