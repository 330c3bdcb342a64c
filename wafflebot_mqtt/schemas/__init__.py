"""
Wafflebot MQTT Schemas
=====================

Bounded Context: Data Structures

Immutable, typed envelopes for the three bus topics.

Public API
----------
    ActionMessage: {"message": action} for commands and acknowledgments
    UIMessage: {"message": text, "color": name} for the display
    decode_payload: raw bytes/str -> JSON object (ValueError on failure)
    ACK_SUFFIX: "_done"

Example:
    >>> from wafflebot_mqtt.schemas import ActionMessage
    >>> ActionMessage.from_payload(b'{"message": "open_lid_done"}').is_acknowledgment
    True
"""

from .messages import ACK_SUFFIX, ActionMessage, UIMessage, decode_payload

__all__ = [
    'ACK_SUFFIX',
    'ActionMessage',
    'UIMessage',
    'decode_payload',
]
