"""
Message Envelope Schemas
========================

Bounded Context: Wire Format

The whole protocol between the orchestrator, the actuator and the display is
two envelopes:

- ActionMessage: {"message": "<action>"} on the command and result topics
- UIMessage: {"message": "<text>", "color": "<name>"} on the UI topic

Acknowledgments are ActionMessages whose action ends in "_done"; the
pairing with the command is by name alone.

Design Principles:
- Immutability: frozen=True
- Validation: constructor rejects empty or non-string fields
- Unknown fields are ignored on decode and never emitted
"""

import json
from dataclasses import dataclass, asdict
from typing import Any, Dict, Union

ACK_SUFFIX = "_done"

Payload = Union[bytes, bytearray, str]


def decode_payload(payload: Payload) -> Dict[str, Any]:
    """
    Decode a raw bus payload into a JSON object.

    Raises:
        ValueError: If the payload is not UTF-8, not JSON, or not an object
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ValueError(f"Payload is not valid UTF-8: {e}") from e

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValueError(f"Payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(
            f"Payload must be a JSON object, got {type(data).__name__}"
        )
    return data


def _require_text(data: Dict[str, Any], key: str) -> str:
    if key not in data:
        raise ValueError(f"Missing required field: '{key}'")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(
            f"Field '{key}' must be a string, got {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class ActionMessage:
    """
    Command or acknowledgment envelope.

    Attributes:
        message: Action name (e.g. "open_lid") or acknowledgment
                 name (e.g. "open_lid_done")

    Invariants:
        - message is a non-empty string

    Example:
        >>> ActionMessage("open_lid").acknowledgment()
        ActionMessage(message='open_lid_done')
    """
    message: str

    def __post_init__(self):
        if not isinstance(self.message, str) or not self.message.strip():
            raise ValueError(f"Action name must be a non-empty string, got {self.message!r}")

    @property
    def action(self) -> str:
        """The action name carried by this envelope."""
        return self.message

    @property
    def is_acknowledgment(self) -> bool:
        """True for "<action>_done" names."""
        return self.message.endswith(ACK_SUFFIX) and len(self.message) > len(ACK_SUFFIX)

    def acknowledgment(self) -> 'ActionMessage':
        """Build the "<action>_done" envelope answering this action."""
        return ActionMessage(message=f"{self.message}{ACK_SUFFIX}")

    def to_dict(self) -> Dict[str, str]:
        """Serialize to JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActionMessage':
        """
        Deserialize from dict.

        Raises:
            ValueError: If 'message' is missing or invalid
        """
        return cls(message=_require_text(data, 'message'))

    @classmethod
    def from_payload(cls, payload: Payload) -> 'ActionMessage':
        """Decode a raw bus payload (bytes or str)."""
        return cls.from_dict(decode_payload(payload))


@dataclass(frozen=True)
class UIMessage:
    """
    Display status envelope.

    Attributes:
        message: Status text ("Opening lid...") or a display cue ("go_home")
        color: Display color name ("yellow", "green", ...)

    Example:
        >>> UIMessage("Cooking...", "red").to_dict()
        {'message': 'Cooking...', 'color': 'red'}
    """
    message: str
    color: str

    def __post_init__(self):
        if not isinstance(self.message, str) or not self.message:
            raise ValueError(f"UI message must be a non-empty string, got {self.message!r}")
        if not isinstance(self.color, str) or not self.color:
            raise ValueError(f"UI color must be a non-empty string, got {self.color!r}")

    def to_dict(self) -> Dict[str, str]:
        """Serialize to JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UIMessage':
        """
        Deserialize from dict.

        Raises:
            ValueError: If 'message' or 'color' is missing or invalid
        """
        return cls(
            message=_require_text(data, 'message'),
            color=_require_text(data, 'color'),
        )

    @classmethod
    def from_payload(cls, payload: Payload) -> 'UIMessage':
        """Decode a raw bus payload (bytes or str)."""
        return cls.from_dict(decode_payload(payload))
