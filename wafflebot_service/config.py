"""
Configuration schema for the wafflebot services.

One YAML file configures both processes: broker and topics, GPIO wiring,
motor calibration, every wait in the recipe, the mains switch names and
the host commands. Every section is optional and falls back to the values
the appliance was calibrated with.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml


def _require_number(name: str, value: Any, integer: bool = False) -> None:
    """Raise ValueError unless value is a number (an int when integer=True). Bools are rejected."""
    allowed = int if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, allowed):
        kind = "an integer" if integer else "a number"
        raise ValueError(f"{name} must be {kind}, got {value!r}")


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    ca_cert: Optional[str] = None
    client_cert: Optional[str] = None
    client_key: Optional[str] = None
    qos: int = 1
    keepalive: int = 60
    client_id_prefix: str = "wafflebot"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        for name in ("port", "qos", "keepalive"):
            _require_number(name, getattr(self, name), integer=True)

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

        if (self.client_cert is None) != (self.client_key is None):
            raise ValueError("client_cert and client_key must be set together")

        if self.client_cert and not self.ca_cert:
            raise ValueError("client_cert requires ca_cert (TLS)")


@dataclass(frozen=True)
class TopicConfig:
    """Bus topic names."""

    commands: str = "wafflebot/commands"
    results: str = "wafflebot/results"
    ui: str = "wafflebot/ui"

    def __post_init__(self):
        names = (self.commands, self.results, self.ui)
        if not all(names):
            raise ValueError("Topic names cannot be empty")
        if len(set(names)) != len(names):
            raise ValueError(f"Topic names must be distinct, got {names}")


@dataclass(frozen=True)
class PinConfig:
    """BCM pin wiring of the actuator host."""

    beeper: int = 16
    swing_step: int = 6
    swing_direction: int = 5
    lift_step: int = 19
    lift_direction: int = 13
    flip_step: int = 21
    flip_direction: int = 20
    valve: int = 14
    pump: int = 15
    idle_low: Tuple[int, ...] = (26,)

    def __post_init__(self):
        assigned = [getattr(self, f.name) for f in fields(self) if f.name != "idle_low"]
        for pin in (*assigned, *self.idle_low):
            _require_number("pin", pin, integer=True)
            if not 0 <= pin <= 27:
                raise ValueError(f"BCM pin must be in [0, 27], got {pin}")
        duplicates = {pin for pin in assigned if assigned.count(pin) > 1}
        if duplicates:
            raise ValueError(f"Pins assigned more than once: {sorted(duplicates)}")
        overlap = set(assigned) & set(self.idle_low)
        if overlap:
            raise ValueError(f"idle_low pins already in use: {sorted(overlap)}")


@dataclass(frozen=True)
class MotionConfig:
    """Open-loop stepper calibration."""

    lid_steps: int = 800
    dispenser_steps: int = 5500
    flip_steps: int = 42000
    swing_step_delay: float = 0.0005
    lift_step_delay: float = 0.0005
    flip_step_delay: float = 0.00005

    def __post_init__(self):
        for name in ("lid_steps", "dispenser_steps", "flip_steps"):
            _require_number(name, getattr(self, name), integer=True)
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        for name in ("swing_step_delay", "lift_step_delay", "flip_step_delay"):
            _require_number(name, getattr(self, name))
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")


@dataclass(frozen=True)
class TimingConfig:
    """Every fixed wait in the recipe, in seconds."""

    # Actuator
    lid_settle: float = 25.0
    dispenser_settle: float = 7.0
    dispense_hold: float = 7.0
    flip_settle: float = 10.0
    finish_settle: float = 10.0
    cooking: float = 420.0
    reset_delay: float = 180.0
    beep_timeout: float = 180.0
    beep_poll_interval: float = 1.0

    # Orchestrator
    reset_done_pause: float = 25.0
    power_up_pause: float = 5.0
    shutdown_done_pause: float = 10.0
    heat_pause: float = 5.0
    boot_pause: float = 15.0

    def __post_init__(self):
        for f in fields(self):
            _require_number(f.name, getattr(self, f.name))
            if getattr(self, f.name) < 0:
                raise ValueError(f"{f.name} must be >= 0, got {getattr(self, f.name)}")
        if self.beep_poll_interval <= 0:
            raise ValueError(
                f"beep_poll_interval must be > 0, got {self.beep_poll_interval}"
            )


@dataclass(frozen=True)
class PowerConfig:
    """Friendly names of the WeMo mains switches."""

    iron: str = "waffle_iron"
    peripheral: str = "usb_hub"
    control: str = "control"

    def __post_init__(self):
        names = (self.iron, self.peripheral, self.control)
        if not all(names):
            raise ValueError("Power switch names cannot be empty")
        if len(set(names)) != len(names):
            raise ValueError(f"Power switch names must be distinct, got {names}")


@dataclass(frozen=True)
class HostConfig:
    """System commands run by the actuator host."""

    shutdown_command: Tuple[str, ...] = ("shutdown", "now")
    finish_cue_command: Tuple[str, ...] = ("omxplayer", "zelda.mp3")


@dataclass(frozen=True)
class OrchestratorConfig:
    """
    Optional orchestrator behaviour.

    full_boot_sequence: start powers the iron and USB hub and waits for the
        boot/beep rendezvous instead of cooking straight away.
    auto_shutdown_seconds: after a reset, power the appliance down if no
        start arrives within this many seconds (None disables).
    """

    full_boot_sequence: bool = False
    auto_shutdown_seconds: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.full_boot_sequence, bool):
            raise ValueError(f"full_boot_sequence must be true or false, got {self.full_boot_sequence!r}")
        if self.auto_shutdown_seconds is None:
            return
        _require_number("auto_shutdown_seconds", self.auto_shutdown_seconds)
        if self.auto_shutdown_seconds <= 0:
            raise ValueError(
                f"auto_shutdown_seconds must be > 0, got {self.auto_shutdown_seconds}"
            )


@dataclass(frozen=True)
class WaffleConfig:
    """
    Main configuration for the orchestrator and actuator.

    Loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    mqtt: MQTTConfig = field(default_factory=MQTTConfig)
    topics: TopicConfig = field(default_factory=TopicConfig)
    pins: PinConfig = field(default_factory=PinConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    power: PowerConfig = field(default_factory=PowerConfig)
    host: HostConfig = field(default_factory=HostConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WaffleConfig":
        """
        Build configuration from a parsed YAML mapping.

        Raises:
            ValueError: On unknown sections/keys or invalid values
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")

        sections = {f.name for f in fields(cls)}
        unknown = set(data) - sections
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        pins_data = data.get("pins")
        if isinstance(pins_data, dict) and "idle_low" in pins_data:
            pins_data = {**pins_data, "idle_low": tuple(pins_data["idle_low"] or ())}

        host_data = data.get("host")
        if isinstance(host_data, dict):
            host_data = {
                key: tuple(value or ()) if key.endswith("_command") else value
                for key, value in host_data.items()
            }

        parsed = {
            "mqtt": _section(MQTTConfig, data.get("mqtt")),
            "topics": _section(TopicConfig, data.get("topics")),
            "pins": _section(PinConfig, pins_data),
            "motion": _section(MotionConfig, data.get("motion")),
            "timing": _section(TimingConfig, data.get("timing")),
            "power": _section(PowerConfig, data.get("power")),
            "host": _section(HostConfig, host_data),
            "orchestrator": _section(OrchestratorConfig, data.get("orchestrator")),
        }
        return cls(**parsed)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "WaffleConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            mqtt:
              broker: "broker.local"
              port: 8883
              ca_cert: "/etc/wafflebot/ca.pem"
              client_cert: "/etc/wafflebot/client.pem"
              client_key: "/etc/wafflebot/client.key"

            topics:
              commands: "wafflebot/commands"
              results: "wafflebot/results"
              ui: "wafflebot/ui"

            timing:
              cooking: 420

            orchestrator:
              full_boot_sequence: false
              auto_shutdown_seconds: null
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

        return cls.from_dict(data)


def _section(section_cls, data: Optional[Dict[str, Any]]):
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{section_cls.__name__} section must be a mapping, got {type(data).__name__}"
        )
    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(
            f"Unknown keys for {section_cls.__name__}: {sorted(unknown)}"
        )
    return section_cls(**data)
