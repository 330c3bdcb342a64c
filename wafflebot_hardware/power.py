"""
Appliance power switches.

Three mains switches feed the appliance: the waffle iron, the USB hub that
powers the actuator host's peripherals, and the motor control supply. They
are WeMo smart plugs, resolved by friendly name once at startup and passed
to the services as a PowerSwitches bundle.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable

import pywemo

logger = logging.getLogger(__name__)


class PowerSwitchNotFoundError(Exception):
    """Raised when a configured switch name is not found on the network"""
    pass


class PowerSwitch(ABC):
    """Named mains switch with on/off/state query."""

    name: str

    @abstractmethod
    def on(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def off(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def is_on(self) -> bool:
        raise NotImplementedError


class WemoSwitch(PowerSwitch):
    """PowerSwitch over a pywemo device."""

    def __init__(self, device):
        self.device = device
        self.name = device.name

    def on(self) -> None:
        logger.info(f"🔌 {self.name}: on")
        self.device.on()

    def off(self) -> None:
        logger.info(f"🔌 {self.name}: off")
        self.device.off()

    def is_on(self) -> bool:
        return bool(self.device.get_state(force_update=True))


@dataclass(frozen=True)
class PowerSwitches:
    """The three appliance switches, injected into the orchestrator."""

    iron: PowerSwitch
    peripheral: PowerSwitch
    control: PowerSwitch


def select_switches(devices: Iterable, iron: str, peripheral: str, control: str) -> PowerSwitches:
    """
    Pick the three appliance switches out of discovered devices by name.

    Raises:
        PowerSwitchNotFoundError: If any name is missing
    """
    by_name: Dict[str, object] = {device.name: device for device in devices}

    missing = [name for name in (iron, peripheral, control) if name not in by_name]
    if missing:
        raise PowerSwitchNotFoundError(
            f"Power switches not found: {', '.join(missing)}. "
            f"Discovered: {', '.join(sorted(by_name)) or 'none'}"
        )

    return PowerSwitches(
        iron=WemoSwitch(by_name[iron]),
        peripheral=WemoSwitch(by_name[peripheral]),
        control=WemoSwitch(by_name[control]),
    )


def discover_wemo_switches(iron: str, peripheral: str, control: str) -> PowerSwitches:
    """Discover WeMo devices on the local network and resolve the three switches."""
    devices = pywemo.discover_devices()
    logger.info(f"Discovered {len(devices)} WeMo device(s)")
    return select_switches(devices, iron=iron, peripheral=peripheral, control=control)
