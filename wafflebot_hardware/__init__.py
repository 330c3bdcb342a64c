"""
wafflebot_hardware - Hardware primitives for the waffle appliance

Bounded Context: Physical I/O
Responsibilities:
  - Digital I/O provider (DigitalIO, RPiGPIO)
  - Stateless primitives (Switch, Beeper, Motor)
  - Mains power switches (PowerSwitch, WemoSwitch, PowerSwitches)
  - Host system commands (HostCommands)

Nothing here knows about recipes or the message bus.
"""

from .gpio import DigitalIO, LineDirection, Pull, RPiGPIO
from .primitives import BeepOutcome, Beeper, Motor, Switch
from .power import (
    PowerSwitch,
    PowerSwitchNotFoundError,
    PowerSwitches,
    WemoSwitch,
    discover_wemo_switches,
    select_switches,
)
from .host import HostCommands

__all__ = [
    "DigitalIO",
    "LineDirection",
    "Pull",
    "RPiGPIO",
    "BeepOutcome",
    "Beeper",
    "Motor",
    "Switch",
    "PowerSwitch",
    "PowerSwitchNotFoundError",
    "PowerSwitches",
    "WemoSwitch",
    "discover_wemo_switches",
    "select_switches",
    "HostCommands",
]
