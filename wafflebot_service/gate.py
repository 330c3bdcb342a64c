"""
PowerGate - two-condition power-up rendezvous.

Control power may only come up once the iron has beeped (it is hot) and
the actuator host has booted. The two confirmations arrive as independent
acknowledgments in either order.
"""

from dataclasses import dataclass


@dataclass
class PowerGate:
    beep_confirmed: bool = False
    boot_confirmed: bool = False

    def confirm_beep(self) -> bool:
        """Latch the beep flag. Returns True if the gate is now open."""
        self.beep_confirmed = True
        return self.is_open

    def confirm_boot(self) -> bool:
        """Latch the boot flag. Returns True if the gate is now open."""
        self.boot_confirmed = True
        return self.is_open

    @property
    def is_open(self) -> bool:
        return self.beep_confirmed and self.boot_confirmed

    def clear(self) -> None:
        """Start a new power cycle."""
        self.beep_confirmed = False
        self.boot_confirmed = False
