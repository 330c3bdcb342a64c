"""
ApplianceRig - the actuator's physical hardware, assembled from configuration.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from wafflebot_hardware import Beeper, DigitalIO, LineDirection, Motor, Switch
from wafflebot_service.config import MotionConfig, PinConfig, TimingConfig


@dataclass
class ApplianceRig:
    """
    Motors, switches and the beep sensor of one appliance.

    swing: moves the batter dispenser over the iron and back
    lift: opens and closes the iron lid
    flip: rotates the iron
    valve, pump: batter feed
    beeper: iron's ready beep
    """

    beeper: Beeper
    swing: Motor
    lift: Motor
    flip: Motor
    valve: Switch
    pump: Switch

    @classmethod
    def build(
        cls,
        io: DigitalIO,
        pins: PinConfig,
        motion: MotionConfig,
        timing: TimingConfig,
        step_sleep: Callable[[float], None] = time.sleep,
        poll_sleep: Optional[Callable[[float], object]] = None,
    ) -> "ApplianceRig":
        """
        Configure every line and return the assembled rig.

        Idle lines are configured as outputs and driven low first.

        Args:
            step_sleep: Sleep used between step pulses (sub-millisecond)
            poll_sleep: Sleep used between beeper reads (default: step_sleep)
        """
        for pin in pins.idle_low:
            io.configure_line(pin, LineDirection.OUTPUT)
            io.set_low(pin)

        return cls(
            beeper=Beeper(
                io,
                pins.beeper,
                timeout=timing.beep_timeout,
                poll_interval=timing.beep_poll_interval,
                sleep=poll_sleep or step_sleep,
            ),
            swing=Motor(io, pins.swing_step, pins.swing_direction, motion.swing_step_delay, sleep=step_sleep),
            lift=Motor(io, pins.lift_step, pins.lift_direction, motion.lift_step_delay, sleep=step_sleep),
            flip=Motor(io, pins.flip_step, pins.flip_direction, motion.flip_step_delay, sleep=step_sleep),
            valve=Switch(io, pins.valve),
            pump=Switch(io, pins.pump),
        )
