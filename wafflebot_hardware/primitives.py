"""
Hardware primitives: Switch, Beeper, Motor.

Stateless wrappers around DigitalIO lines with fixed timing behaviour.
Timing goes through an injected sleep(seconds) callable so tests can run
without real delays.
"""

import time
from enum import Enum
from typing import Callable

from .gpio import DigitalIO, LineDirection, Pull

Sleep = Callable[[float], None]


class Switch:
    """Binary output line. Constructed into the off state."""

    def __init__(self, io: DigitalIO, pin: int):
        self.io = io
        self.pin = pin
        self.io.configure_line(pin, LineDirection.OUTPUT)
        self.off()

    def on(self) -> None:
        self.io.set_high(self.pin)

    def off(self) -> None:
        self.io.set_low(self.pin)


class BeepOutcome(str, Enum):
    DETECTED = "detected"
    TIMED_OUT = "timed_out"


class Beeper:
    """
    Input line wired to the waffle iron's ready beep, pulled low when idle.

    Args:
        io: Digital I/O provider
        pin: BCM input pin
        timeout: Maximum time to wait, in seconds
        poll_interval: Time between reads, in seconds
        sleep: Sleep callable used between reads
    """

    def __init__(
        self,
        io: DigitalIO,
        pin: int,
        timeout: float = 180.0,
        poll_interval: float = 1.0,
        sleep: Sleep = time.sleep,
    ):
        if timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {poll_interval}")

        self.io = io
        self.pin = pin
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self.io.configure_line(pin, LineDirection.INPUT, pull=Pull.DOWN)

    def wait(self) -> BeepOutcome:
        """
        Poll until the line goes high or the timeout elapses.

        The total time slept never exceeds timeout.
        """
        remaining = self.timeout
        while self.io.read_low(self.pin):
            if remaining <= 0:
                return BeepOutcome.TIMED_OUT
            interval = min(self.poll_interval, remaining)
            self._sleep(interval)
            remaining -= interval
        return BeepOutcome.DETECTED


class Motor:
    """
    Open-loop bipolar stepper on a step line and a direction line.

    There is no position feedback: step counts come from calibration and must
    match the physical travel.
    """

    def __init__(
        self,
        io: DigitalIO,
        step_pin: int,
        direction_pin: int,
        step_delay: float,
        sleep: Sleep = time.sleep,
    ):
        if step_delay < 0:
            raise ValueError(f"step_delay must be >= 0, got {step_delay}")
        self.io = io
        self.step_pin = step_pin
        self.direction_pin = direction_pin
        self.step_delay = step_delay
        self._sleep = sleep

    def forward(self, steps: int) -> None:
        """Pulse the step line high then low, steps times."""
        self._check_steps(steps)
        self.io.configure_line(self.step_pin, LineDirection.OUTPUT)
        self._pulse(steps)

    def backward(self, steps: int) -> None:
        """Step with the direction line asserted; it is always released on exit."""
        self._check_steps(steps)
        try:
            self.io.configure_line(self.step_pin, LineDirection.OUTPUT)
            self.io.configure_line(self.direction_pin, LineDirection.OUTPUT)
            self.io.set_high(self.direction_pin)
            self._pulse(steps)
        finally:
            self.io.set_low(self.direction_pin)

    def _pulse(self, steps: int) -> None:
        for _ in range(steps):
            self.io.set_high(self.step_pin)
            self._sleep(self.step_delay)
            self.io.set_low(self.step_pin)
            self._sleep(self.step_delay)

    @staticmethod
    def _check_steps(steps: int) -> None:
        if isinstance(steps, bool) or not isinstance(steps, int) or steps < 0:
            raise ValueError(f"steps must be a non-negative integer, got {steps!r}")
