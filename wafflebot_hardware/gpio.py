"""
Digital I/O providers.

DigitalIO is the only surface the hardware primitives touch: configure a
line, drive it, read it. RPiGPIO implements it on a Raspberry Pi with
RPi.GPIO in BCM numbering.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class LineDirection(str, Enum):
    OUTPUT = "out"
    INPUT = "in"


class Pull(str, Enum):
    UP = "up"
    DOWN = "down"


class DigitalIO(ABC):
    """Digital I/O provider addressed by BCM pin number."""

    @abstractmethod
    def configure_line(self, pin: int, direction: LineDirection, pull: Optional[Pull] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_high(self, pin: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_low(self, pin: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def read_low(self, pin: int) -> bool:
        raise NotImplementedError

    def cleanup(self) -> None:
        """Release the lines; no-op by default."""


class RPiGPIO(DigitalIO):
    """
    DigitalIO backed by RPi.GPIO.

    RPi.GPIO only imports on a Raspberry Pi; it is imported on construction.
    """

    def __init__(self, warnings: bool = False):
        import RPi.GPIO as GPIO

        self._gpio = GPIO
        GPIO.setmode(GPIO.BCM)
        GPIO.setwarnings(warnings)
        logger.info("RPi.GPIO initialized (BCM numbering)")

    def configure_line(self, pin: int, direction: LineDirection, pull: Optional[Pull] = None) -> None:
        GPIO = self._gpio
        if direction == LineDirection.OUTPUT:
            GPIO.setup(pin, GPIO.OUT)
            return

        if pull == Pull.UP:
            GPIO.setup(pin, GPIO.IN, pull_up_down=GPIO.PUD_UP)
        elif pull == Pull.DOWN:
            GPIO.setup(pin, GPIO.IN, pull_up_down=GPIO.PUD_DOWN)
        else:
            GPIO.setup(pin, GPIO.IN)

    def set_high(self, pin: int) -> None:
        self._gpio.output(pin, self._gpio.HIGH)

    def set_low(self, pin: int) -> None:
        self._gpio.output(pin, self._gpio.LOW)

    def read_low(self, pin: int) -> bool:
        return self._gpio.input(pin) == self._gpio.LOW

    def cleanup(self) -> None:
        self._gpio.cleanup()
        logger.info("RPi.GPIO cleaned up")
