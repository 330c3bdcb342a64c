"""
Shared fixtures: in-memory bus, fake GPIO, fake power switches, recording
sleeper. Nothing here needs a broker or a Raspberry Pi.
"""

import json
from typing import Dict, List, Optional, Tuple

import pytest

from wafflebot_hardware import DigitalIO, LineDirection, PowerSwitch, PowerSwitches, Pull
from wafflebot_mqtt import MessageBus
from wafflebot_service import WaffleConfig
from wafflebot_service.config import OrchestratorConfig


class InMemoryBus(MessageBus):
    """MessageBus that records publishes and replays queued payloads."""

    def __init__(self):
        self.published: List[Tuple[str, dict]] = []
        self.pending: Dict[str, List] = {}

    def publish(self, topic, payload) -> bool:
        self.published.append((topic, json.loads(self.encode(payload))))
        return True

    def subscribe(self, topic):
        return iter(self.pending.pop(topic, []))

    def inject(self, topic, payload) -> None:
        self.pending.setdefault(topic, []).append(payload)

    def messages(self, topic) -> List[dict]:
        return [payload for t, payload in self.published if t == topic]

    def actions(self, topic) -> List[str]:
        return [payload["message"] for payload in self.messages(topic)]

    def clear(self) -> None:
        self.published.clear()


class FakeIO(DigitalIO):
    """
    DigitalIO that records every call.

    inputs: pin -> list of levels returned by successive reads (True = high);
    the last level repeats. Unlisted pins read low.
    fail_on_high: (pin, n) raises OSError on the n-th set_high of pin.
    """

    def __init__(self):
        self.calls: List[Tuple] = []
        self.levels: Dict[int, bool] = {}
        self.directions: Dict[int, LineDirection] = {}
        self.pulls: Dict[int, Optional[Pull]] = {}
        self.inputs: Dict[int, List[bool]] = {}
        self.reads: Dict[int, int] = {}
        self.fail_on_high: Optional[Tuple[int, int]] = None
        self._highs: Dict[int, int] = {}

    def configure_line(self, pin, direction, pull=None):
        self.calls.append(("configure", pin, direction))
        self.directions[pin] = direction
        self.pulls[pin] = pull

    def set_high(self, pin):
        self._highs[pin] = self._highs.get(pin, 0) + 1
        if self.fail_on_high and self.fail_on_high == (pin, self._highs[pin]):
            raise OSError(f"GPIO write failed on pin {pin}")
        self.calls.append(("high", pin))
        self.levels[pin] = True

    def set_low(self, pin):
        self.calls.append(("low", pin))
        self.levels[pin] = False

    def read_low(self, pin):
        count = self.reads.get(pin, 0)
        self.reads[pin] = count + 1
        script = self.inputs.get(pin)
        if not script:
            return True
        level = script[min(count, len(script) - 1)]
        return not level

    def high_count(self, pin) -> int:
        return sum(1 for call in self.calls if call == ("high", pin))


class RecordingSleeper:
    """Sleeper stand-in that returns immediately and records durations."""

    def __init__(self):
        self.durations: List[float] = []
        self.cancelled = False

    def sleep(self, seconds):
        self.durations.append(seconds)
        return True

    def cancel(self):
        self.cancelled = True

    def reset(self):
        self.cancelled = False


class FakePowerSwitch(PowerSwitch):
    def __init__(self, name, state=False):
        self.name = name
        self.state = state
        self.calls: List[str] = []

    def on(self):
        self.calls.append("on")
        self.state = True

    def off(self):
        self.calls.append("off")
        self.state = False

    def is_on(self):
        return self.state


class FakeTimer:
    """OneShotTimer stand-in; fire() runs the armed callback."""

    def __init__(self):
        self.armed: List[float] = []
        self.cancels = 0
        self.callback = None

    def arm(self, seconds, callback):
        self.armed.append(seconds)
        self.callback = callback

    def cancel(self):
        self.cancels += 1
        pending = self.callback is not None
        self.callback = None
        return pending

    def fire(self):
        callback, self.callback = self.callback, None
        callback()


@pytest.fixture
def bus():
    return InMemoryBus()


@pytest.fixture
def io():
    return FakeIO()


@pytest.fixture
def sleeper():
    return RecordingSleeper()


@pytest.fixture
def switches():
    return PowerSwitches(
        iron=FakePowerSwitch("waffle_iron"),
        peripheral=FakePowerSwitch("usb_hub"),
        control=FakePowerSwitch("control"),
    )


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def config():
    return WaffleConfig()


@pytest.fixture
def boot_config():
    return WaffleConfig(
        orchestrator=OrchestratorConfig(full_boot_sequence=True, auto_shutdown_seconds=220)
    )

