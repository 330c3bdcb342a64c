"""
Cancellable waits and one-shot timers.

Every wait in the services goes through a Sleeper instead of time.sleep so
that a wait can be interrupted (e.g. on SIGTERM) without restructuring the
handlers.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Sleeper:
    """
    Interruptible sleep.

    sleep() returns early once cancel() has been called; it keeps returning
    immediately until reset().
    """

    def __init__(self):
        self._cancelled = threading.Event()

    def sleep(self, seconds: float) -> bool:
        """
        Wait for seconds.

        Returns:
            True if the full duration elapsed, False if cancelled
        """
        if seconds <= 0:
            return not self._cancelled.is_set()
        return not self._cancelled.wait(timeout=seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class OneShotTimer:
    """
    Re-armable single timer around threading.Timer.

    Arming replaces any pending timer; cancel() is safe when nothing is armed.
    """

    def __init__(self, name: str = "OneShotTimer"):
        self.name = name
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def arm(self, seconds: float, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(seconds, callback)
            self._timer.name = self.name
            self._timer.daemon = True
            self._timer.start()
        logger.info(f"⏲️  {self.name} armed for {seconds}s")

    def cancel(self) -> bool:
        """Cancel the pending timer. Returns True if one was pending."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None or not timer.is_alive():
            return False
        timer.cancel()
        logger.info(f"⏲️  {self.name} cancelled")
        return True

    @property
    def is_armed(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_alive()
