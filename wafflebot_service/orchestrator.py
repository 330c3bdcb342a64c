"""
Orchestrator - recipe progression and power-up gating.

The orchestrator listens on the results topic. Everything it receives is
either an acknowledgment from the actuator ("<action>_done") or an external
trigger ("start"). It decides whether to advance the recipe, reset it or
start a run, and publishes commands to the actuator and status lines to the
display.

State is implicit in two objects:
- RecipeQueue: steps left in the current run
- PowerGate: beep/boot confirmations of the current power cycle

Threading Model:
- One consuming thread (MessageConsumer.run): handlers run to completion,
  including their waits, before the next message is read
- Optional auto-shutdown timer thread; it takes the dispatch lock, so it
  never interleaves with a handler
"""

import logging
import threading
from functools import partial
from typing import Optional, Sequence

from wafflebot_control import CommandRegistry, MessageConsumer
from wafflebot_hardware import PowerSwitches
from wafflebot_mqtt import ActionMessage, MessageBus, StructuredLogger, UIMessage, create_logger
from wafflebot_service.config import WaffleConfig
from wafflebot_service.gate import PowerGate
from wafflebot_service.recipe import RECIPE, RecipeExhaustedError, RecipeQueue, RecipeStep
from wafflebot_service.timers import OneShotTimer, Sleeper

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Recipe sequencer for the waffle appliance.

    Dispatch rules for an inbound action name:
    1. "<x>_done" with a registered handler -> that handler
    2. "start" -> start()
    3. recipe queue not empty -> cook()
    4. otherwise -> reset()

    Usage:
        orchestrator = Orchestrator(bus=bus, switches=switches, config=config)
        orchestrator.run()  # Blocks until the bus closes
    """

    def __init__(
        self,
        bus: MessageBus,
        switches: PowerSwitches,
        config: WaffleConfig,
        sleeper: Optional[Sleeper] = None,
        shutdown_timer: Optional[OneShotTimer] = None,
        recipe: Sequence[RecipeStep] = RECIPE,
        event_logger: Optional[StructuredLogger] = None,
    ):
        self.bus = bus
        self.switches = switches
        self.config = config
        self.topics = config.topics
        self.timing = config.timing
        self.sleeper = sleeper or Sleeper()
        self.shutdown_timer = shutdown_timer or OneShotTimer(name="AutoShutdownTimer")

        self.queue = RecipeQueue(recipe)
        self.gate = PowerGate()

        self.registry = CommandRegistry()
        self._setup_handlers()

        self._dispatch_lock = threading.RLock()
        self._shutdown_generation = 0
        self.consumer = MessageConsumer(
            bus=bus,
            topic=self.topics.results,
            dispatch=self.handle,
            logger=event_logger or create_logger("orchestrator"),
        )

        logger.info(
            f"Orchestrator initialized ({len(self.queue)} recipe steps, "
            f"full_boot_sequence={config.orchestrator.full_boot_sequence})"
        )

    def _setup_handlers(self):
        registry = self.registry
        registry.register(
            "check_beep_done",
            self.check_beep_done,
            "Iron beeped (or beep wait timed out)"
        )
        registry.register(
            "check_boot_done",
            self.check_boot_done,
            "Actuator host booted"
        )
        registry.register(
            "reset_done",
            self.reset_done,
            "Actuator finished resetting; refill the recipe"
        )
        registry.register(
            "shutdown_done",
            self.shutdown_done,
            "Actuator host is powering off"
        )

    # ===== Lifecycle =====

    def run(self) -> None:
        """Consume the results topic until the bus closes it."""
        logger.info(f"📥 Orchestrator listening on {self.topics.results}")
        self.consumer.run()

    def stop(self) -> None:
        """Interrupt the current wait and stop consuming."""
        self.consumer.stop()
        self.sleeper.cancel()
        self._cancel_auto_shutdown()

    # ===== Dispatch =====

    def handle(self, message: ActionMessage) -> None:
        """Route one inbound action (called by the consumer)."""
        with self._dispatch_lock:
            action = message.action

            if message.is_acknowledgment and self.registry.is_available(action):
                logger.info(f"🎯 Handling {action}")
                self.registry.execute(action)
            elif action == "start":
                self.start()
            elif not self.queue.is_empty:
                self.cook()
            else:
                self.reset()

    # ===== Recipe =====

    def cook(self) -> None:
        """Send the next recipe step to the actuator and show its status."""
        try:
            step = self.queue.pop_front()
        except RecipeExhaustedError:
            logger.warning("⚠️ Recipe already finished; resetting instead")
            self.reset()
            return

        logger.info(f"🧇 Step {step.action} ({len(self.queue)} left)")
        self._command(step.action)
        self._ui(step.status_text, step.display_color)

    def start(self) -> None:
        """
        Begin a run.

        By default this is a single cook() step. With full_boot_sequence the
        appliance is powered up first and cooking begins once the PowerGate
        opens.
        """
        self._cancel_auto_shutdown()

        if not self.config.orchestrator.full_boot_sequence:
            self.cook()
            return

        self._enable(self.switches.iron)
        self._ui("Heating iron...", "red")
        self.sleeper.sleep(self.timing.heat_pause)

        self._enable(self.switches.peripheral)
        self._ui("Booting...", "green")
        self.sleeper.sleep(self.timing.boot_pause)

        self._command("check_boot")
        self._command("check_beep")

    def reset(self) -> None:
        """Ask the actuator to return the appliance to its rest position."""
        self._command("reset")

        delay = self.config.orchestrator.auto_shutdown_seconds
        if delay is not None:
            self._shutdown_generation += 1
            self.shutdown_timer.arm(delay, partial(self._auto_shutdown, self._shutdown_generation))

    def reset_done(self) -> None:
        self.queue.refill()
        self._ui("Resetting...", "gray")
        self.sleeper.sleep(self.timing.reset_done_pause)
        self._ui("go_home", "gray")

    # ===== Power =====

    def check_beep_done(self) -> None:
        if self.gate.confirm_beep():
            self.enable_control()

    def check_boot_done(self) -> None:
        if self.gate.confirm_boot():
            self.enable_control()

    def enable_control(self) -> None:
        """Bring the appliance up and cook the first step, unless control is already on."""
        if self.switches.control.is_on():
            logger.info("Control already on; nothing to do")
            return

        self._ui("Powering up...", "green")
        self.sleeper.sleep(self.timing.power_up_pause)
        self.cook()

    def shutdown(self) -> None:
        """Cut iron and control power and tell the actuator host to power off."""
        logger.info("🛑 Shutting down appliance")
        self.switches.iron.off()
        self.switches.control.off()
        self._command("shutdown")

    def shutdown_done(self) -> None:
        self.sleeper.sleep(self.timing.shutdown_done_pause)
        self.gate.clear()
        self.switches.peripheral.off()

    def _cancel_auto_shutdown(self) -> None:
        self._shutdown_generation += 1
        self.shutdown_timer.cancel()

    def _auto_shutdown(self, generation: int) -> None:
        with self._dispatch_lock:
            # A timer that fired while a handler held the lock may be stale
            if generation != self._shutdown_generation:
                logger.info("⏲️  Auto-shutdown superseded; ignoring")
                return
            logger.info("⏲️  No start since reset; powering down")
            self.shutdown()

    # ===== Helpers =====

    @staticmethod
    def _enable(switch) -> None:
        if not switch.is_on():
            switch.on()

    def _command(self, action: str) -> None:
        self.bus.publish(self.topics.commands, ActionMessage(action).to_dict())

    def _ui(self, message: str, color: str) -> None:
        self.bus.publish(self.topics.ui, UIMessage(message, color).to_dict())
