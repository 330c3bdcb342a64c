"""
Actuator - one physical action per command, always acknowledged.

The actuator listens on the commands topic. For every action it runs the
matching handler (blocking, possibly for minutes) and then publishes
"<action>_done" on the results topic. Unknown actions are accepted as
no-ops and acknowledged too, which is how pure timing steps and the
"check_boot" request get their acknowledgment.

Threading Model:
- One consuming thread; the next command is not read until the current
  handler returns, so only one motion happens at a time
"""

import logging
from typing import Optional

from wafflebot_control import CommandRegistry, MessageConsumer
from wafflebot_hardware import BeepOutcome, HostCommands
from wafflebot_mqtt import ActionMessage, LogEvent, MessageBus, StructuredLogger, create_logger
from wafflebot_service.config import WaffleConfig
from wafflebot_service.rig import ApplianceRig
from wafflebot_service.timers import Sleeper

logger = logging.getLogger(__name__)


class Actuator:
    """
    Command executor for the appliance hardware.

    Usage:
        rig = ApplianceRig.build(RPiGPIO(), config.pins, config.motion, config.timing)
        actuator = Actuator(bus=bus, rig=rig, host=host, config=config)
        actuator.run()  # Blocks until the bus closes
    """

    # Handlers that publish their own acknowledgment
    SELF_ACKNOWLEDGING = frozenset({"shutdown"})

    def __init__(
        self,
        bus: MessageBus,
        rig: ApplianceRig,
        host: HostCommands,
        config: WaffleConfig,
        sleeper: Optional[Sleeper] = None,
        event_logger: Optional[StructuredLogger] = None,
    ):
        self.bus = bus
        self.rig = rig
        self.host = host
        self.config = config
        self.topics = config.topics
        self.motion = config.motion
        self.timing = config.timing
        self.sleeper = sleeper or Sleeper()
        self.events = event_logger or create_logger("actuator")

        self.last_beep_outcome: Optional[BeepOutcome] = None

        self.registry = CommandRegistry()
        self._setup_handlers()

        self.consumer = MessageConsumer(
            bus=bus,
            topic=self.topics.commands,
            dispatch=self.handle,
            logger=self.events,
        )

        logger.info(f"Actuator initialized ({self.registry.count()} actions)")

    def _setup_handlers(self):
        registry = self.registry
        registry.register("open_lid", self.open_lid, "Lift motor forward; lid opens")
        registry.register("close_lid", self.close_lid, "Lift motor forward; lid closes")
        registry.register("deploy_dispenser", self.deploy_dispenser, "Swing dispenser over the iron")
        registry.register("retract_dispenser", self.retract_dispenser, "Swing dispenser back")
        registry.register("dispense", self.dispense, "Open valve and run pump")
        registry.register("flip_iron", self.flip_iron, "Rotate the iron over")
        registry.register("flip_iron_back", self.flip_iron_back, "Rotate the iron back")
        registry.register("finish", self.finish, "Open lid and play the end-of-run cue")
        registry.register("cooking_timer", self.cooking_timer, "Wait for the waffle to cook")
        registry.register("check_beep", self.check_beep, "Wait for the iron's ready beep")
        registry.register("reset", self.reset, "Wait, then close the lid")
        registry.register("shutdown", self.shutdown, "Power off the actuator host")

    # ===== Lifecycle =====

    def run(self) -> None:
        """Consume the commands topic until the bus closes it."""
        logger.info(f"📥 Actuator listening on {self.topics.commands}")
        self.consumer.run()

    def stop(self) -> None:
        """Interrupt the current wait and stop consuming."""
        self.consumer.stop()
        self.sleeper.cancel()

    # ===== Dispatch =====

    def handle(self, message: ActionMessage) -> None:
        """Run the action (if known), then acknowledge it."""
        action = message.action
        try:
            if self.registry.is_available(action):
                logger.info(f"⚙️  Performing {action}")
                self.registry.execute(action)
            else:
                logger.debug(f"No handler for {action}; acknowledging only")
        except Exception as e:
            logger.error(f"❌ {action} failed: {e}", exc_info=True)
        finally:
            if action not in self.SELF_ACKNOWLEDGING:
                self._acknowledge(message)

    def _acknowledge(self, message: ActionMessage) -> None:
        ack = message.acknowledgment()
        self.bus.publish(self.topics.results, ack.to_dict())
        self.events.info(
            event=LogEvent.ACTION_ACKNOWLEDGED,
            message=f"Acknowledged {message.action}",
            metadata={'action': message.action, 'topic': self.topics.results}
        )

    # ===== Actions =====

    def open_lid(self) -> None:
        self.rig.lift.forward(self.motion.lid_steps)
        self.sleeper.sleep(self.timing.lid_settle)

    def close_lid(self) -> None:
        self.rig.lift.forward(self.motion.lid_steps)
        self.sleeper.sleep(self.timing.lid_settle)

    def deploy_dispenser(self) -> None:
        self.rig.swing.forward(self.motion.dispenser_steps)
        self.sleeper.sleep(self.timing.dispenser_settle)

    def retract_dispenser(self) -> None:
        self.rig.swing.backward(self.motion.dispenser_steps)
        self.sleeper.sleep(self.timing.dispenser_settle)

    def dispense(self) -> None:
        self.rig.valve.on()
        self.rig.pump.on()
        try:
            self.sleeper.sleep(self.timing.dispense_hold)
        finally:
            self._stop_feed()

    def flip_iron(self) -> None:
        self.rig.flip.forward(self.motion.flip_steps)
        self.sleeper.sleep(self.timing.flip_settle)

    def flip_iron_back(self) -> None:
        self.rig.flip.backward(self.motion.flip_steps)
        self.sleeper.sleep(self.timing.flip_settle)

    def finish(self) -> None:
        self.rig.lift.forward(self.motion.lid_steps)
        self.sleeper.sleep(self.timing.finish_settle)
        self.host.play_finish_cue()

    def cooking_timer(self) -> None:
        self.sleeper.sleep(self.timing.cooking)

    def check_beep(self) -> None:
        outcome = self.rig.beeper.wait()
        self.last_beep_outcome = outcome
        if outcome == BeepOutcome.TIMED_OUT:
            logger.warning(
                f"⚠️ No beep within {self.timing.beep_timeout}s; continuing anyway"
            )
        else:
            logger.info("🔔 Iron beeped")

    def reset(self) -> None:
        self.sleeper.sleep(self.timing.reset_delay)
        self.close_lid()

    def shutdown(self) -> None:
        """Stop the batter feed, send the final acknowledgment, power off the host."""
        try:
            self._stop_feed()
        finally:
            self._acknowledge(ActionMessage("shutdown"))
            self.host.shutdown()

    def _stop_feed(self) -> None:
        try:
            self.rig.pump.off()
        finally:
            self.rig.valve.off()
