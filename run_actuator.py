#!/usr/bin/env python3
"""
Actuator Service - Entry Point
==============================

Starts the wafflebot Actuator on the Raspberry Pi wired to the appliance:
- Listens for actions on the commands topic
- Drives the lift, swing and flip steppers, the batter valve and pump,
  and reads the iron's beep line (RPi.GPIO)
- Acknowledges every action on the results topic

Usage:
    python run_actuator.py --config config/wafflebot.yaml

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown
"""

import argparse
import signal
import sys
import logging
from pathlib import Path
from typing import Optional

from wafflebot_hardware import HostCommands, RPiGPIO
from wafflebot_mqtt import MQTTMessageBus, create_logger
from wafflebot_service import Actuator, ApplianceRig, Sleeper, WaffleConfig


def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """Console logging plus an optional log file."""
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


class ActuatorApp:
    """Application wrapper for the Actuator (GPIO, bus, signals)."""

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        self.config_path = config_path
        self.log_file = log_file
        self.logger = setup_logging(log_file)

        self.config: Optional[WaffleConfig] = None
        self.io: Optional[RPiGPIO] = None
        self.bus: Optional[MQTTMessageBus] = None
        self.actuator: Optional[Actuator] = None

        self._shutdown_requested = False

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Load configuration from YAML
        2. Initialize GPIO and assemble the appliance rig
        3. Create message bus
        4. Create Actuator
        """
        self.logger.info("=" * 80)
        self.logger.info("⚙️  Wafflebot Actuator - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = WaffleConfig.from_yaml(self.config_path)
        self.logger.info("✅ Configuration loaded")

        sleeper = Sleeper()
        self.io = RPiGPIO()
        rig = ApplianceRig.build(
            self.io,
            pins=self.config.pins,
            motion=self.config.motion,
            timing=self.config.timing,
            poll_sleep=sleeper.sleep,
        )
        self.logger.info("✅ GPIO lines configured")

        host = HostCommands(
            shutdown_command=self.config.host.shutdown_command,
            finish_cue_command=self.config.host.finish_cue_command,
        )

        mqtt_config = self.config.mqtt
        self.bus = MQTTMessageBus(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            logger=create_logger(component="actuator_bus"),
            client_id=f"{mqtt_config.client_id_prefix}_actuator",
            username=mqtt_config.username,
            password=mqtt_config.password,
            ca_cert=mqtt_config.ca_cert,
            client_cert=mqtt_config.client_cert,
            client_key=mqtt_config.client_key,
            qos=mqtt_config.qos,
            keepalive=mqtt_config.keepalive,
        )

        self.actuator = Actuator(
            bus=self.bus,
            rig=rig,
            host=host,
            config=self.config,
            sleeper=sleeper,
        )

        self.logger.info(f"  - Commands topic: {self.config.topics.commands}")
        self.logger.info(f"  - Results topic: {self.config.topics.results}")
        self.logger.info("=" * 80)

    def run(self):
        """Connect and consume; blocks until shutdown."""
        if not self.actuator:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        failed = False
        try:
            if not self.bus.connect(timeout=10.0):
                raise RuntimeError("Failed to connect to MQTT broker")

            self.logger.info("✅ Actuator started. Press Ctrl+C to stop")
            self.actuator.run()

        except KeyboardInterrupt:
            self.logger.info("⚠️  KeyboardInterrupt received")

        except Exception as e:
            self.logger.error(f"❌ Service error: {e}", exc_info=True)
            failed = True

        finally:
            if not self._shutdown_requested:
                self.shutdown()

        if failed:
            sys.exit(1)

    def shutdown(self):
        """Stop consuming, disconnect, release GPIO."""
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return

        self._shutdown_requested = True
        self.logger.info("🛑 Shutting down actuator")

        if self.actuator:
            self.actuator.stop()

        if self.bus:
            try:
                self.bus.disconnect()
            except Exception as e:
                self.logger.error(f"❌ Error disconnecting bus: {e}")

        if self.io:
            try:
                self.io.cleanup()
            except Exception as e:
                self.logger.error(f"❌ Error releasing GPIO: {e}")

        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self.shutdown()
        sys.exit(0)


def parse_args():
    parser = argparse.ArgumentParser(
        description="Wafflebot Actuator - appliance hardware over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_actuator.py --config config/wafflebot.yaml
  python run_actuator.py --config config/wafflebot.yaml --log-file /var/log/wafflebot/actuator.log
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to wafflebot configuration YAML file'
    )

    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/actuator.log'),
        help='Path to log file (default: logs/actuator.log)'
    )

    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )

    return parser.parse_args()


def main():
    args = parse_args()

    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = ActuatorApp(config_path=args.config, log_file=log_file)

    try:
        app.setup()
        app.run()
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
