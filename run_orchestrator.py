#!/usr/bin/env python3
"""
Orchestrator Service - Entry Point
==================================

Starts the wafflebot Orchestrator, which:
- Listens for acknowledgments and "start" triggers on the results topic
- Sends recipe steps to the actuator on the commands topic
- Publishes status lines for the display on the UI topic
- Switches the iron, USB hub and control power (WeMo plugs)

Usage:
    python run_orchestrator.py --config config/wafflebot.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Resolve power switches, create message bus
    4. Create Orchestrator (subscribes before connecting)
    5. Connect and consume until a stop signal
    6. Graceful shutdown

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

from wafflebot_hardware import discover_wemo_switches
from wafflebot_mqtt import MQTTMessageBus, create_logger
from wafflebot_service import Orchestrator, WaffleConfig


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

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


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class OrchestratorApp:
    """
    Application wrapper for the Orchestrator.

    Handles:
    - Configuration loading
    - Component initialization (bus, power switches)
    - Signal handling (SIGTERM, SIGINT)
    - Graceful shutdown
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        self.config_path = config_path
        self.log_file = log_file
        self.logger = setup_logging(log_file)

        # Components (initialized in setup())
        self.config: Optional[WaffleConfig] = None
        self.bus: Optional[MQTTMessageBus] = None
        self.orchestrator: Optional[Orchestrator] = None

        self._shutdown_requested = False

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Load configuration from YAML
        2. Resolve the three WeMo power switches
        3. Create message bus
        4. Create Orchestrator
        """
        self.logger.info("=" * 80)
        self.logger.info("🧇 Wafflebot Orchestrator - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = WaffleConfig.from_yaml(self.config_path)
        self.logger.info("✅ Configuration loaded")

        power = self.config.power
        self.logger.info(
            f"🔌 Discovering power switches ({power.iron}, {power.peripheral}, {power.control})"
        )
        switches = discover_wemo_switches(
            iron=power.iron,
            peripheral=power.peripheral,
            control=power.control,
        )
        self.logger.info("✅ Power switches resolved")

        mqtt_config = self.config.mqtt
        self.bus = MQTTMessageBus(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            logger=create_logger(component="orchestrator_bus"),
            client_id=f"{mqtt_config.client_id_prefix}_orchestrator",
            username=mqtt_config.username,
            password=mqtt_config.password,
            ca_cert=mqtt_config.ca_cert,
            client_cert=mqtt_config.client_cert,
            client_key=mqtt_config.client_key,
            qos=mqtt_config.qos,
            keepalive=mqtt_config.keepalive,
        )

        self.orchestrator = Orchestrator(
            bus=self.bus,
            switches=switches,
            config=self.config,
        )

        self.logger.info(f"  - Results topic: {self.config.topics.results}")
        self.logger.info(f"  - Commands topic: {self.config.topics.commands}")
        self.logger.info(f"  - UI topic: {self.config.topics.ui}")
        self.logger.info("=" * 80)

    def run(self):
        """Connect and consume; blocks until shutdown."""
        if not self.orchestrator:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        failed = False
        try:
            if not self.bus.connect(timeout=10.0):
                raise RuntimeError("Failed to connect to MQTT broker")

            self.logger.info("✅ Orchestrator started. Press Ctrl+C to stop")
            self.orchestrator.run()

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
        """Stop consuming and disconnect from the broker."""
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return

        self._shutdown_requested = True
        self.logger.info("🛑 Shutting down orchestrator")

        if self.orchestrator:
            self.orchestrator.stop()

        if self.bus:
            try:
                self.bus.disconnect()
            except Exception as e:
                self.logger.error(f"❌ Error disconnecting bus: {e}")

        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self.shutdown()
        sys.exit(0)


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args():
    parser = argparse.ArgumentParser(
        description="Wafflebot Orchestrator - recipe sequencing over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_orchestrator.py --config config/wafflebot.yaml
  python run_orchestrator.py --config config/wafflebot.yaml --no-log-file
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
        default=Path('logs/orchestrator.log'),
        help='Path to log file (default: logs/orchestrator.log)'
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

    app = OrchestratorApp(config_path=args.config, log_file=log_file)

    try:
        app.setup()
        app.run()
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
