"""
Wafflebot CLI - Main entry point.

Sends triggers and raw actions over MQTT and watches the display topic.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from wafflebot_mqtt import ActionMessage, UIMessage
from wafflebot_service.config import MQTTConfig, TopicConfig, WaffleConfig
from wafflebot_service.recipe import RECIPE

from .mqtt_client import MQTTCommandClient


def load_config(config_path: Optional[str]) -> WaffleConfig:
    """Load the shared wafflebot YAML, or defaults when no path is given."""
    if config_path is None:
        return WaffleConfig()
    return WaffleConfig.from_yaml(Path(config_path))


def make_client(mqtt_config: MQTTConfig, broker: Optional[str], port: Optional[int]) -> MQTTCommandClient:
    return MQTTCommandClient(
        broker=broker or mqtt_config.broker,
        port=port or mqtt_config.port,
        username=mqtt_config.username,
        password=mqtt_config.password,
        ca_cert=mqtt_config.ca_cert,
        client_cert=mqtt_config.client_cert,
        client_key=mqtt_config.client_key,
    )


def format_ui_payload(payload: bytes) -> str:
    """Render one UI-topic payload as a display line."""
    try:
        status = UIMessage.from_payload(payload)
    except ValueError as e:
        return f"[malformed] {e}"
    return f"[{status.color:>6}] {status.message}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Wafflebot CLI - trigger runs and drive the actuator over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start a waffle (same trigger the button sends)
  wafflebot-cli --config config/wafflebot.yaml start

  # Drive one actuator action directly (calibration)
  wafflebot-cli --config config/wafflebot.yaml action open_lid

  # Follow the display status lines
  wafflebot-cli --config config/wafflebot.yaml watch-ui

  # Show the recipe
  wafflebot-cli recipe
"""
    )

    parser.add_argument("--config", default=None, help="Path to wafflebot YAML config")
    parser.add_argument("--broker", default=None, help="MQTT broker host (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="MQTT broker port (overrides config)")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('start', help='Trigger a run on the orchestrator')

    action = subparsers.add_parser('action', help='Send one action to the actuator')
    action.add_argument('name', help='Action name (e.g. open_lid, dispense, reset)')

    subparsers.add_parser('watch-ui', help='Print display status messages')
    subparsers.add_parser('recipe', help='List the recipe steps')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == 'recipe':
            for index, step in enumerate(RECIPE, start=1):
                print(f"{index}. {step.action:<18} {step.status_text} ({step.display_color})")
            return

        config = load_config(args.config)
        topics: TopicConfig = config.topics
        client = make_client(config.mqtt, args.broker, args.port)

        if args.command == 'start':
            client.send(topics.results, ActionMessage("start").to_dict(), qos=config.mqtt.qos)
            print("✅ Start sent")

        elif args.command == 'action':
            client.send(topics.commands, ActionMessage(args.name).to_dict(), qos=config.mqtt.qos)
            print(f"✅ Action sent: {args.name}")

        elif args.command == 'watch-ui':
            print(f"👀 Watching {topics.ui} (Ctrl+C to stop)")
            client.watch(topics.ui, lambda payload: print(format_ui_payload(payload)), qos=config.mqtt.qos)

    except KeyboardInterrupt:
        pass
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
