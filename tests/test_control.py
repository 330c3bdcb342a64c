"""
CommandRegistry and MessageConsumer tests.
"""

from unittest.mock import MagicMock

import pytest

from wafflebot_control import CommandNotAvailableError, CommandRegistry, MessageConsumer
from wafflebot_mqtt import ActionMessage, LogEvent


# ============================================================================
# CommandRegistry
# ============================================================================

class TestCommandRegistry:
    def test_register_and_execute(self):
        handler = MagicMock()
        registry = CommandRegistry()
        registry.register("open_lid", handler, "Open the lid")

        registry.execute("open_lid")

        handler.assert_called_once_with()
        assert registry.is_available("open_lid")
        assert registry.count() == 1

    def test_duplicate_registration_rejected(self):
        registry = CommandRegistry()
        registry.register("reset", lambda: None, "Reset")
        with pytest.raises(ValueError, match="already registered"):
            registry.register("reset", lambda: None, "Reset again")

    @pytest.mark.parametrize("name", ["", " reset", "open lid"])
    def test_invalid_names_rejected(self, name):
        with pytest.raises(ValueError):
            CommandRegistry().register(name, lambda: None, "bad")

    def test_execute_unknown_raises(self):
        registry = CommandRegistry()
        registry.register("reset", lambda: None, "Reset")
        with pytest.raises(CommandNotAvailableError, match="reset"):
            registry.execute("dispense")

    def test_help_lists_descriptions(self):
        registry = CommandRegistry()
        registry.register("reset", lambda: None, "Close the lid")
        registry.register("dispense", lambda: None, "Pour batter")

        assert registry.available_commands == {"reset", "dispense"}
        assert registry.get_help() == {"reset": "Close the lid", "dispense": "Pour batter"}


# ============================================================================
# MessageConsumer
# ============================================================================

@pytest.fixture
def event_logger():
    return MagicMock()


class TestMessageConsumer:
    def test_dispatches_in_arrival_order(self, bus, event_logger):
        bus.inject("t", b'{"message": "start"}')
        bus.inject("t", b'{"message": "open_lid_done"}')
        seen = []

        MessageConsumer(bus, "t", seen.append, event_logger).run()

        assert seen == [ActionMessage("start"), ActionMessage("open_lid_done")]

    def test_malformed_payloads_are_skipped(self, bus, event_logger):
        for payload in (b"not json", b'{"msg": "x"}', b'{"message": ""}', b'{"message": "reset"}'):
            bus.inject("t", payload)
        seen = []

        consumer = MessageConsumer(bus, "t", seen.append, event_logger)
        consumer.run()

        assert seen == [ActionMessage("reset")]
        stats = consumer.get_stats()
        assert stats['rejected'] == 3
        assert stats['processed'] == 1

        events = [c.kwargs['event'] for c in event_logger.error.call_args_list]
        assert events == [
            LogEvent.DESERIALIZATION_ERROR,
            LogEvent.SCHEMA_VALIDATION_ERROR,
            LogEvent.SCHEMA_VALIDATION_ERROR,
        ]

    def test_dispatch_failure_does_not_stop_loop(self, bus, event_logger):
        bus.inject("t", b'{"message": "boom"}')
        bus.inject("t", b'{"message": "reset"}')
        seen = []

        def dispatch(message):
            if message.action == "boom":
                raise RuntimeError("handler failed")
            seen.append(message.action)

        MessageConsumer(bus, "t", dispatch, event_logger).run()

        assert seen == ["reset"]
        event_logger.error.assert_called_once()

    def test_stop_ends_loop_before_next_payload(self, bus, event_logger):
        bus.inject("t", b'{"message": "first"}')
        bus.inject("t", b'{"message": "second"}')
        seen = []
        consumer = MessageConsumer(bus, "t", None, event_logger)

        def dispatch(message):
            seen.append(message.action)
            consumer.stop()

        consumer.dispatch = dispatch
        consumer.run()

        assert seen == ["first"]
        assert consumer.get_stats()['stopped']
