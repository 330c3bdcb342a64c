"""
Orchestrator tests: recipe progression, reset, power gating, boot sequence
and auto-shutdown. The bus, switches, sleeper and timer are fakes.
"""

import threading
from unittest.mock import MagicMock

import pytest

from wafflebot_mqtt import ActionMessage
from wafflebot_service import RECIPE, Orchestrator, WaffleConfig
from wafflebot_service.config import OrchestratorConfig

COMMANDS = "wafflebot/commands"
RESULTS = "wafflebot/results"
UI = "wafflebot/ui"


def _make(bus, switches, config, sleeper, timer):
    return Orchestrator(
        bus=bus,
        switches=switches,
        config=config,
        sleeper=sleeper,
        shutdown_timer=timer,
        event_logger=MagicMock(),
    )


@pytest.fixture
def orchestrator(bus, switches, config, sleeper, timer):
    return _make(bus, switches, config, sleeper, timer)


@pytest.fixture
def booting(bus, switches, boot_config, sleeper, timer):
    return _make(bus, switches, boot_config, sleeper, timer)


@pytest.fixture
def timed(bus, switches, sleeper, timer):
    config = WaffleConfig(orchestrator=OrchestratorConfig(auto_shutdown_seconds=220))
    return _make(bus, switches, config, sleeper, timer)


def _send(orchestrator, name):
    orchestrator.handle(ActionMessage(name))


def _ui(bus):
    return [(m["message"], m["color"]) for m in bus.messages(UI)]


# ============================================================================
# Recipe progression
# ============================================================================

class TestRecipeProgression:
    def test_start_sends_first_step(self, orchestrator, bus):
        _send(orchestrator, "start")

        assert bus.actions(COMMANDS) == ["open_lid"]
        assert _ui(bus) == [("Opening lid...", "yellow")]
        assert len(orchestrator.queue) == len(RECIPE) - 1

    def test_each_ack_advances_one_step(self, orchestrator, bus):
        _send(orchestrator, "start")
        for step in RECIPE:
            _send(orchestrator, f"{step.action}_done")

        assert bus.actions(COMMANDS) == [step.action for step in RECIPE] + ["reset"]
        assert _ui(bus) == [(step.status_text, step.display_color) for step in RECIPE]

    def test_command_precedes_status_line(self, orchestrator, bus):
        _send(orchestrator, "start")
        assert [topic for topic, _ in bus.published] == [COMMANDS, UI]

    def test_reset_is_idempotent_on_empty_queue(self, orchestrator, bus):
        for _ in RECIPE:
            orchestrator.queue.pop_front()

        _send(orchestrator, "finish_done")
        _send(orchestrator, "finish_done")

        assert bus.actions(COMMANDS) == ["reset", "reset"]
        assert orchestrator.queue.is_empty
        assert bus.messages(UI) == []

    def test_reset_done_refills_and_goes_home(self, orchestrator, bus, sleeper):
        for _ in RECIPE:
            orchestrator.queue.pop_front()

        _send(orchestrator, "reset_done")

        assert len(orchestrator.queue) == len(RECIPE)
        assert _ui(bus) == [("Resetting...", "gray"), ("go_home", "gray")]
        assert sleeper.durations == [25]
        assert bus.messages(COMMANDS) == []

    def test_next_run_after_reset(self, orchestrator, bus):
        _send(orchestrator, "start")
        for step in RECIPE:
            _send(orchestrator, f"{step.action}_done")
        _send(orchestrator, "reset_done")
        bus.clear()

        _send(orchestrator, "start")

        assert bus.actions(COMMANDS) == ["open_lid"]

    def test_unregistered_ack_falls_through_to_cook(self, orchestrator, bus):
        _send(orchestrator, "open_lid_done")
        assert bus.actions(COMMANDS) == ["open_lid"]

    def test_cook_on_empty_queue_resets(self, orchestrator, bus):
        for _ in RECIPE:
            orchestrator.queue.pop_front()

        orchestrator.cook()

        assert bus.actions(COMMANDS) == ["reset"]


# ============================================================================
# Power gating
# ============================================================================

class TestPowerGate:
    @pytest.mark.parametrize("order", [
        ("check_beep_done", "check_boot_done"),
        ("check_boot_done", "check_beep_done"),
    ])
    def test_both_confirmations_enable_control_once(self, orchestrator, bus, sleeper, order):
        _send(orchestrator, order[0])
        assert bus.published == []

        _send(orchestrator, order[1])

        assert _ui(bus) == [("Powering up...", "green"), ("Opening lid...", "yellow")]
        assert bus.actions(COMMANDS) == ["open_lid"]
        assert sleeper.durations == [5]

    def test_enable_control_noop_when_control_on(self, orchestrator, bus, switches):
        switches.control.state = True

        _send(orchestrator, "check_beep_done")
        _send(orchestrator, "check_boot_done")

        assert bus.published == []
        assert switches.control.calls == []

    def test_enable_control_does_not_switch_control(self, orchestrator, switches):
        orchestrator.enable_control()
        assert switches.control.calls == []


# ============================================================================
# Boot sequence, shutdown, auto-shutdown
# ============================================================================

class TestBootSequence:
    def test_start_powers_up_and_requests_checks(self, booting, bus, switches, sleeper, timer):
        _send(booting, "start")

        assert switches.iron.calls == ["on"]
        assert switches.peripheral.calls == ["on"]
        assert switches.control.calls == []
        assert _ui(bus) == [("Heating iron...", "red"), ("Booting...", "green")]
        assert sleeper.durations == [5, 15]
        assert bus.actions(COMMANDS) == ["check_boot", "check_beep"]
        assert timer.cancels == 1
        assert len(booting.queue) == len(RECIPE)

    def test_start_leaves_powered_switches_alone(self, booting, switches):
        switches.iron.state = True
        switches.peripheral.state = True

        _send(booting, "start")

        assert switches.iron.calls == []
        assert switches.peripheral.calls == []

    def test_check_acks_start_cooking(self, booting, bus):
        _send(booting, "start")
        bus.clear()

        _send(booting, "check_boot_done")
        _send(booting, "check_beep_done")

        assert bus.actions(COMMANDS) == ["open_lid"]


class TestShutdown:
    def test_shutdown_cuts_power_and_commands_host(self, orchestrator, bus, switches):
        switches.iron.state = True
        switches.control.state = True

        orchestrator.shutdown()

        assert switches.iron.calls == ["off"]
        assert switches.control.calls == ["off"]
        assert switches.peripheral.calls == []
        assert bus.actions(COMMANDS) == ["shutdown"]

    def test_shutdown_done_clears_gate_and_peripheral(self, orchestrator, switches, sleeper):
        orchestrator.gate.confirm_beep()
        orchestrator.gate.confirm_boot()

        _send(orchestrator, "shutdown_done")

        assert sleeper.durations == [10]
        assert not orchestrator.gate.beep_confirmed
        assert not orchestrator.gate.boot_confirmed
        assert switches.peripheral.calls == ["off"]

    def test_reset_without_auto_shutdown_arms_nothing(self, orchestrator, timer):
        orchestrator.reset()
        assert timer.armed == []

    def test_reset_arms_auto_shutdown(self, booting, bus, switches, timer):
        booting.reset()
        assert timer.armed == [220]

        timer.fire()

        assert switches.iron.calls == ["off"]
        assert switches.control.calls == ["off"]
        assert bus.actions(COMMANDS) == ["reset", "shutdown"]

    def test_start_cancels_pending_auto_shutdown(self, booting, timer):
        booting.reset()
        _send(booting, "start")
        assert timer.callback is None

    def test_start_without_boot_sequence_cancels_auto_shutdown(self, timed, bus, switches, timer):
        timed.reset()
        assert timer.armed == [220]

        _send(timed, "start")

        assert timer.callback is None
        assert timer.cancels == 1
        assert bus.actions(COMMANDS) == ["reset", "open_lid"]
        assert switches.iron.calls == []

    def test_timer_fired_before_start_is_ignored(self, timed, bus, switches, timer):
        timed.reset()
        fired = timer.callback

        _send(timed, "start")
        fired()

        assert "shutdown" not in bus.actions(COMMANDS)
        assert switches.iron.calls == []
        assert switches.control.calls == []

    def test_timer_fired_during_handler_waits_for_lock(self, timed, bus, switches, timer):
        timed.reset()
        fired = timer.callback

        with timed._dispatch_lock:
            worker = threading.Thread(target=fired)
            worker.start()
            _send(timed, "start")
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert bus.actions(COMMANDS) == ["reset", "open_lid"]
        assert switches.control.calls == []

    def test_rearmed_timer_still_shuts_down(self, timed, bus, switches, timer):
        timed.reset()
        timed.reset()

        timer.fire()

        assert bus.actions(COMMANDS) == ["reset", "reset", "shutdown"]
        assert switches.iron.calls == ["off"]


# ============================================================================
# Lifecycle
# ============================================================================

class TestLifecycle:
    def test_run_consumes_results_topic(self, orchestrator, bus):
        bus.inject(RESULTS, b'{"message": "start"}')
        bus.inject(RESULTS, b"garbage")
        bus.inject(RESULTS, b'{"message": "open_lid_done"}')

        orchestrator.run()

        assert bus.actions(COMMANDS) == ["open_lid", "deploy_dispenser"]

    def test_stop_cancels_waits_and_timer(self, orchestrator, sleeper, timer):
        orchestrator.stop()

        assert sleeper.cancelled
        assert timer.cancels == 1
        assert orchestrator.consumer.get_stats()['stopped']
