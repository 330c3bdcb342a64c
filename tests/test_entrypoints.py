"""
Service entry point tests: run() always releases the bus (and GPIO on the
actuator host), whether the service loop returns, fails or never starts.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import run_actuator
import run_orchestrator

CONFIG = Path(__file__).parent.parent / "config" / "wafflebot.yaml"


@pytest.fixture
def actuator_app():
    app = run_actuator.ActuatorApp(config_path=CONFIG)
    app.actuator = MagicMock()
    app.bus = MagicMock()
    app.bus.connect.return_value = True
    app.io = MagicMock()
    return app


@pytest.fixture
def orchestrator_app():
    app = run_orchestrator.OrchestratorApp(config_path=CONFIG)
    app.orchestrator = MagicMock()
    app.bus = MagicMock()
    app.bus.connect.return_value = True
    return app


class TestActuatorApp:
    def test_loop_return_releases_bus_and_gpio(self, actuator_app):
        with patch.object(run_actuator.signal, "signal"):
            actuator_app.run()

        actuator_app.actuator.run.assert_called_once_with()
        actuator_app.actuator.stop.assert_called_once_with()
        actuator_app.bus.disconnect.assert_called_once_with()
        actuator_app.io.cleanup.assert_called_once_with()

    def test_connect_failure_exits_after_cleanup(self, actuator_app):
        actuator_app.bus.connect.return_value = False

        with patch.object(run_actuator.signal, "signal"), pytest.raises(SystemExit) as exc:
            actuator_app.run()

        assert exc.value.code == 1
        actuator_app.actuator.run.assert_not_called()
        actuator_app.io.cleanup.assert_called_once_with()

    def test_loop_error_exits_after_cleanup(self, actuator_app):
        actuator_app.actuator.run.side_effect = RuntimeError("bus lost")

        with patch.object(run_actuator.signal, "signal"), pytest.raises(SystemExit):
            actuator_app.run()

        actuator_app.bus.disconnect.assert_called_once_with()
        actuator_app.io.cleanup.assert_called_once_with()

    def test_signal_shutdown_not_repeated(self, actuator_app):
        actuator_app.actuator.run.side_effect = actuator_app.shutdown

        with patch.object(run_actuator.signal, "signal"):
            actuator_app.run()

        actuator_app.io.cleanup.assert_called_once_with()


class TestOrchestratorApp:
    def test_loop_return_disconnects(self, orchestrator_app):
        with patch.object(run_orchestrator.signal, "signal"):
            orchestrator_app.run()

        orchestrator_app.orchestrator.stop.assert_called_once_with()
        orchestrator_app.bus.disconnect.assert_called_once_with()

    def test_connect_failure_exits_after_cleanup(self, orchestrator_app):
        orchestrator_app.bus.connect.return_value = False

        with patch.object(run_orchestrator.signal, "signal"), pytest.raises(SystemExit) as exc:
            orchestrator_app.run()

        assert exc.value.code == 1
        orchestrator_app.bus.disconnect.assert_called_once_with()
