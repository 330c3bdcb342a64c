"""
Host system commands (power-off, end-of-run cue).

Commands are started and not waited on.
"""

import logging
import subprocess
from typing import Sequence

logger = logging.getLogger(__name__)


class HostCommands:
    """Fire-and-forget launcher for the actuator host's system commands."""

    def __init__(self, shutdown_command: Sequence[str], finish_cue_command: Sequence[str]):
        self.shutdown_command = list(shutdown_command)
        self.finish_cue_command = list(finish_cue_command)

    def shutdown(self) -> None:
        self._launch(self.shutdown_command)

    def play_finish_cue(self) -> None:
        self._launch(self.finish_cue_command)

    @staticmethod
    def _launch(command: Sequence[str]) -> None:
        if not command:
            return
        logger.info(f"🖥️  Launching: {' '.join(command)}")
        try:
            subprocess.Popen(
                list(command),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error(f"❌ Could not launch {command[0]}: {e}")
