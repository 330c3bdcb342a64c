"""
JSON logger for bus and action traffic.

Each record is one JSON object:
    {"timestamp": ..., "level": "INFO", "component": "actuator",
     "event": "action.acknowledged", "message": "Acknowledged open_lid",
     "metadata": {"action": "open_lid", "topic": "wafflebot/results"}}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class StructuredLogger:
    """
    Emits LogEvent-tagged JSON lines for one component.

    The underlying logger gets its own handler and does not propagate, so
    the services' basicConfig format never wraps the JSON.
    """

    def __init__(self, component: str, level: int = logging.INFO, logger_name: Optional[str] = None):
        self.component = component
        self.logger = logging.getLogger(logger_name or f"wafflebot_mqtt.{component}")
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def _log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': logging.getLevelName(level),
            'component': self.component,
            'event': event.value,
            'message': message,
        }
        if metadata:
            entry['metadata'] = metadata
        if exc_info:
            entry['exception'] = {'type': type(exc_info).__name__, 'message': str(exc_info)}

        self.logger.log(level, json.dumps(entry, default=str), exc_info=exc_info)

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, event, message, metadata)

    def warning(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        """Log an error; exc_info adds an exception summary to the entry."""
        self._log(logging.ERROR, event, message, metadata, exc_info)


class JSONFormatter(logging.Formatter):
    """Pass the pre-built JSON document through unchanged."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(component: str, level: int = logging.INFO) -> StructuredLogger:
    return StructuredLogger(component=component, level=level)
