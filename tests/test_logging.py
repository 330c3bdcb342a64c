"""
StructuredLogger tests.
"""

import json
import logging

from wafflebot_mqtt import LogEvent, StructuredLogger


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _logger(name):
    structured = StructuredLogger(component="test", logger_name=f"wafflebot_tests.{name}")
    capture = _Capture()
    structured.logger.addHandler(capture)
    return structured, capture


def test_emits_json_document():
    structured, capture = _logger("json")

    structured.info(
        event=LogEvent.ACTION_RECEIVED,
        message="Received open_lid_done",
        metadata={'action': 'open_lid_done'},
    )

    entry = json.loads(capture.records[0].getMessage())
    assert entry['component'] == "test"
    assert entry['event'] == LogEvent.ACTION_RECEIVED.value
    assert entry['metadata'] == {'action': 'open_lid_done'}
    assert entry['level'] == "INFO"


def test_error_includes_exception_summary():
    structured, capture = _logger("error")

    structured.error(
        event=LogEvent.SCHEMA_VALIDATION_ERROR,
        message="Rejected payload",
        exc_info=ValueError("Missing required field: 'message'"),
    )

    entry = json.loads(capture.records[0].getMessage())
    assert entry['exception']['type'] == "ValueError"
    assert capture.records[0].levelno == logging.ERROR


def test_debug_suppressed_at_info_level():
    structured, capture = _logger("level")
    structured.debug(event=LogEvent.MQTT_PUBLISH_SUCCESS, message="hidden")
    structured.info(event=LogEvent.MQTT_PUBLISH_SUCCESS, message="shown")

    assert [json.loads(r.getMessage())["message"] for r in capture.records] == ["shown"]
