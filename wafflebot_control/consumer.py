"""
MessageConsumer - sequential action consumption loop

Bounded Context: Inbound message handling
Responsibilities:
  - Iterate one topic of the MessageBus
  - Decode each payload into an ActionMessage
  - Reject malformed payloads (log, skip, keep consuming)
  - Hand each action to the service's dispatch callable

Threading:
  - Runs on the caller's thread (run() blocks)
  - Strictly sequential: the next payload is not read until dispatch returns
"""

import threading
from typing import Callable, Optional

from wafflebot_mqtt import ActionMessage, LogEvent, MessageBus, StructuredLogger, decode_payload


class MessageConsumer:
    """
    Single-threaded consumption loop over one bus topic.

    Dispatch exceptions are logged with traceback and do not end the loop.

    Example:
        consumer = MessageConsumer(bus, "wafflebot/results", orchestrator.handle, logger)
        consumer.run()  # Blocks until bus.close() or stop()
    """

    def __init__(
        self,
        bus: MessageBus,
        topic: str,
        dispatch: Callable[[ActionMessage], None],
        logger: StructuredLogger,
    ):
        self.bus = bus
        self.topic = topic
        self.dispatch = dispatch
        self.logger = logger

        self._stopped = threading.Event()
        self._processed = 0
        self._rejected = 0

    def run(self) -> None:
        """Consume until the bus closes the subscription or stop() is called."""
        for payload in self.bus.subscribe(self.topic):
            if self._stopped.is_set():
                break
            self.process(payload)

    def stop(self) -> None:
        """Stop after the payload currently being handled."""
        self._stopped.set()

    def process(self, payload) -> Optional[ActionMessage]:
        """
        Decode and dispatch one raw payload.

        Returns:
            The decoded ActionMessage, or None if the payload was rejected
        """
        try:
            data = decode_payload(payload)
        except ValueError as e:
            self._rejected += 1
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Rejected undecodable payload",
                exc_info=e,
                metadata={'topic': self.topic, 'payload': payload}
            )
            return None

        try:
            message = ActionMessage.from_dict(data)
        except ValueError as e:
            self._rejected += 1
            self.logger.error(
                event=LogEvent.SCHEMA_VALIDATION_ERROR,
                message="Rejected payload without a valid action",
                exc_info=e,
                metadata={'topic': self.topic, 'data': data}
            )
            return None

        self.logger.info(
            event=LogEvent.ACTION_RECEIVED,
            message=f"Received {message.action}",
            metadata={'topic': self.topic, 'action': message.action}
        )

        try:
            self.dispatch(message)
        except Exception as e:
            self.logger.error(
                event=LogEvent.ACTION_FAILED,
                message=f"Handler for {message.action} failed",
                exc_info=e,
                metadata={'topic': self.topic, 'action': message.action}
            )
        finally:
            self._processed += 1

        return message

    def get_stats(self) -> dict:
        return {
            'topic': self.topic,
            'processed': self._processed,
            'rejected': self._rejected,
            'stopped': self._stopped.is_set(),
        }
