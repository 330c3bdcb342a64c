"""
wafflebot_control - Action dispatch for the wafflebot services

Bounded Context: Inbound action handling
Responsibilities:
  - Action registration and validation (CommandRegistry)
  - Sequential consumption of one bus topic (MessageConsumer)

Design Philosophy:
  - Explicit registration (the set of understood actions is listable)
  - One logical thread of control per process
  - Malformed payloads are rejected and logged, never fatal
"""

from .registry import CommandRegistry, CommandNotAvailableError
from .consumer import MessageConsumer

__all__ = [
    "CommandRegistry",
    "CommandNotAvailableError",
    "MessageConsumer",
]
