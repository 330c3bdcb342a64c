"""
CommandRegistry - Explicit action registration

Bounded Context: Action registration and dispatch
Responsibilities:
  - Register action names with handlers
  - Validate action existence before execution
  - Provide introspection (available_commands, get_help)

Both services resolve inbound action names through a registry instead of
looking up methods by name, so the set of actions a process understands is
explicit and listable.

Threading: Thread-safe (uses lock for write operations)
"""

from typing import Dict, Callable, Set
import threading


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered action"""
    pass


class CommandRegistry:
    """
    Registry of action handlers with explicit registration.

    Example:
        registry = CommandRegistry()
        registry.register('open_lid', actuator.open_lid, "Lift motor forward")

        if registry.is_available(action):
            registry.execute(action)
    """

    def __init__(self):
        self._commands: Dict[str, Callable[[], None]] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, command: str, handler: Callable[[], None], description: str) -> None:
        """
        Register an action with its handler.

        Args:
            command: Action name (lowercase, no spaces)
            handler: Zero-argument callable performing the action
            description: Human-readable description for help text

        Raises:
            ValueError: If action already registered or name is invalid
        """
        if not command or command != command.strip() or " " in command:
            raise ValueError(f"Invalid action name: {command!r}")

        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")

            self._commands[command] = handler
            self._descriptions[command] = description

    def execute(self, command: str) -> None:
        """
        Execute a registered action.

        Raises:
            CommandNotAvailableError: If action not registered
        """
        if command not in self._commands:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        self._commands[command]()

    def is_available(self, command: str) -> bool:
        """Check if action is registered."""
        return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of all registered action names."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Snapshot of action names with descriptions."""
        return dict(self._descriptions)

    def count(self) -> int:
        """Number of registered actions."""
        return len(self._commands)
