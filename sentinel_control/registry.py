"""
CommandRegistry - Explicit command registration

Bounded Context: Command registration and validation
Responsibilities:
  - Register commands with handlers
  - Validate command existence before execution
  - Provide introspection (available_commands, get_help)

Threading: Thread-safe (lock for register/unregister, snapshot reads)
"""

import threading
from typing import Any, Callable, Dict, Optional, Set

CommandHandler = Callable[[Dict[str, Any]], Any]


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandRegistry:
    """
    Registry for control commands with explicit registration.

    Handlers take the full command payload (a dict, empty when the command
    carries no arguments) and may return a result for the status reply.

    Example:
        registry = CommandRegistry()
        registry.register('pause', service.pause_command, "Pause activity inference")

        try:
            registry.execute('pause', {'command': 'pause'})
        except CommandNotAvailableError as e:
            print(f"Command not available: {e}")
    """

    def __init__(self):
        self._commands: Dict[str, CommandHandler] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, command: str, handler: CommandHandler, description: str) -> None:
        """
        Raises:
            ValueError: If command already registered or name invalid
        """
        if not command or command != command.lower() or " " in command:
            raise ValueError(f"Command name must be lowercase without spaces, got '{command}'")

        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")
            self._commands[command] = handler
            self._descriptions[command] = description

    def unregister(self, command: str) -> None:
        with self._lock:
            self._commands.pop(command, None)
            self._descriptions.pop(command, None)

    def execute(self, command: str, command_data: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a registered command.

        Returns:
            Whatever the handler returns

        Raises:
            CommandNotAvailableError: If command not registered
        """
        with self._lock:
            handler = self._commands.get(command)

        if handler is None:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        return handler(dict(command_data or {}))

    def is_available(self, command: str) -> bool:
        with self._lock:
            return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        with self._lock:
            return set(self._commands)

    def get_help(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._descriptions)

    def count(self) -> int:
        with self._lock:
            return len(self._commands)
