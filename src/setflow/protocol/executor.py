"""Remote store executor protocol.

The executor is the only collaborator the handler talks to. It owns the
wire format, the connection and any pooling; the handler only hands it one
fully built command at a time and awaits the raw result.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .commands import Command, CommandType


@runtime_checkable
class CommandExecutor(Protocol):
    """Protocol for remote store executors.

    Implementations must:
    - Accept concurrent execute() calls from many handlers
    - Raise CommandExecutionError when the store rejects a single command
    - Raise anything else (e.g. ConnectionError) when the store itself is
      unreachable; the handler treats that as fatal for the whole stream

    Return value per operation:
    - SADD, SREM, SCARD, S*STORE: int
    - SMOVE, SISMEMBER: bool
    - SPOP: bytes or None
    - SINTER, SUNION, SDIFF, SMEMBERS, SRANDMEMBER: list of bytes
    """

    async def execute(self, operation: CommandType, command: Command) -> Any:
        """Execute one command against the store and return its result.

        Args:
            operation: The operation to run
            command: A complete command for that operation

        Returns:
            The raw result from the store

        Raises:
            CommandExecutionError: If the store rejected this command
        """
        ...
