"""In-memory set store.

A CommandExecutor that keeps sets in a dict, with the same result and
error semantics as a Redis server. No actual I/O happens, which makes it
the executor of choice for tests and local experiments.

Usage:
    store = InMemorySetStore()
    async with SetCommands(store) as sets:
        await sets.sadd(b"fruits", [b"apple", b"pear"])
        assert await sets.scard(b"fruits") == 2

    assert store.recorded_commands[0][0] == CommandType.SADD
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from ..protocol.commands import (
    COMMAND_CLASSES,
    Command,
    CommandType,
    KeyCommand,
    MultiKeyCommand,
    MultiKeyStoreCommand,
    SAddCommand,
    SIsMemberCommand,
    SMoveCommand,
    SRandMembersCommand,
    SRemCommand,
)
from ..protocol.errors import CommandExecutionError

logger = logging.getLogger(__name__)

WRONGTYPE = "WRONGTYPE"
ERR = "ERR"


class InMemorySetStore:
    """Dict-backed executor with Redis set semantics.

    Behavior worth knowing:
    - Sets that become empty are deleted, like in Redis
    - A key holding a plain value (see set_value) fails set commands with
      code WRONGTYPE
    - Empty value or key collections fail with code ERR
    - Incomplete commands are rejected with InvalidArgumentError before
      any data is touched
    - Every execute() call is recorded, including failed ones
    """

    def __init__(self, latency: float = 0.0, rng: random.Random | None = None) -> None:
        """Initialize an empty store.

        Args:
            latency: Seconds to wait before each command, to mimic a round trip
            rng: Random source for SPOP/SRANDMEMBER (seed it for repeatable tests)
        """
        self._data: dict[bytes, set[bytes] | bytes] = {}
        self._recorded: list[tuple[CommandType, Command]] = []
        self._latency = latency
        self._random = rng or random.Random()

    @property
    def recorded_commands(self) -> list[tuple[CommandType, Command]]:
        """Get all (operation, command) pairs executed so far."""
        return self._recorded.copy()

    def set_value(self, key: bytes, value: bytes) -> None:
        """Store a plain (non-set) value at key."""
        self._data[key] = value

    def members(self, key: bytes) -> set[bytes]:
        """Snapshot of the set at key (empty if missing)."""
        return set(self._get_set(key))

    def clear(self) -> None:
        """Drop all data and recorded commands."""
        self._data.clear()
        self._recorded.clear()

    async def execute(self, operation: CommandType, command: Command) -> Any:
        """Execute one command against the in-memory data."""
        self._recorded.append((operation, command))
        if self._latency:
            await asyncio.sleep(self._latency)

        expected = COMMAND_CLASSES.get(operation, Command)
        if not isinstance(command, expected):
            raise CommandExecutionError(
                f"ERR {operation.value} expects {expected.__name__}, got {type(command).__name__}",
                code=ERR,
            )
        command.ensure_complete()

        logger.debug(f"Executing {operation.value} in memory")

        match operation:
            case CommandType.SADD:
                return self._sadd(command)
            case CommandType.SREM:
                return self._srem(command)
            case CommandType.SPOP:
                return self._spop(command)
            case CommandType.SMOVE:
                return self._smove(command)
            case CommandType.SCARD:
                return len(self._get_set(command.key))
            case CommandType.SISMEMBER:
                return self._sismember(command)
            case CommandType.SINTER:
                return list(self._inter(command))
            case CommandType.SUNION:
                return list(self._union(command))
            case CommandType.SDIFF:
                return list(self._diff(command))
            case CommandType.SINTERSTORE:
                return self._store(command, self._inter(command))
            case CommandType.SUNIONSTORE:
                return self._store(command, self._union(command))
            case CommandType.SDIFFSTORE:
                return self._store(command, self._diff(command))
            case CommandType.SMEMBERS:
                return list(self._get_set(command.key))
            case CommandType.SRANDMEMBER:
                return self._srandmember(command)
            case _:
                raise CommandExecutionError(f"ERR unknown command '{operation}'", code=ERR)

    # =========================================================================
    # Storage helpers
    # =========================================================================

    def _get_set(self, key: bytes) -> set[bytes]:
        value = self._data.get(key)
        if value is None:
            return set()
        if not isinstance(value, set):
            raise CommandExecutionError(
                "WRONGTYPE Operation against a key holding the wrong kind of value",
                code=WRONGTYPE,
            )
        return value

    def _put_set(self, key: bytes, members: set[bytes]) -> None:
        if members:
            self._data[key] = members
        else:
            self._data.pop(key, None)

    # =========================================================================
    # Single-key operations
    # =========================================================================

    def _sadd(self, command: SAddCommand) -> int:
        if not command.values:
            raise CommandExecutionError("ERR wrong number of arguments for 'sadd' command", code=ERR)
        key = command.key
        members = self._get_set(key)
        before = len(members)
        members.update(command.values)
        self._put_set(key, members)
        return len(members) - before

    def _srem(self, command: SRemCommand) -> int:
        if not command.values:
            raise CommandExecutionError("ERR wrong number of arguments for 'srem' command", code=ERR)
        key = command.key
        members = self._get_set(key)
        removed = 0
        for value in set(command.values):
            if value in members:
                members.remove(value)
                removed += 1
        self._put_set(key, members)
        return removed

    def _spop(self, command: KeyCommand) -> bytes | None:
        key = command.key
        members = self._get_set(key)
        if not members:
            return None
        value = self._random.choice(sorted(members))
        members.remove(value)
        self._put_set(key, members)
        return value

    def _smove(self, command: SMoveCommand) -> bool:
        source = self._get_set(command.key)
        destination = self._get_set(command.destination)
        if command.value not in source:
            return False
        if command.key == command.destination:
            return True
        source.remove(command.value)
        destination.add(command.value)
        self._put_set(command.key, source)
        self._put_set(command.destination, destination)
        return True

    def _sismember(self, command: SIsMemberCommand) -> bool:
        return command.value in self._get_set(command.key)

    def _srandmember(self, command: SRandMembersCommand) -> list[bytes]:
        members = sorted(self._get_set(command.key))
        if not members:
            return []
        if command.count is None:
            return [self._random.choice(members)]
        if command.count >= 0:
            return self._random.sample(members, min(command.count, len(members)))
        return [self._random.choice(members) for _ in range(-command.count)]

    # =========================================================================
    # Multi-key operations
    # =========================================================================

    def _operands(self, command: MultiKeyCommand) -> list[set[bytes]]:
        if not command.keys:
            raise CommandExecutionError("ERR wrong number of arguments", code=ERR)
        return [self._get_set(key) for key in command.keys]

    def _inter(self, command: MultiKeyCommand) -> set[bytes]:
        first, *rest = self._operands(command)
        return first.intersection(*rest)

    def _union(self, command: MultiKeyCommand) -> set[bytes]:
        first, *rest = self._operands(command)
        return first.union(*rest)

    def _diff(self, command: MultiKeyCommand) -> set[bytes]:
        first, *rest = self._operands(command)
        return first.difference(*rest)

    def _store(self, command: MultiKeyStoreCommand, result: set[bytes]) -> int:
        # Destination is overwritten regardless of its previous type
        self._data.pop(command.destination, None)
        self._put_set(command.destination, set(result))
        return len(result)
