"""Set commands client.

Exposes two entry points per operation:
- A scalar method (`sadd`, `scard`, ...) taking plain keys and values and
  returning the bare result
- A batch method (`sadd_batch`, `scard_batch`, ...) taking a stream of
  commands and returning a stream of correlated responses

Scalar methods are thin: validate arguments, build one command, run a
one-element batch, unwrap the single response.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from typing import Any

from ..protocol.commands import (
    Command,
    CommandType,
    KeyCommand,
    SAddCommand,
    SDiffCommand,
    SDiffStoreCommand,
    SInterCommand,
    SInterStoreCommand,
    SIsMemberCommand,
    SMoveCommand,
    SRandMembersCommand,
    SRemCommand,
    SUnionCommand,
    SUnionStoreCommand,
)
from ..protocol.errors import CommandExecutionError, require
from ..protocol.executor import CommandExecutor
from ..protocol.handler import BatchHandler, HandlerConfig
from ..protocol.responses import (
    BooleanResponse,
    CommandResponse,
    MultiValueResponse,
    NumericResponse,
    ValueResponse,
)

logger = logging.getLogger(__name__)

Commands = Iterable[Any] | AsyncIterable[Any]


def _values(values: bytes | Iterable[bytes]) -> list[bytes]:
    """Accept one value or a collection of values."""
    require(values, "Values must not be None")
    if isinstance(values, (bytes, bytearray, str)):
        return [values]
    return list(values)


class SetCommands:
    """Set operations executed through a BatchHandler.

    Usage:
        async with SetCommands(executor) as sets:
            await sets.sadd(b"s1", [b"a", b"b"])
            count = await sets.scard(b"s1")

            commands = [SIsMemberCommand.for_value(b"a").of(key) for key in keys]
            async for response in sets.sismember_batch(commands):
                print(response.input.key, response.output)

    Scalar methods raise:
        InvalidArgumentError: If a required argument is None
        CommandExecutionError: If the store rejected the command
    """

    def __init__(
        self,
        executor: CommandExecutor,
        config: HandlerConfig | None = None,
        handler: BatchHandler | None = None,
    ) -> None:
        """Initialize client.

        Args:
            executor: Remote store executor
            config: Batch configuration (ignored when handler is given)
            handler: Pre-built handler to share between clients
        """
        self._handler = handler or BatchHandler(executor, config)

    @property
    def handler(self) -> BatchHandler:
        """The batch handler commands run through."""
        return self._handler

    @property
    def executor(self) -> CommandExecutor:
        """The remote store executor."""
        return self._handler.executor

    async def close(self) -> None:
        """Close the executor if it supports closing."""
        aclose = getattr(self.executor, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> SetCommands:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _one(self, operation: CommandType, command: Command) -> Any:
        """Run a one-element batch and unwrap its response."""
        logger.debug(f"Scalar {operation.value} call")
        responses = self._handler.execute(operation, [command])
        async with contextlib.aclosing(responses):
            async for response in responses:
                return response.get_output()
        raise CommandExecutionError(f"No response received for {operation.value}")

    # =========================================================================
    # SADD / SREM / SPOP / SMOVE
    # =========================================================================

    async def sadd(self, key: bytes, values: bytes | Iterable[bytes]) -> int:
        """Add one or more values to the set at key.

        Returns:
            Number of values that were not already members
        """
        require(key, "Key must not be None")
        command = SAddCommand.for_values(_values(values)).to(key)
        return await self._one(CommandType.SADD, command)

    def sadd_batch(self, commands: Commands) -> AsyncIterator[NumericResponse[SAddCommand]]:
        """Add values for each command, yielding the count added per command."""
        return self._handler.execute(CommandType.SADD, commands)

    async def srem(self, key: bytes, values: bytes | Iterable[bytes]) -> int:
        """Remove one or more values from the set at key.

        Returns:
            Number of values that were removed
        """
        require(key, "Key must not be None")
        command = SRemCommand.for_values(_values(values)).from_(key)
        return await self._one(CommandType.SREM, command)

    def srem_batch(self, commands: Commands) -> AsyncIterator[NumericResponse[SRemCommand]]:
        return self._handler.execute(CommandType.SREM, commands)

    async def spop(self, key: bytes) -> bytes | None:
        """Remove and return a random member, or None if the set is empty."""
        require(key, "Key must not be None")
        return await self._one(CommandType.SPOP, KeyCommand.for_key(key))

    def spop_batch(self, commands: Commands) -> AsyncIterator[ValueResponse[KeyCommand]]:
        return self._handler.execute(CommandType.SPOP, commands)

    async def smove(self, source: bytes, destination: bytes, value: bytes) -> bool:
        """Move value from the source set to the destination set.

        Returns:
            True if value was a member of source and has been moved
        """
        require(source, "Source key must not be None")
        require(destination, "Destination key must not be None")
        require(value, "Value must not be None")
        command = SMoveCommand.for_value(value).from_(source).to(destination)
        return await self._one(CommandType.SMOVE, command)

    def smove_batch(self, commands: Commands) -> AsyncIterator[BooleanResponse[SMoveCommand]]:
        return self._handler.execute(CommandType.SMOVE, commands)

    # =========================================================================
    # SCARD / SISMEMBER / SMEMBERS / SRANDMEMBER
    # =========================================================================

    async def scard(self, key: bytes) -> int:
        """Get the number of members in the set at key."""
        require(key, "Key must not be None")
        return await self._one(CommandType.SCARD, KeyCommand.for_key(key))

    def scard_batch(self, commands: Commands) -> AsyncIterator[NumericResponse[KeyCommand]]:
        return self._handler.execute(CommandType.SCARD, commands)

    async def sismember(self, key: bytes, value: bytes) -> bool:
        """Check if value is a member of the set at key."""
        require(key, "Key must not be None")
        require(value, "Value must not be None")
        command = SIsMemberCommand.for_value(value).of(key)
        return await self._one(CommandType.SISMEMBER, command)

    def sismember_batch(
        self, commands: Commands
    ) -> AsyncIterator[BooleanResponse[SIsMemberCommand]]:
        return self._handler.execute(CommandType.SISMEMBER, commands)

    async def smembers(self, key: bytes) -> list[bytes]:
        """Get all members of the set at key, in no particular order."""
        require(key, "Key must not be None")
        return await self._one(CommandType.SMEMBERS, KeyCommand.for_key(key))

    def smembers_batch(self, commands: Commands) -> AsyncIterator[MultiValueResponse[KeyCommand]]:
        return self._handler.execute(CommandType.SMEMBERS, commands)

    async def srandmember(self, key: bytes) -> bytes | None:
        """Get one random member, or None if the set is empty.

        Runs srandmembers(key, 1) and takes the first element.
        """
        values = await self.srandmembers(key, 1)
        return values[0] if values else None

    async def srandmembers(self, key: bytes, count: int) -> list[bytes]:
        """Get `count` random members of the set at key.

        A positive count returns distinct members, a negative count may
        repeat members.
        """
        require(key, "Key must not be None")
        require(count, "Count must not be None")
        command = SRandMembersCommand.value_count(count).from_(key)
        return await self._one(CommandType.SRANDMEMBER, command)

    def srandmember_batch(
        self, commands: Commands
    ) -> AsyncIterator[MultiValueResponse[SRandMembersCommand]]:
        return self._handler.execute(CommandType.SRANDMEMBER, commands)

    # =========================================================================
    # Set algebra
    # =========================================================================

    async def sinter(self, keys: Iterable[bytes]) -> list[bytes]:
        """Intersect the sets at keys."""
        require(keys, "Keys must not be None")
        return await self._one(CommandType.SINTER, SInterCommand.for_keys(keys))

    def sinter_batch(self, commands: Commands) -> AsyncIterator[MultiValueResponse[SInterCommand]]:
        return self._handler.execute(CommandType.SINTER, commands)

    async def sinterstore(self, destination: bytes, keys: Iterable[bytes]) -> int:
        """Intersect the sets at keys and store the result at destination.

        Returns:
            Number of members in the stored set
        """
        require(destination, "Destination key must not be None")
        require(keys, "Keys must not be None")
        command = SInterStoreCommand.for_keys(keys).store_at(destination)
        return await self._one(CommandType.SINTERSTORE, command)

    def sinterstore_batch(
        self, commands: Commands
    ) -> AsyncIterator[NumericResponse[SInterStoreCommand]]:
        return self._handler.execute(CommandType.SINTERSTORE, commands)

    async def sunion(self, keys: Iterable[bytes]) -> list[bytes]:
        """Union the sets at keys."""
        require(keys, "Keys must not be None")
        return await self._one(CommandType.SUNION, SUnionCommand.for_keys(keys))

    def sunion_batch(self, commands: Commands) -> AsyncIterator[MultiValueResponse[SUnionCommand]]:
        return self._handler.execute(CommandType.SUNION, commands)

    async def sunionstore(self, destination: bytes, keys: Iterable[bytes]) -> int:
        """Union the sets at keys and store the result at destination."""
        require(destination, "Destination key must not be None")
        require(keys, "Keys must not be None")
        command = SUnionStoreCommand.for_keys(keys).store_at(destination)
        return await self._one(CommandType.SUNIONSTORE, command)

    def sunionstore_batch(
        self, commands: Commands
    ) -> AsyncIterator[NumericResponse[SUnionStoreCommand]]:
        return self._handler.execute(CommandType.SUNIONSTORE, commands)

    async def sdiff(self, keys: Iterable[bytes]) -> list[bytes]:
        """Subtract the sets at keys[1:] from the set at keys[0]."""
        require(keys, "Keys must not be None")
        return await self._one(CommandType.SDIFF, SDiffCommand.for_keys(keys))

    def sdiff_batch(self, commands: Commands) -> AsyncIterator[MultiValueResponse[SDiffCommand]]:
        return self._handler.execute(CommandType.SDIFF, commands)

    async def sdiffstore(self, destination: bytes, keys: Iterable[bytes]) -> int:
        """Subtract the sets at keys[1:] from keys[0] and store the result."""
        require(destination, "Destination key must not be None")
        require(keys, "Keys must not be None")
        command = SDiffStoreCommand.for_keys(keys).store_at(destination)
        return await self._one(CommandType.SDIFFSTORE, command)

    def sdiffstore_batch(
        self, commands: Commands
    ) -> AsyncIterator[NumericResponse[SDiffStoreCommand]]:
        return self._handler.execute(CommandType.SDIFFSTORE, commands)

    # Generic escape hatch for callers that pick the operation at runtime
    def execute(
        self, operation: CommandType | str, commands: Commands
    ) -> AsyncIterator[CommandResponse[Any, Any]]:
        """Execute a command stream for any operation."""
        return self._handler.execute(operation, commands)
