"""Batch Handler - turns a stream of commands into a stream of responses.

Every command pulled from the input produces exactly one correlated
response. Commands are pipelined to the executor concurrently, and
responses are yielded as they complete, so correlation is carried by
the response itself (`response.input`), never by position.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from .commands import COMMAND_CLASSES, Command, CommandType
from .errors import (
    INVALID_ARGUMENT,
    INVALID_OUTPUT,
    TIMEOUT,
    CommandExecutionError,
    InvalidArgumentError,
    require,
)
from .executor import CommandExecutor
from .responses import (
    BooleanResponse,
    CommandResponse,
    MultiValueResponse,
    NumericResponse,
    ValueResponse,
)

logger = logging.getLogger(__name__)

# Response envelope produced by each operation
RESPONSE_TYPES: dict[CommandType, type[CommandResponse[Any, Any]]] = {
    CommandType.SADD: NumericResponse,
    CommandType.SREM: NumericResponse,
    CommandType.SPOP: ValueResponse,
    CommandType.SMOVE: BooleanResponse,
    CommandType.SCARD: NumericResponse,
    CommandType.SISMEMBER: BooleanResponse,
    CommandType.SINTER: MultiValueResponse,
    CommandType.SINTERSTORE: NumericResponse,
    CommandType.SUNION: MultiValueResponse,
    CommandType.SUNIONSTORE: NumericResponse,
    CommandType.SDIFF: MultiValueResponse,
    CommandType.SDIFFSTORE: NumericResponse,
    CommandType.SMEMBERS: MultiValueResponse,
    CommandType.SRANDMEMBER: MultiValueResponse,
}

# Marks the end of the input stream
_EXHAUSTED = object()


@dataclass
class HandlerConfig:
    """Configuration for batch execution.

    Attributes:
        max_in_flight: Maximum concurrent executor calls per batch
        timeout: Per-command timeout in seconds (None disables it)
    """

    max_in_flight: int = 16
    timeout: float | None = 30.0

    def __post_init__(self) -> None:
        if self.max_in_flight < 1:
            raise InvalidArgumentError(
                f"max_in_flight must be at least 1, got {self.max_in_flight}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise InvalidArgumentError(
                f"timeout must be positive or None, got {self.timeout}"
            )

    @classmethod
    def from_env(cls) -> HandlerConfig:
        """Build configuration from SETFLOW_* environment variables.

        SETFLOW_MAX_IN_FLIGHT: concurrent executor calls per batch
        SETFLOW_COMMAND_TIMEOUT: seconds per command, 0 to disable

        Unset or blank variables keep the defaults.
        """
        defaults = cls()
        max_in_flight = _env_number("SETFLOW_MAX_IN_FLIGHT", int)
        timeout = _env_number("SETFLOW_COMMAND_TIMEOUT", float)

        return cls(
            max_in_flight=defaults.max_in_flight if max_in_flight is None else max_in_flight,
            timeout=defaults.timeout if timeout is None else (timeout or None),
        )


def _env_number(name: str, parse: type[int] | type[float]) -> Any:
    """Parse a numeric environment variable, None when unset or blank."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return parse(raw)
    except ValueError as e:
        raise InvalidArgumentError(f"{name} must be a number, got {raw!r}") from e


async def _from_sync(commands: Iterable[Any]) -> AsyncIterator[Any]:
    for command in commands:
        yield command


async def _next(source: AsyncIterator[Any]) -> Any:
    try:
        return await anext(source)
    except StopAsyncIteration:
        return _EXHAUSTED


class BatchHandler:
    """Executes command streams and yields correlated responses.

    Usage:
        handler = BatchHandler(executor)

        commands = (SAddCommand.for_value(v).to(b"myset") for v in values)
        async with contextlib.aclosing(handler.execute(CommandType.SADD, commands)) as responses:
            async for response in responses:
                print(response.input.values, response.output)

    Correlation:
        Responses are yielded in completion order. Each one carries the
        command that produced it.

    Failures:
        - A malformed command yields a failure response (code INVALID_ARGUMENT)
        - A store rejection yields a failure response with the store's code
        - Any other executor exception ends the stream and is re-raised

    Cancellation:
        Closing the response iterator cancels in-flight executor calls and
        stops pulling commands from the input.
    """

    def __init__(self, executor: CommandExecutor, config: HandlerConfig | None = None) -> None:
        """Initialize handler.

        Args:
            executor: Remote store executor commands are dispatched to
            config: Batch configuration (defaults to HandlerConfig())
        """
        self._executor = executor
        self._config = config or HandlerConfig()

    @property
    def executor(self) -> CommandExecutor:
        """The executor commands are dispatched to."""
        return self._executor

    @property
    def config(self) -> HandlerConfig:
        """Batch configuration."""
        return self._config

    def execute(
        self,
        operation: CommandType | str,
        commands: Iterable[Command] | AsyncIterable[Command],
    ) -> AsyncIterator[CommandResponse[Any, Any]]:
        """Execute a stream of commands for one operation.

        Args:
            operation: The operation every command in the stream is for
            commands: Sync or async iterable of commands, possibly unbounded

        Returns:
            Async iterator of correlated responses, one per command

        Raises:
            InvalidArgumentError: If commands is None or operation is unknown
        """
        require(commands, "Commands must not be None")
        try:
            operation = CommandType(operation)
        except ValueError as e:
            raise InvalidArgumentError(f"Unknown operation: {operation}") from e

        if isinstance(commands, AsyncIterable):
            source = aiter(commands)
        else:
            source = _from_sync(commands)
        return self._pipeline(operation, source)

    async def _pipeline(
        self,
        operation: CommandType,
        source: AsyncIterator[Any],
    ) -> AsyncIterator[CommandResponse[Any, Any]]:
        pending: set[asyncio.Task[CommandResponse[Any, Any]]] = set()
        pull: asyncio.Future[Any] | None = None
        exhausted = False
        submitted = 0
        completed = 0

        try:
            while True:
                if pull is None and not exhausted and len(pending) < self._config.max_in_flight:
                    pull = asyncio.ensure_future(_next(source))

                waiting: set[asyncio.Future[Any]] = set(pending)
                if pull is not None:
                    waiting.add(pull)
                if not waiting:
                    break

                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                if pull is not None and pull in done:
                    command = pull.result()
                    pull = None
                    if command is _EXHAUSTED:
                        exhausted = True
                    else:
                        if not isinstance(command, Command):
                            raise InvalidArgumentError(
                                f"Expected a command, got {type(command).__name__}"
                            )
                        submitted += 1
                        pending.add(asyncio.create_task(self._run(operation, command)))

                for task in done:
                    if task not in pending:
                        continue
                    pending.discard(task)
                    completed += 1
                    yield task.result()

            logger.debug(f"{operation.value} stream finished ({completed} responses)")

        except InvalidArgumentError:
            raise
        except Exception as e:
            logger.exception(f"{operation.value} stream failed: {e}")
            raise
        finally:
            await self._shutdown(pending, pull, source, operation, submitted - completed)

    async def _shutdown(
        self,
        pending: set[asyncio.Task[CommandResponse[Any, Any]]],
        pull: asyncio.Future[Any] | None,
        source: AsyncIterator[Any],
        operation: CommandType,
        outstanding: int,
    ) -> None:
        """Cancel in-flight work and close the input stream."""
        tasks: list[asyncio.Future[Any]] = list(pending)
        if pull is not None:
            tasks.append(pull)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if outstanding:
            logger.debug(f"{operation.value} stream closed with {outstanding} commands cancelled")

        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()

    async def _run(self, operation: CommandType, command: Command) -> CommandResponse[Any, Any]:
        """Execute one command and wrap the outcome in its response."""
        response_type = RESPONSE_TYPES[operation]
        expected = COMMAND_CLASSES[operation]

        try:
            if not isinstance(command, expected):
                raise InvalidArgumentError(
                    f"{operation.value} expects {expected.__name__}, "
                    f"got {type(command).__name__}"
                )
            command.ensure_complete()
        except InvalidArgumentError as e:
            logger.warning(f"Rejected {operation.value} command: {e}")
            return response_type.failure(command, str(e), code=INVALID_ARGUMENT)

        logger.debug(f"Dispatching {operation.value}: {command!r}")

        try:
            if self._config.timeout is not None:
                output = await asyncio.wait_for(
                    self._executor.execute(operation, command),
                    timeout=self._config.timeout,
                )
            else:
                output = await self._executor.execute(operation, command)
        except CommandExecutionError as e:
            logger.warning(f"{operation.value} failed: {e} (code={e.code})")
            return response_type.failure(command, str(e), code=e.code)
        except TimeoutError:
            logger.warning(f"{operation.value} timed out after {self._config.timeout}s")
            return response_type.failure(command, "Command timed out", code=TIMEOUT)

        try:
            return response_type.success(command, output)
        except ValidationError as e:
            logger.warning(f"{operation.value} returned unexpected output: {output!r}")
            return response_type.failure(
                command,
                f"Unexpected {operation.value} result: {e}",
                code=INVALID_OUTPUT,
            )
