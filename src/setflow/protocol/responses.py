"""Correlated response definitions for the protocol layer.

A response pairs one input command with its computed output, so the
consumer of a batch can tell which command produced which result even
when results arrive out of submission order.

A response is either:
- Successful: `output` holds the store's result for `input`
- Failed: `error`/`code` describe why that one command could not run

Output kinds:
- BooleanResponse: membership test, move success
- NumericResponse: cardinality, members added/removed/stored
- ValueResponse: a single popped or random member (may be None)
- MultiValueResponse: members, random samples, set algebra results
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from .commands import Command
from .errors import CommandExecutionError

C = TypeVar("C", bound=Command)
T = TypeVar("T")


class CommandResponse(BaseModel, Generic[C, T]):
    """Pairs exactly one command with exactly one output or failure.

    Example (success):
        NumericResponse(input=SAddCommand.for_value(b"a").to(b"s1"), output=1)

    Example (failure):
        NumericResponse.failure(command, "Key holds the wrong kind of value", code="WRONGTYPE")
    """

    model_config = ConfigDict(frozen=True)

    input: C
    output: T | None = None

    # Set only on failed responses
    error: str | None = None
    code: str | None = None

    def is_error(self) -> bool:
        """Check if the command failed."""
        return self.error is not None

    def get_output(self) -> T | None:
        """Return the output, raising if the command failed.

        Raises:
            CommandExecutionError: If this is a failure response
        """
        if self.error is not None:
            raise CommandExecutionError(self.error, code=self.code or "ERR")
        return self.output

    @classmethod
    def success(cls, command: Command, output: Any) -> Any:
        """Create a successful response for command."""
        return cls(input=command, output=output)

    @classmethod
    def failure(cls, command: Command, error: str, code: str) -> Any:
        """Create a failed response for command."""
        return cls(input=command, error=error, code=code)


class BooleanResponse(CommandResponse[C, bool], Generic[C]):
    """Response carrying a boolean outcome."""


class NumericResponse(CommandResponse[C, int], Generic[C]):
    """Response carrying a count."""


class ValueResponse(CommandResponse[C, bytes], Generic[C]):
    """Response carrying a single, possibly absent, value."""


class MultiValueResponse(CommandResponse[C, list[bytes]], Generic[C]):
    """Response carrying an ordered collection of values.

    Element order reflects what the store returned and is not
    guaranteed to be stable across calls.
    """
