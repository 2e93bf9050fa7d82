"""Error types for the protocol layer.

Three failure classes flow through setflow:
- InvalidArgumentError: caller misuse, raised synchronously before dispatch
- CommandExecutionError: the store rejected one well-formed command
- anything else raised by an executor: the whole stream is broken
"""

from __future__ import annotations

# Failure codes carried on error responses
INVALID_ARGUMENT = "INVALID_ARGUMENT"
INVALID_OUTPUT = "INVALID_OUTPUT"
TIMEOUT = "TIMEOUT"
EXECUTION_ERROR = "EXECUTION_ERROR"


class SetflowError(Exception):
    """Base class for all setflow errors."""

    pass


class InvalidArgumentError(SetflowError, ValueError):
    """Raised when a required argument or command field is missing."""

    code = INVALID_ARGUMENT


class CommandExecutionError(SetflowError):
    """Raised when the store cannot satisfy a specific command.

    Attributes:
        code: Machine-readable failure code (e.g. "WRONGTYPE")
    """

    def __init__(self, message: str, code: str = EXECUTION_ERROR) -> None:
        super().__init__(message)
        self.code = code


def require(value: object, message: str) -> None:
    """Raise InvalidArgumentError if value is None."""
    if value is None:
        raise InvalidArgumentError(message)
