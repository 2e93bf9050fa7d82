"""setflow - command/response correlation for pipelined set operations.

Submit a stream of immutable set commands, get back a stream of responses
where each one names the command that produced it.
"""

from .protocol import (
    BatchHandler,
    BooleanResponse,
    Command,
    CommandExecutionError,
    CommandExecutor,
    CommandResponse,
    CommandType,
    HandlerConfig,
    InvalidArgumentError,
    KeyCommand,
    MultiValueResponse,
    NumericResponse,
    SAddCommand,
    SDiffCommand,
    SDiffStoreCommand,
    SetflowError,
    SInterCommand,
    SInterStoreCommand,
    SIsMemberCommand,
    SMoveCommand,
    SRandMembersCommand,
    SRemCommand,
    SUnionCommand,
    SUnionStoreCommand,
    ValueResponse,
)
from .sdk import InMemorySetStore, SetCommands

__version__ = "0.1.0"

__all__ = [
    "SetCommands",
    "InMemorySetStore",
    "BatchHandler",
    "HandlerConfig",
    "CommandExecutor",
    "CommandType",
    "Command",
    "KeyCommand",
    "SAddCommand",
    "SRemCommand",
    "SMoveCommand",
    "SIsMemberCommand",
    "SRandMembersCommand",
    "SInterCommand",
    "SInterStoreCommand",
    "SUnionCommand",
    "SUnionStoreCommand",
    "SDiffCommand",
    "SDiffStoreCommand",
    "CommandResponse",
    "BooleanResponse",
    "NumericResponse",
    "ValueResponse",
    "MultiValueResponse",
    "SetflowError",
    "InvalidArgumentError",
    "CommandExecutionError",
]
