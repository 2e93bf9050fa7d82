"""Transport-agnostic protocol layer.

Defines the command/response model for set operations and the batch
contract that executes command streams against a remote store.

Key concepts:
- Commands: immutable parameter bundles, built with copy-on-write builders
- Responses: envelopes pairing each command with its output or failure
- BatchHandler: turns a stream of commands into a stream of responses
- CommandExecutor: the remote store collaborator, one command at a time

This enables:
- Bulk pipelined execution (many commands → many responses)
- Single-call convenience APIs built on one-element batches
- Per-command failures that never abort sibling commands
"""

from .commands import (
    COMMAND_CLASSES,
    Command,
    CommandType,
    KeyCommand,
    MultiKeyCommand,
    MultiKeyStoreCommand,
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
from .errors import CommandExecutionError, InvalidArgumentError, SetflowError
from .executor import CommandExecutor
from .handler import RESPONSE_TYPES, BatchHandler, HandlerConfig
from .responses import (
    BooleanResponse,
    CommandResponse,
    MultiValueResponse,
    NumericResponse,
    ValueResponse,
)

__all__ = [
    # Commands
    "Command",
    "CommandType",
    "COMMAND_CLASSES",
    "KeyCommand",
    "MultiKeyCommand",
    "MultiKeyStoreCommand",
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
    # Responses
    "CommandResponse",
    "BooleanResponse",
    "NumericResponse",
    "ValueResponse",
    "MultiValueResponse",
    # Execution
    "BatchHandler",
    "HandlerConfig",
    "RESPONSE_TYPES",
    "CommandExecutor",
    # Errors
    "SetflowError",
    "InvalidArgumentError",
    "CommandExecutionError",
]
