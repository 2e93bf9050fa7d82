"""Command definitions for the protocol layer.

Commands are immutable parameter bundles for a single set operation.
They are built in two steps: a classmethod captures the operation's own
data (values, count, operand keys), then an "apply" method binds the key
the operation runs against:

    SAddCommand.for_values([b"a", b"b"]).to(b"myset")
    SMoveCommand.for_value(b"a").from_(b"src").to(b"dst")
    SInterStoreCommand.for_keys([b"s1", b"s2"]).store_at(b"dst")

Every apply method returns a new command; the receiver is never modified,
so a partially built command can be reused against many keys.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import InvalidArgumentError, require


class CommandType(str, Enum):
    """All supported set operations."""

    SADD = "SADD"
    SREM = "SREM"
    SPOP = "SPOP"
    SMOVE = "SMOVE"
    SCARD = "SCARD"
    SISMEMBER = "SISMEMBER"
    SINTER = "SINTER"
    SINTERSTORE = "SINTERSTORE"
    SUNION = "SUNION"
    SUNIONSTORE = "SUNIONSTORE"
    SDIFF = "SDIFF"
    SDIFFSTORE = "SDIFFSTORE"
    SMEMBERS = "SMEMBERS"
    SRANDMEMBER = "SRANDMEMBER"


def _build(cls: type[Any], **fields: Any) -> Any:
    """Instantiate a command, reporting validation failures as invalid arguments."""
    try:
        return cls(**fields)
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid {cls.__name__}: {e}") from e


def _copy_collection(items: Iterable[bytes], name: str) -> tuple[bytes, ...]:
    """Take an independent snapshot of a caller-supplied collection."""
    if isinstance(items, (bytes, bytearray, str)):
        raise InvalidArgumentError(f"{name} must be a collection, not a single value")
    return tuple(items)


class Command(BaseModel):
    """Base class for all set operation descriptors.

    A command only carries data. Execution happens in BatchHandler,
    which calls ensure_complete() before handing the command to the store.
    """

    model_config = ConfigDict(frozen=True)

    def ensure_complete(self) -> None:
        """Raise InvalidArgumentError if a required field has not been applied."""

    def _with(self, **changes: Any) -> Self:
        fields = {name: getattr(self, name) for name in type(self).model_fields}
        fields.update(changes)
        return _build(type(self), **fields)


# =============================================================================
# Single-key commands
# =============================================================================


class KeyCommand(Command):
    """Command operating on a single key.

    Used directly for SPOP, SCARD and SMEMBERS, which take nothing but a key.
    """

    key: bytes | None = None

    @classmethod
    def for_key(cls, key: bytes) -> KeyCommand:
        """Create a command for the given key.

        Only valid for commands that need nothing but a key; the others
        have their own builders (e.g. SAddCommand.for_values(...).to(key)).
        """
        require(key, "Key must not be None")
        missing = [name for name, field in cls.model_fields.items() if field.is_required()]
        if missing:
            raise InvalidArgumentError(
                f"{cls.__name__} cannot be built from a key alone, "
                f"it also needs {', '.join(missing)}"
            )
        return _build(cls, key=key)

    def ensure_complete(self) -> None:
        require(self.key, "Key must not be None")


class SAddCommand(KeyCommand):
    """SADD parameters: values to add to the set at key."""

    values: tuple[bytes, ...]

    @classmethod
    def for_value(cls, value: bytes) -> SAddCommand:
        """Create a command adding a single value."""
        require(value, "Value must not be None")
        return cls.for_values([value])

    @classmethod
    def for_values(cls, values: Iterable[bytes]) -> SAddCommand:
        """Create a command adding a collection of values."""
        require(values, "Values must not be None")
        return _build(cls, values=_copy_collection(values, "Values"))

    def to(self, key: bytes) -> SAddCommand:
        """Apply the key of the set to add to."""
        require(key, "Key must not be None")
        return self._with(key=key)


class SRemCommand(KeyCommand):
    """SREM parameters: values to remove from the set at key."""

    values: tuple[bytes, ...]

    @classmethod
    def for_value(cls, value: bytes) -> SRemCommand:
        require(value, "Value must not be None")
        return cls.for_values([value])

    @classmethod
    def for_values(cls, values: Iterable[bytes]) -> SRemCommand:
        require(values, "Values must not be None")
        return _build(cls, values=_copy_collection(values, "Values"))

    def from_(self, key: bytes) -> SRemCommand:
        """Apply the key of the set to remove from."""
        require(key, "Key must not be None")
        return self._with(key=key)


class SMoveCommand(KeyCommand):
    """SMOVE parameters.

    `key` is the source set. Both from_() and to() must be applied before
    submission; they may be applied in either order.
    """

    destination: bytes | None = None
    value: bytes

    @classmethod
    def for_value(cls, value: bytes) -> SMoveCommand:
        require(value, "Value must not be None")
        return _build(cls, value=value)

    def from_(self, source: bytes) -> SMoveCommand:
        """Apply the source key."""
        require(source, "Source key must not be None")
        return self._with(key=source)

    def to(self, destination: bytes) -> SMoveCommand:
        """Apply the destination key."""
        require(destination, "Destination key must not be None")
        return self._with(destination=destination)

    def ensure_complete(self) -> None:
        require(self.key, "Source key must not be None")
        require(self.destination, "Destination key must not be None")


class SIsMemberCommand(KeyCommand):
    """SISMEMBER parameters: the value to look up."""

    value: bytes

    @classmethod
    def for_value(cls, value: bytes) -> SIsMemberCommand:
        require(value, "Value must not be None")
        return _build(cls, value=value)

    def of(self, key: bytes) -> SIsMemberCommand:
        """Apply the key of the set to test."""
        require(key, "Set key must not be None")
        return self._with(key=key)

    def ensure_complete(self) -> None:
        require(self.key, "Set key must not be None")


class SRandMembersCommand(KeyCommand):
    """SRANDMEMBER parameters.

    A count of None asks for a single member. Positive counts return
    distinct members; negative counts allow repeats.
    """

    count: int | None = None

    @classmethod
    def value_count(cls, count: int) -> SRandMembersCommand:
        """Create a command retrieving `count` random members."""
        require(count, "Count must not be None")
        return _build(cls, count=count)

    @classmethod
    def single_value(cls) -> SRandMembersCommand:
        """Create a command retrieving one random member."""
        return _build(cls)

    def from_(self, key: bytes) -> SRandMembersCommand:
        """Apply the key of the set to sample."""
        require(key, "Key must not be None")
        return self._with(key=key)


# =============================================================================
# Multi-key commands
# =============================================================================


class MultiKeyCommand(Command):
    """Command operating across an ordered collection of keys."""

    keys: tuple[bytes, ...]

    @classmethod
    def for_keys(cls, keys: Iterable[bytes]) -> Self:
        """Create a command over the given keys."""
        require(keys, "Keys must not be None")
        return _build(cls, keys=_copy_collection(keys, "Keys"))


class SInterCommand(MultiKeyCommand):
    """SINTER parameters."""


class SUnionCommand(MultiKeyCommand):
    """SUNION parameters."""


class SDiffCommand(MultiKeyCommand):
    """SDIFF parameters. The first key is the set others are subtracted from."""


class MultiKeyStoreCommand(MultiKeyCommand):
    """Set algebra whose result is persisted at a destination key."""

    destination: bytes | None = None

    def store_at(self, destination: bytes) -> Self:
        """Apply the destination key."""
        require(destination, "Destination key must not be None")
        return self._with(destination=destination)

    def ensure_complete(self) -> None:
        require(self.destination, "Destination key must not be None")


class SInterStoreCommand(MultiKeyStoreCommand):
    """SINTERSTORE parameters."""


class SUnionStoreCommand(MultiKeyStoreCommand):
    """SUNIONSTORE parameters."""


class SDiffStoreCommand(MultiKeyStoreCommand):
    """SDIFFSTORE parameters."""


# Command class accepted by each operation
COMMAND_CLASSES: dict[CommandType, type[Command]] = {
    CommandType.SADD: SAddCommand,
    CommandType.SREM: SRemCommand,
    CommandType.SPOP: KeyCommand,
    CommandType.SMOVE: SMoveCommand,
    CommandType.SCARD: KeyCommand,
    CommandType.SISMEMBER: SIsMemberCommand,
    CommandType.SINTER: SInterCommand,
    CommandType.SINTERSTORE: SInterStoreCommand,
    CommandType.SUNION: SUnionCommand,
    CommandType.SUNIONSTORE: SUnionStoreCommand,
    CommandType.SDIFF: SDiffCommand,
    CommandType.SDIFFSTORE: SDiffStoreCommand,
    CommandType.SMEMBERS: KeyCommand,
    CommandType.SRANDMEMBER: SRandMembersCommand,
}
