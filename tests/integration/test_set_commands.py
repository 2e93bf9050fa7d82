"""Integration tests for SetCommands.

Runs the scalar and batch entry points end to end: client → handler →
in-memory store. Nothing is mocked.
"""

import contextlib
import random

import pytest

from setflow import (
    BooleanResponse,
    CommandExecutionError,
    CommandType,
    InvalidArgumentError,
    KeyCommand,
    MultiValueResponse,
    NumericResponse,
    SAddCommand,
    SDiffCommand,
    SDiffStoreCommand,
    SetCommands,
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
from setflow.sdk import InMemorySetStore


async def first_output(responses):
    async with contextlib.aclosing(responses):
        async for response in responses:
            return response.get_output()


# =============================================================================
# Documented examples
# =============================================================================


class TestExamples:
    """End-to-end examples of the scalar API."""

    @pytest.mark.asyncio
    async def test_sadd_then_scard(self, sets: SetCommands) -> None:
        """Adding two members should give a cardinality of 2."""
        assert await sets.sadd(b"s1", [b"a", b"b"]) == 2
        assert await sets.scard(b"s1") == 2

    @pytest.mark.asyncio
    async def test_smove(self, sets: SetCommands) -> None:
        """Moving a member should update both sets."""
        await sets.sadd(b"s1", [b"a", b"b"])

        assert await sets.smove(b"s1", b"s2", b"a") is True
        assert sorted(await sets.smembers(b"s1")) == [b"b"]
        assert sorted(await sets.smembers(b"s2")) == [b"a"]

    @pytest.mark.asyncio
    async def test_sinter(self, sets: SetCommands) -> None:
        """Intersection should contain exactly the shared member."""
        await sets.sadd(b"s1", [b"a", b"b"])
        await sets.sadd(b"s2", [b"b", b"c"])

        assert await sets.sinter([b"s1", b"s2"]) == [b"b"]

    @pytest.mark.asyncio
    async def test_srandmember_empty_set(self, sets: SetCommands) -> None:
        """A random member of an empty set is absent, not an error."""
        assert await sets.srandmember(b"s1") is None


# =============================================================================
# Scalar operations
# =============================================================================


class TestScalarOperations:
    """Scalar methods for each operation."""

    @pytest.mark.asyncio
    async def test_sadd_single_value(self, sets: SetCommands) -> None:
        """A bare bytes value should be added as one member."""
        assert await sets.sadd(b"s1", b"abc") == 1
        assert await sets.smembers(b"s1") == [b"abc"]

    @pytest.mark.asyncio
    async def test_srem(self, sets: SetCommands) -> None:
        await sets.sadd(b"s1", [b"a", b"b", b"c"])

        assert await sets.srem(b"s1", [b"a", b"z"]) == 1
        assert await sets.srem(b"s1", b"b") == 1
        assert await sets.scard(b"s1") == 1

    @pytest.mark.asyncio
    async def test_spop(self, sets: SetCommands) -> None:
        await sets.sadd(b"s1", b"only")

        assert await sets.spop(b"s1") == b"only"
        assert await sets.spop(b"s1") is None

    @pytest.mark.asyncio
    async def test_sismember(self, sets: SetCommands) -> None:
        await sets.sadd(b"s1", b"a")

        assert await sets.sismember(b"s1", b"a") is True
        assert await sets.sismember(b"s1", b"b") is False

    @pytest.mark.asyncio
    async def test_srandmember(self, sets: SetCommands) -> None:
        await sets.sadd(b"s1", [b"a", b"b"])

        assert await sets.srandmember(b"s1") in {b"a", b"b"}
        assert sorted(await sets.srandmembers(b"s1", 5)) == [b"a", b"b"]

    @pytest.mark.asyncio
    async def test_srandmember_uses_count_of_one(
        self, sets: SetCommands, store: InMemorySetStore
    ) -> None:
        """srandmember() should be a count-1 request under the hood."""
        await sets.srandmember(b"s1")

        [(_, command)] = store.recorded_commands
        assert command == SRandMembersCommand.value_count(1).from_(b"s1")

    @pytest.mark.asyncio
    async def test_sunion_and_sdiff(self, sets: SetCommands) -> None:
        await sets.sadd(b"s1", [b"a", b"b"])
        await sets.sadd(b"s2", [b"b", b"c"])

        assert sorted(await sets.sunion([b"s1", b"s2"])) == [b"a", b"b", b"c"]
        assert await sets.sdiff([b"s1", b"s2"]) == [b"a"]

    @pytest.mark.asyncio
    async def test_store_variants(self, sets: SetCommands) -> None:
        """STORE variants should persist and return the stored size."""
        await sets.sadd(b"s1", [b"a", b"b"])
        await sets.sadd(b"s2", [b"b", b"c"])

        assert await sets.sinterstore(b"inter", [b"s1", b"s2"]) == 1
        assert await sets.sunionstore(b"union", [b"s1", b"s2"]) == 3
        assert await sets.sdiffstore(b"diff", [b"s2", b"s1"]) == 1

        assert await sets.smembers(b"inter") == [b"b"]
        assert await sets.scard(b"union") == 3
        assert await sets.smembers(b"diff") == [b"c"]

    @pytest.mark.asyncio
    async def test_str_keys_are_encoded(self, sets: SetCommands) -> None:
        """Text keys and values should be accepted as UTF-8 bytes."""
        await sets.sadd("fruits", ["apple"])

        assert await sets.smembers(b"fruits") == [b"apple"]


async def seeded_sets() -> tuple[SetCommands, InMemorySetStore]:
    """A fresh client over s1={a, b} and s2={b, c}, with a fixed random seed."""
    store = InMemorySetStore(rng=random.Random(0))
    sets = SetCommands(store)
    await sets.sadd(b"s1", [b"a", b"b"])
    await sets.sadd(b"s2", [b"b", b"c"])
    return sets, store


def normalize(value):
    # Multi-value outputs come back in set iteration order
    return sorted(value) if isinstance(value, list) else value


PAIR = [b"s1", b"s2"]

SCALAR_CASES = [
    pytest.param(
        lambda s: s.sadd(b"s1", [b"c", b"d"]),
        CommandType.SADD,
        SAddCommand.for_values([b"c", b"d"]).to(b"s1"),
        id="sadd",
    ),
    pytest.param(
        lambda s: s.srem(b"s1", [b"a", b"z"]),
        CommandType.SREM,
        SRemCommand.for_values([b"a", b"z"]).from_(b"s1"),
        id="srem",
    ),
    pytest.param(lambda s: s.spop(b"s1"), CommandType.SPOP, KeyCommand.for_key(b"s1"), id="spop"),
    pytest.param(
        lambda s: s.smove(b"s1", b"s2", b"a"),
        CommandType.SMOVE,
        SMoveCommand.for_value(b"a").from_(b"s1").to(b"s2"),
        id="smove",
    ),
    pytest.param(lambda s: s.scard(b"s1"), CommandType.SCARD, KeyCommand.for_key(b"s1"), id="scard"),
    pytest.param(
        lambda s: s.sismember(b"s1", b"a"),
        CommandType.SISMEMBER,
        SIsMemberCommand.for_value(b"a").of(b"s1"),
        id="sismember",
    ),
    pytest.param(
        lambda s: s.sinter(PAIR), CommandType.SINTER, SInterCommand.for_keys(PAIR), id="sinter"
    ),
    pytest.param(
        lambda s: s.sinterstore(b"dst", PAIR),
        CommandType.SINTERSTORE,
        SInterStoreCommand.for_keys(PAIR).store_at(b"dst"),
        id="sinterstore",
    ),
    pytest.param(
        lambda s: s.sunion(PAIR), CommandType.SUNION, SUnionCommand.for_keys(PAIR), id="sunion"
    ),
    pytest.param(
        lambda s: s.sunionstore(b"dst", PAIR),
        CommandType.SUNIONSTORE,
        SUnionStoreCommand.for_keys(PAIR).store_at(b"dst"),
        id="sunionstore",
    ),
    pytest.param(lambda s: s.sdiff(PAIR), CommandType.SDIFF, SDiffCommand.for_keys(PAIR), id="sdiff"),
    pytest.param(
        lambda s: s.sdiffstore(b"dst", PAIR),
        CommandType.SDIFFSTORE,
        SDiffStoreCommand.for_keys(PAIR).store_at(b"dst"),
        id="sdiffstore",
    ),
    pytest.param(
        lambda s: s.smembers(b"s1"), CommandType.SMEMBERS, KeyCommand.for_key(b"s1"), id="smembers"
    ),
    pytest.param(
        lambda s: s.srandmembers(b"s1", 2),
        CommandType.SRANDMEMBER,
        SRandMembersCommand.value_count(2).from_(b"s1"),
        id="srandmembers",
    ),
]


class TestScalarEqualsBatch:
    """Scalar calls should match a one-element batch for the same command.

    Each side runs against its own freshly seeded store, so operations that
    change data can be compared on both their output and the resulting sets.
    """

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("scalar", "operation", "command"), SCALAR_CASES)
    async def test_scalar_matches_single_batch(self, scalar, operation, command) -> None:
        scalar_sets, scalar_store = await seeded_sets()
        batch_sets, batch_store = await seeded_sets()

        actual = await scalar(scalar_sets)
        expected = await first_output(batch_sets.execute(operation, [command]))

        assert normalize(actual) == normalize(expected)
        for key in (b"s1", b"s2", b"dst"):
            assert scalar_store.members(key) == batch_store.members(key)

    @pytest.mark.asyncio
    async def test_srandmember_is_first_of_count_one(self) -> None:
        """srandmember() should return the single element of a count-1 batch."""
        scalar_sets, _ = await seeded_sets()
        batch_sets, _ = await seeded_sets()
        command = SRandMembersCommand.value_count(1).from_(b"s1")

        [expected] = await first_output(batch_sets.srandmember_batch([command]))

        assert await scalar_sets.srandmember(b"s1") == expected


# =============================================================================
# Argument validation
# =============================================================================


class TestScalarValidation:
    """Missing arguments fail before anything reaches the store."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.sadd(None, [b"a"]),
            lambda s: s.sadd(b"s1", None),
            lambda s: s.srem(b"s1", None),
            lambda s: s.spop(None),
            lambda s: s.smove(None, b"d", b"a"),
            lambda s: s.smove(b"s", None, b"a"),
            lambda s: s.smove(b"s", b"d", None),
            lambda s: s.scard(None),
            lambda s: s.sismember(b"s1", None),
            lambda s: s.sinter(None),
            lambda s: s.sinterstore(None, [b"s1"]),
            lambda s: s.sunionstore(b"d", None),
            lambda s: s.sdiff(None),
            lambda s: s.smembers(None),
            lambda s: s.srandmember(None),
            lambda s: s.srandmembers(b"s1", None),
        ],
    )
    async def test_none_argument(self, sets: SetCommands, store: InMemorySetStore, call) -> None:
        with pytest.raises(InvalidArgumentError):
            await call(sets)

        assert store.recorded_commands == []

    @pytest.mark.asyncio
    async def test_none_inside_values(self, sets: SetCommands, store: InMemorySetStore) -> None:
        """A None member should be caught at command construction."""
        with pytest.raises(InvalidArgumentError):
            await sets.sadd(b"s1", [b"a", None])

        assert store.recorded_commands == []


class TestScalarFailures:
    """Store failures surface as the scalar call's own exception."""

    @pytest.mark.asyncio
    async def test_wrong_type(self, sets: SetCommands, store: InMemorySetStore) -> None:
        store.set_value(b"str", b"hello")

        with pytest.raises(CommandExecutionError) as exc_info:
            await sets.sadd(b"str", b"a")

        assert exc_info.value.code == "WRONGTYPE"

    @pytest.mark.asyncio
    async def test_empty_values(self, sets: SetCommands) -> None:
        with pytest.raises(CommandExecutionError):
            await sets.sadd(b"s1", [])


# =============================================================================
# Batch operations
# =============================================================================


class TestBatchOperations:
    """Batch methods yield typed, correlated responses."""

    @pytest.mark.asyncio
    async def test_sadd_batch(self, sets: SetCommands) -> None:
        """Each response should carry its command and count."""
        commands = [
            SAddCommand.for_values([b"a", b"b"]).to(b"s1"),
            SAddCommand.for_value(b"a").to(b"s2"),
        ]

        responses = [r async for r in sets.sadd_batch(commands)]
        by_key = {r.input.key: r for r in responses}

        assert all(isinstance(r, NumericResponse) for r in responses)
        assert by_key[b"s1"].output == 2
        assert by_key[b"s2"].output == 1

    @pytest.mark.asyncio
    async def test_smove_batch_mixed_validity(self, sets: SetCommands) -> None:
        """An incomplete move should fail alone while the others run."""
        await sets.sadd(b"s1", [b"a", b"b"])
        good = SMoveCommand.for_value(b"a").from_(b"s1").to(b"s2")
        no_destination = SMoveCommand.for_value(b"b").from_(b"s1")

        responses = [r async for r in sets.smove_batch([no_destination, good])]
        by_value = {r.input.value: r for r in responses}

        assert isinstance(by_value[b"a"], BooleanResponse)
        assert by_value[b"a"].output is True
        assert by_value[b"b"].code == "INVALID_ARGUMENT"
        assert sorted(await sets.smembers(b"s1")) == [b"b"]

    @pytest.mark.asyncio
    async def test_spop_batch(self, sets: SetCommands) -> None:
        await sets.sadd(b"s1", b"a")

        responses = [r async for r in sets.spop_batch([KeyCommand.for_key(b"s1"), KeyCommand.for_key(b"s9")])]
        outputs = sorted((r.output for r in responses), key=lambda v: v or b"")

        assert all(isinstance(r, ValueResponse) for r in responses)
        assert outputs == [None, b"a"]

    @pytest.mark.asyncio
    async def test_srandmember_batch(self, sets: SetCommands) -> None:
        await sets.sadd(b"s1", [b"a", b"b", b"c"])
        commands = [
            SRandMembersCommand.single_value().from_(b"s1"),
            SRandMembersCommand.value_count(2).from_(b"s1"),
        ]

        responses = [r async for r in sets.srandmember_batch(commands)]
        sizes = {r.input.count: len(r.output) for r in responses}

        assert all(isinstance(r, MultiValueResponse) for r in responses)
        assert sizes == {None: 1, 2: 2}

    @pytest.mark.asyncio
    async def test_generic_execute(self, sets: SetCommands) -> None:
        """execute() should run any operation by name."""
        await sets.sadd(b"s1", b"a")

        assert await first_output(sets.execute("SCARD", [KeyCommand.for_key(b"s1")])) == 1


class TestClientLifecycle:
    """Test client construction and context management."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_executor(self) -> None:
        """Leaving the context should close executors that support it."""

        class ClosingStore(InMemorySetStore):
            closed = False

            async def aclose(self) -> None:
                self.closed = True

        store = ClosingStore()
        async with SetCommands(store) as sets:
            await sets.sadd(b"s1", b"a")

        assert store.closed is True

    @pytest.mark.asyncio
    async def test_context_manager_without_aclose(self) -> None:
        """Executors without aclose() should be left alone."""
        async with SetCommands(InMemorySetStore()) as sets:
            assert await sets.scard(b"s1") == 0

    def test_exposes_handler_and_executor(self, store: InMemorySetStore) -> None:
        sets = SetCommands(store)

        assert sets.executor is store
        assert sets.handler.executor is store
