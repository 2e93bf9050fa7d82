"""Pytest configuration and shared fixtures."""

import random

import pytest

from setflow.protocol import BatchHandler, HandlerConfig
from setflow.sdk import InMemorySetStore, SetCommands


@pytest.fixture
def store() -> InMemorySetStore:
    """Empty in-memory store with a seeded random source."""
    return InMemorySetStore(rng=random.Random(1234))


@pytest.fixture
def handler(store: InMemorySetStore) -> BatchHandler:
    """Batch handler over the in-memory store."""
    return BatchHandler(store, HandlerConfig(max_in_flight=4, timeout=5.0))


@pytest.fixture
def sets(handler: BatchHandler) -> SetCommands:
    """Set commands client sharing the handler fixture."""
    return SetCommands(handler.executor, handler=handler)
