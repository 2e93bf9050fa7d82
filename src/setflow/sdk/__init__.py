"""setflow SDK - client API for set operations.

Two pieces:
- SetCommands: scalar and batch entry points for every set operation
- InMemorySetStore: dict-backed executor for tests and local use
"""

from .client import SetCommands
from .memory import InMemorySetStore

__all__ = [
    "SetCommands",
    "InMemorySetStore",
]
