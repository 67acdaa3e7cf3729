"""State stores — durable keyed JSON shared across invocations."""

from salesagg.state.base import StateStore
from salesagg.state.factory import available_stores, get_state_store
from salesagg.state.memory_store import MemoryStateStore

__all__ = [
    "MemoryStateStore",
    "StateStore",
    "available_stores",
    "get_state_store",
]
