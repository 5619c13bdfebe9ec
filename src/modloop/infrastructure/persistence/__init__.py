"""
Persistence adapters for sessions, checkpoints and plans.
"""

from modloop.infrastructure.persistence.checkpoint import (
    NullCheckpointSink,
    SessionCheckpointSink,
)
from modloop.infrastructure.persistence.filesystem import (
    FilesystemPlanStore,
    FilesystemSessionManager,
)
from modloop.infrastructure.persistence.memory import (
    InMemoryPlanStore,
    InMemorySessionManager,
)
from modloop.infrastructure.persistence.paths import StoragePaths

__all__ = [
    "FilesystemPlanStore",
    "FilesystemSessionManager",
    "InMemoryPlanStore",
    "InMemorySessionManager",
    "NullCheckpointSink",
    "SessionCheckpointSink",
    "StoragePaths",
]
