"""
Core Module Package.

This package contains the shared infrastructure the decoration
layer and its activation units depend on.

Components:
- clock: Unified time abstraction
- exceptions: Custom exception hierarchy
- scheduler: Periodic task scheduler
- services: Shutdown coordinator, embedded config, feed store
- context: Runtime context holding the services
"""

from .context import RuntimeContext
from .scheduler import PeriodicScheduler, PeriodicTask
from .services import (
    EmbeddedConfigService,
    FeedSnapshot,
    FeedStore,
    ShutdownCoordinator,
)

__all__ = [
    "RuntimeContext",
    "PeriodicScheduler",
    "PeriodicTask",
    "EmbeddedConfigService",
    "FeedSnapshot",
    "FeedStore",
    "ShutdownCoordinator",
]
