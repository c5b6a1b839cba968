"""
Core Module - Shared Services.

============================================================
RESPONSIBILITY
============================================================
Services that live in the runtime context next to the
periodic scheduler:

- ShutdownCoordinator   : cleanup hooks run on deactivation
- EmbeddedConfigService : configuration shipped with the host data
- FeedStore             : latest snapshot of every polled feed

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging
import threading

from .clock import ClockFactory, ClockProtocol

if TYPE_CHECKING:
    from .context import RuntimeContext


logger = logging.getLogger(__name__)


ShutdownHook = Callable[["RuntimeContext"], None]


# ============================================================
# SHUTDOWN COORDINATOR
# ============================================================

class ShutdownCoordinator:
    """
    Collects cleanup hooks and runs them once on shutdown.

    Hooks run in reverse registration order. A failing hook is
    logged and does not stop the remaining hooks.
    """

    def __init__(self) -> None:
        self._hooks: List[Tuple[str, ShutdownHook]] = []
        self._lock = threading.RLock()
        self._done = False

    def add_hook(self, name: str, hook: ShutdownHook) -> None:
        with self._lock:
            self._hooks.append((name, hook))
        logger.debug(f"Registered shutdown hook: {name}")

    def hook_names(self) -> List[str]:
        with self._lock:
            return [name for name, _ in self._hooks]

    def __len__(self) -> int:
        with self._lock:
            return len(self._hooks)

    def shutdown(self, context: "RuntimeContext") -> List[str]:
        """
        Run all hooks.

        Returns:
            Names of the hooks that failed
        """
        with self._lock:
            if self._done:
                return []
            self._done = True
            hooks = list(reversed(self._hooks))

        failed = []
        for name, hook in hooks:
            try:
                hook(context)
                logger.info(f"Shutdown hook completed: {name}")
            except Exception as e:
                logger.error(f"Shutdown hook {name} failed: {e}", exc_info=True)
                failed.append(name)
        return failed


# ============================================================
# EMBEDDED CONFIGURATION
# ============================================================

class EmbeddedConfigService:
    """Flat key/value configuration embedded in the host data."""

    def __init__(self, properties: Optional[Mapping[str, str]] = None) -> None:
        self._properties = dict(properties or {})

    def get_properties(self) -> Dict[str, str]:
        return dict(self._properties)

    def __len__(self) -> int:
        return len(self._properties)


# ============================================================
# FEED STORE
# ============================================================

@dataclass
class FeedSnapshot:
    """Latest payload fetched for a feed."""

    name: str
    payload: Any
    fetched_at: datetime
    source_url: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)


class FeedStore:
    """Thread-safe latest-snapshot store, written by scheduler workers."""

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self._clock = clock
        self._snapshots: Dict[str, FeedSnapshot] = {}
        self._lock = threading.RLock()

    def update(
        self,
        name: str,
        payload: Any,
        source_url: Optional[str] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> FeedSnapshot:
        clock = self._clock or ClockFactory.get_clock()
        snapshot = FeedSnapshot(
            name=name,
            payload=payload,
            fetched_at=clock.now(),
            source_url=source_url,
            attributes=dict(attributes or {}),
        )
        with self._lock:
            self._snapshots[name] = snapshot
        return snapshot

    def get(self, name: str) -> Optional[FeedSnapshot]:
        with self._lock:
            return self._snapshots.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._snapshots)

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)


__all__ = [
    "ShutdownHook",
    "ShutdownCoordinator",
    "EmbeddedConfigService",
    "FeedSnapshot",
    "FeedStore",
]
