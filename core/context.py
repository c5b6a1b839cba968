"""
Core Module - Runtime Context.

============================================================
RESPONSIBILITY
============================================================
Host-owned, shared, mutable holder of runtime services.

The decorator borrows it per call; activation units read from it
and register services into it. Every service slot has a typed
getter/putter pair instead of an open type-keyed map, so the
available service set is known up front. An empty slot means the
capability is absent, which is a normal condition.

============================================================
SERVICES
============================================================
- periodic scheduler   (created on demand)
- shutdown coordinator (created on demand)
- embedded config      (provided by the host, never created)
- feed store           (created on demand)

============================================================
"""

from typing import Any, Callable, Dict, Optional, TypeVar
import threading

from .clock import ClockProtocol
from .scheduler import PeriodicScheduler
from .services import EmbeddedConfigService, FeedStore, ShutdownCoordinator


T = TypeVar("T")


class RuntimeContext:
    """Service holder shared between the host and activation units."""

    def __init__(
        self,
        embedded_config: Optional[EmbeddedConfigService] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._periodic_scheduler: Optional[PeriodicScheduler] = None
        self._shutdown_coordinator: Optional[ShutdownCoordinator] = None
        self._embedded_config: Optional[EmbeddedConfigService] = embedded_config
        self._feed_store: Optional[FeedStore] = None

    def _get_or_create(self, attr: str, create: bool, factory: Callable[[], T]) -> Optional[T]:
        with self._lock:
            service = getattr(self, attr)
            if service is None and create:
                service = factory()
                setattr(self, attr, service)
            return service

    # --------------------------------------------------------
    # Periodic scheduler
    # --------------------------------------------------------

    def get_periodic_scheduler(self, create: bool = False) -> Optional[PeriodicScheduler]:
        return self._get_or_create(
            "_periodic_scheduler", create, lambda: PeriodicScheduler(clock=self._clock)
        )

    def put_periodic_scheduler(self, scheduler: Optional[PeriodicScheduler]) -> None:
        with self._lock:
            self._periodic_scheduler = scheduler

    # --------------------------------------------------------
    # Shutdown coordinator
    # --------------------------------------------------------

    def get_shutdown_coordinator(self, create: bool = False) -> Optional[ShutdownCoordinator]:
        return self._get_or_create("_shutdown_coordinator", create, ShutdownCoordinator)

    def put_shutdown_coordinator(self, coordinator: Optional[ShutdownCoordinator]) -> None:
        with self._lock:
            self._shutdown_coordinator = coordinator

    # --------------------------------------------------------
    # Embedded configuration
    # --------------------------------------------------------

    def get_embedded_config(self) -> Optional[EmbeddedConfigService]:
        with self._lock:
            return self._embedded_config

    def put_embedded_config(self, service: Optional[EmbeddedConfigService]) -> None:
        with self._lock:
            self._embedded_config = service

    # --------------------------------------------------------
    # Feed store
    # --------------------------------------------------------

    def get_feed_store(self, create: bool = False) -> Optional[FeedStore]:
        return self._get_or_create("_feed_store", create, lambda: FeedStore(clock=self._clock))

    def put_feed_store(self, store: Optional[FeedStore]) -> None:
        with self._lock:
            self._feed_store = store

    # --------------------------------------------------------
    # Diagnostics
    # --------------------------------------------------------

    def services(self) -> Dict[str, Any]:
        """Snapshot of the services currently present."""
        with self._lock:
            present = {
                "periodic_scheduler": self._periodic_scheduler,
                "shutdown_coordinator": self._shutdown_coordinator,
                "embedded_config": self._embedded_config,
                "feed_store": self._feed_store,
            }
        return {name: service for name, service in present.items() if service is not None}


__all__ = ["RuntimeContext"]
