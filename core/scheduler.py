"""
Core Module - Periodic Scheduler.

============================================================
RESPONSIBILITY
============================================================
Runs periodic tasks registered by activation units.

- One daemon worker thread per task
- Per-run failure isolation (a failing run never kills the task)
- Idempotent stop

============================================================
LIFECYCLE
============================================================
A scheduler is created on demand in the runtime context during an
activation pass. If nothing registered a task by the end of the
pass, the decorator drops it again. On shutdown it is stopped; a
stopped scheduler refuses new tasks.

Stopping does not interrupt a run that is already in progress.

============================================================
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional
import logging
import threading
import time

from .clock import ClockFactory, ClockProtocol
from .exceptions import ErrorClassification, SchedulerError, classify_exception


logger = logging.getLogger(__name__)


TaskAction = Callable[[], None]


# ============================================================
# TASK
# ============================================================

@dataclass
class PeriodicTask:
    """A registered periodic task and its run statistics."""

    name: str
    action: TaskAction
    frequency_seconds: float
    initial_delay_seconds: float = 0.0
    run_count: int = 0
    failure_count: int = 0
    last_run_at: Optional[datetime] = None
    last_duration_seconds: Optional[float] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "frequency_seconds": self.frequency_seconds,
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_duration_seconds": self.last_duration_seconds,
            "last_error": self.last_error,
        }


# ============================================================
# SCHEDULER
# ============================================================

class PeriodicScheduler:
    """
    Thread-based periodic task runner.

    Multiple activation units may add tasks during the same pass,
    so every operation is guarded by a re-entrant lock.
    """

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self._clock = clock
        self._tasks: Dict[str, PeriodicTask] = {}
        self._threads: Dict[str, threading.Thread] = {}
        self._stop_event = threading.Event()
        self._lock = threading.RLock()
        self._stopped = False

    # --------------------------------------------------------
    # Registration
    # --------------------------------------------------------

    def add_task(
        self,
        name: str,
        action: TaskAction,
        frequency_seconds: float,
        initial_delay_seconds: float = 0.0,
    ) -> PeriodicTask:
        """
        Register a task and start its worker.

        Args:
            name: Unique task name
            action: Zero-argument callable run on every tick
            frequency_seconds: Delay between two runs
            initial_delay_seconds: Delay before the first run

        Returns:
            The registered task

        Raises:
            SchedulerError: Scheduler stopped, duplicate name or bad frequency
        """
        if frequency_seconds <= 0:
            raise SchedulerError(
                message=f"Frequency must be positive, got {frequency_seconds}",
                task_name=name,
            )

        with self._lock:
            if self._stopped:
                raise SchedulerError(
                    message="Cannot add a task to a stopped scheduler",
                    task_name=name,
                )
            if name in self._tasks:
                raise SchedulerError(
                    message=f"Task already registered: {name}",
                    task_name=name,
                )

            task = PeriodicTask(
                name=name,
                action=action,
                frequency_seconds=frequency_seconds,
                initial_delay_seconds=max(0.0, initial_delay_seconds),
            )
            thread = threading.Thread(
                target=self._run_loop,
                args=(task,),
                name=f"periodic-{name}",
                daemon=True,
            )
            self._tasks[name] = task
            self._threads[name] = thread
            thread.start()

        logger.info(
            f"Scheduled task '{name}' every {frequency_seconds}s "
            f"(initial delay {task.initial_delay_seconds}s)"
        )
        return task

    # --------------------------------------------------------
    # Queries
    # --------------------------------------------------------

    def size(self) -> int:
        """Number of registered tasks."""
        with self._lock:
            return len(self._tasks)

    def __len__(self) -> int:
        return self.size()

    def task_names(self) -> List[str]:
        with self._lock:
            return list(self._tasks)

    def get_task(self, name: str) -> Optional[PeriodicTask]:
        with self._lock:
            return self._tasks.get(name)

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    # --------------------------------------------------------
    # Execution
    # --------------------------------------------------------

    def run_now(self, name: str) -> bool:
        """
        Run a task once on the calling thread.

        Returns:
            True if the run succeeded
        """
        task = self.get_task(name)
        if task is None:
            raise SchedulerError(message=f"Unknown task: {name}", task_name=name)
        return self._execute(task)

    def _run_loop(self, task: PeriodicTask) -> None:
        if task.initial_delay_seconds and self._stop_event.wait(task.initial_delay_seconds):
            return

        while not self._stop_event.is_set():
            self._execute(task)
            if self._stop_event.wait(task.frequency_seconds):
                break

    def _execute(self, task: PeriodicTask) -> bool:
        clock = self._clock or ClockFactory.get_clock()
        started = clock.monotonic()
        error: Optional[Exception] = None
        try:
            task.action()
        except Exception as e:
            error = e
            if classify_exception(e) is ErrorClassification.TRANSIENT:
                logger.warning(f"Periodic task '{task.name}' failed, will retry: {e}")
            else:
                logger.error(f"Periodic task '{task.name}' failed: {e}", exc_info=True)

        # The action runs unlocked; only the statistics update is serialized.
        with self._lock:
            task.run_count += 1
            task.last_run_at = clock.now()
            task.last_duration_seconds = clock.monotonic() - started
            if error is None:
                task.last_error = None
            else:
                task.failure_count += 1
                task.last_error = f"{type(error).__name__}: {error}"

        return error is None

    # --------------------------------------------------------
    # Shutdown
    # --------------------------------------------------------

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop all workers.

        Args:
            timeout: Seconds to wait for workers to exit (None = don't wait)
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._stop_event.set()
            threads = list(self._threads.values())

        if not timeout:
            return

        deadline = time.monotonic() + timeout
        for thread in threads:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            thread.join(remaining)

        alive = [t.name for t in threads if t.is_alive()]
        if alive:
            logger.warning(f"Workers still running after {timeout}s: {', '.join(alive)}")


__all__ = [
    "TaskAction",
    "PeriodicTask",
    "PeriodicScheduler",
]
