"""
Tests for the periodic scheduler.
"""

import logging
import threading
from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from core.exceptions import SchedulerError
from core.scheduler import PeriodicScheduler


@pytest.fixture
def scheduler():
    scheduler = PeriodicScheduler()
    yield scheduler
    scheduler.stop(timeout=1.0)


def _idle(scheduler: PeriodicScheduler, name: str, action=lambda: None):
    """Register a task whose worker stays asleep for the whole test."""
    return scheduler.add_task(name, action, 3600, initial_delay_seconds=3600)


# =============================================================
# TEST: Registration
# =============================================================

class TestRegistration:

    def test_add_task_increases_size(self, scheduler):
        _idle(scheduler, "bikes")
        _idle(scheduler, "alerts")

        assert scheduler.size() == 2
        assert len(scheduler) == 2
        assert scheduler.task_names() == ["bikes", "alerts"]

    def test_duplicate_name_is_rejected(self, scheduler):
        _idle(scheduler, "bikes")

        with pytest.raises(SchedulerError) as exc_info:
            _idle(scheduler, "bikes")

        assert exc_info.value.context["task_name"] == "bikes"
        assert scheduler.size() == 1

    @pytest.mark.parametrize("frequency", [0, -5])
    def test_non_positive_frequency_is_rejected(self, scheduler, frequency):
        with pytest.raises(SchedulerError):
            scheduler.add_task("bikes", lambda: None, frequency)

        assert scheduler.size() == 0

    def test_negative_initial_delay_is_clamped(self, scheduler):
        task = scheduler.add_task("bikes", lambda: None, 3600, initial_delay_seconds=-1)

        assert task.initial_delay_seconds == 0.0

    def test_stopped_scheduler_refuses_tasks(self, scheduler):
        scheduler.stop()

        with pytest.raises(SchedulerError):
            _idle(scheduler, "bikes")

    def test_worker_thread_is_named_after_task(self, scheduler):
        _idle(scheduler, "bikes")

        names = [t.name for t in threading.enumerate()]
        assert "periodic-bikes" in names


# =============================================================
# TEST: Execution
# =============================================================

class TestExecution:

    def test_worker_runs_task(self, scheduler):
        ran = threading.Event()

        scheduler.add_task("bikes", ran.set, 3600)

        assert ran.wait(timeout=5.0)

    def test_run_now_records_success(self):
        clock = MockClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        scheduler = PeriodicScheduler(clock=clock)
        calls = []
        _idle(scheduler, "bikes", action=lambda: calls.append(1))

        assert scheduler.run_now("bikes") is True

        task = scheduler.get_task("bikes")
        assert calls == [1]
        assert task.run_count == 1
        assert task.failure_count == 0
        assert task.last_run_at == clock.now()
        assert task.last_duration_seconds == 0.0
        scheduler.stop()

    def test_run_duration_uses_clock(self):
        clock = MockClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        scheduler = PeriodicScheduler(clock=clock)
        _idle(scheduler, "bikes", action=lambda: clock.advance(2.5))

        scheduler.run_now("bikes")

        task = scheduler.get_task("bikes")
        assert task.last_duration_seconds == 2.5
        assert task.last_run_at == datetime(2024, 1, 1, 0, 0, 2, 500000, tzinfo=timezone.utc)
        scheduler.stop()

    def test_failing_run_is_contained(self, scheduler):
        def action():
            raise ConnectionError("feed down")

        _idle(scheduler, "bikes", action=action)

        assert scheduler.run_now("bikes") is False
        assert scheduler.run_now("bikes") is False

        task = scheduler.get_task("bikes")
        assert task.run_count == 2
        assert task.failure_count == 2
        assert task.last_error == "ConnectionError: feed down"

    def test_transient_failure_logs_warning(self, scheduler, caplog):
        def action():
            raise ConnectionError("feed down")

        _idle(scheduler, "bikes", action=action)

        with caplog.at_level(logging.WARNING, logger="core.scheduler"):
            scheduler.run_now("bikes")

        assert [r.levelno for r in caplog.records if "failed" in r.getMessage()] == [logging.WARNING]

    def test_other_failure_logs_error(self, scheduler, caplog):
        def action():
            raise KeyError("stations")

        _idle(scheduler, "bikes", action=action)

        with caplog.at_level(logging.WARNING, logger="core.scheduler"):
            scheduler.run_now("bikes")

        assert [r.levelno for r in caplog.records if "failed" in r.getMessage()] == [logging.ERROR]

    def test_success_clears_last_error(self, scheduler):
        outcomes = [ValueError("bad"), None]

        def action():
            error = outcomes.pop(0)
            if error:
                raise error

        _idle(scheduler, "bikes", action=action)
        scheduler.run_now("bikes")
        scheduler.run_now("bikes")

        assert scheduler.get_task("bikes").last_error is None

    def test_concurrent_runs_keep_exact_counts(self, scheduler):
        calls = []
        calls_lock = threading.Lock()

        def action():
            with calls_lock:
                calls.append(None)
                fail = len(calls) % 2 == 0
            if fail:
                raise ValueError("every other run")

        _idle(scheduler, "bikes", action=action)
        threads = [
            threading.Thread(target=lambda: [scheduler.run_now("bikes") for _ in range(200)])
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        task = scheduler.get_task("bikes")
        assert task.run_count == 1600
        assert task.failure_count == 800

    def test_run_now_unknown_task(self, scheduler):
        with pytest.raises(SchedulerError):
            scheduler.run_now("missing")

    def test_task_to_dict(self, scheduler):
        task = _idle(scheduler, "bikes")

        data = task.to_dict()

        assert data["name"] == "bikes"
        assert data["frequency_seconds"] == 3600
        assert data["last_run_at"] is None


# =============================================================
# TEST: Stop
# =============================================================

class TestStop:

    def test_stop_ends_workers(self):
        scheduler = PeriodicScheduler()
        _idle(scheduler, "bikes")

        scheduler.stop(timeout=2.0)

        assert scheduler.is_stopped
        assert not scheduler._threads["bikes"].is_alive()

    def test_stop_is_idempotent(self, scheduler):
        _idle(scheduler, "bikes")

        scheduler.stop()
        scheduler.stop()

        assert scheduler.is_stopped
        assert scheduler.size() == 1

    def test_stop_without_tasks(self):
        scheduler = PeriodicScheduler()

        scheduler.stop(timeout=1.0)

        assert scheduler.is_stopped
