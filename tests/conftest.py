"""
Shared fixtures for decoration tests.

Provides a recording unit factory so tests can observe which
sections were instantiated and configured, in which order.
"""

from typing import Callable, List, Optional, Tuple

import pytest

from core.context import RuntimeContext
from core.services import EmbeddedConfigService
from decoration.registry import ComponentRegistry
from decoration.sources import PropertiesSource


# =============================================================
# RECORDING UNITS
# =============================================================

class UnitRecorder:
    """Collects what recording units were asked to do."""

    def __init__(self) -> None:
        self.created: List[str] = []
        self.configured: List[Tuple[str, str, Optional[str]]] = []

    def factory(
        self,
        component_type: str,
        fail: bool = False,
        fail_on_create: bool = False,
        schedule: bool = False,
    ) -> Callable[[], "RecordingUnit"]:
        def create() -> RecordingUnit:
            if fail_on_create:
                raise RuntimeError(f"cannot create {component_type}")
            self.created.append(component_type)
            return RecordingUnit(self, component_type, fail=fail, schedule=schedule)

        create.__name__ = f"create_{component_type.replace('-', '_')}"
        return create

    @property
    def configured_names(self) -> List[str]:
        return [name for _, name, _ in self.configured]


class RecordingUnit:
    """Activation unit that records configure calls."""

    def __init__(self, recorder: UnitRecorder, component_type: str, fail: bool, schedule: bool):
        self.recorder = recorder
        self.component_type = component_type
        self.fail = fail
        self.schedule = schedule

    def configure(self, context, section) -> None:
        self.recorder.configured.append(
            (self.component_type, section.name, section.get("marker"))
        )
        if self.fail:
            raise ValueError(f"bad options in {section.name}")
        if self.schedule:
            scheduler = context.get_periodic_scheduler(create=True)
            scheduler.add_task(section.name, lambda: None, 3600, initial_delay_seconds=3600)


# =============================================================
# FIXTURES
# =============================================================

@pytest.fixture
def recorder() -> UnitRecorder:
    return UnitRecorder()


@pytest.fixture
def registry(recorder) -> ComponentRegistry:
    """Registry where every type records into the recorder."""
    registry = ComponentRegistry()
    registry.register("bike-rental", recorder.factory("bike-rental"))
    registry.register("stop-time-updater", recorder.factory("stop-time-updater"))
    registry.register("real-time-alerts", recorder.factory("real-time-alerts"))
    registry.register("broken", recorder.factory("broken", fail=True))
    registry.register("exploding", recorder.factory("exploding", fail_on_create=True))
    registry.register("scheduled", recorder.factory("scheduled", schedule=True))
    return registry


@pytest.fixture
def context():
    """Runtime context whose scheduler is stopped after the test."""
    ctx = RuntimeContext()
    yield ctx
    scheduler = ctx.get_periodic_scheduler()
    if scheduler is not None:
        scheduler.stop()


def _make_source(**sections) -> PropertiesSource:
    return PropertiesSource.from_mapping(sections)


def _embed(context: RuntimeContext, **sections) -> None:
    flat = _make_source(**sections).to_dict()
    context.put_embedded_config(EmbeddedConfigService(flat))


@pytest.fixture
def make_source():
    """Build a source from keyword sections: make_source(A={"type": "x"})."""
    return _make_source


@pytest.fixture
def embed():
    """Install an embedded configuration built from keyword sections."""
    return _embed
