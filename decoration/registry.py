"""
Decoration - Component Registry.

============================================================
RESPONSIBILITY
============================================================
Static mapping from a configuration "type" discriminator to a
factory producing an activation unit.

- Populated once at startup, read-only afterwards
- Unknown discriminators resolve to None (never an error)
- Duplicate registration overwrites silently

============================================================
"""

from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Protocol
import logging
import threading

from .sources import ConfigSource

if TYPE_CHECKING:
    from core.context import RuntimeContext


# ============================================================
# ACTIVATION UNIT PROTOCOL
# ============================================================

class ActivationUnit(Protocol):
    """Protocol that all activation units implement."""

    def configure(self, context: "RuntimeContext", section: ConfigSource) -> None:
        """Wire the unit into the runtime context from its section."""
        ...


UnitFactory = Callable[[], ActivationUnit]


# ============================================================
# COMPONENT REGISTRY
# ============================================================

class ComponentRegistry:
    """Discriminator -> factory lookup table."""

    def __init__(self) -> None:
        self._factories: Dict[str, UnitFactory] = {}
        self._logger = logging.getLogger(__name__)

    def register(self, discriminator: str, factory: UnitFactory) -> None:
        """
        Register a factory for a discriminator.

        Args:
            discriminator: Value of the section "type" key
            factory: Zero-argument callable returning a unit
        """
        if discriminator in self._factories:
            self._logger.debug(f"Replacing factory for type: {discriminator}")
        self._factories[discriminator] = factory
        self._logger.debug(f"Registered component type: {discriminator}")

    def resolve(self, discriminator: Optional[str]) -> Optional[UnitFactory]:
        """Get the factory for a discriminator, None if unknown."""
        if discriminator is None:
            return None
        return self._factories.get(discriminator)

    def types(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, discriminator: object) -> bool:
        return discriminator in self._factories

    def __len__(self) -> int:
        return len(self._factories)


# ============================================================
# DEFAULT REGISTRY
# ============================================================

def create_default_registry() -> ComponentRegistry:
    """Registry with every built-in component type."""
    from .units import BikeRentalUnit, RealTimeAlertsUnit, StopTimeUpdaterUnit

    registry = ComponentRegistry()
    registry.register("bike-rental", BikeRentalUnit)
    registry.register("stop-time-updater", StopTimeUpdaterUnit)
    registry.register("real-time-alerts", RealTimeAlertsUnit)
    return registry


_default_registry: Optional[ComponentRegistry] = None
_default_lock = threading.Lock()


def get_default_registry() -> ComponentRegistry:
    """Get the process-wide default registry (built on first use)."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = create_default_registry()
        return _default_registry


__all__ = [
    "ActivationUnit",
    "UnitFactory",
    "ComponentRegistry",
    "create_default_registry",
    "get_default_registry",
]
