"""
Decoration - Core.

============================================================
RESPONSIBILITY
============================================================
GraphDecorator turns declarative configuration into live
subsystems registered in a runtime context, and tears them
down again.

- Merges an ordered list of configuration sources
- Maps every section to a registered component type
- Activates each section in isolation
- Stops what was started on deactivation

============================================================
PRECEDENCE
============================================================
Sources are applied in order: the main configuration first,
then the configuration embedded in the host data. The first
source defining a section name wins completely; later
definitions of that name are ignored, never merged. A name is
claimed as soon as it is seen, even if its type turns out to
be unknown.

============================================================
FAILURE CONTAINMENT
============================================================
- Unreadable backing store  -> pass aborted, logged, no rollback
- Missing / unknown type    -> section skipped, info log
- Unit instantiation/config -> section failed, logged, pass goes on

configure() calls are not bounded by a timeout: a hanging unit
blocks the whole pass.

============================================================
"""

import json
import logging
import sys
from typing import Optional, Sequence, Set, Tuple

from core.clock import ClockFactory, ClockProtocol
from core.context import RuntimeContext
from core.exceptions import ActivationError, BackingStoreError, ShutdownError

from .config import DecorationConfig
from .models import ActivationReport, SectionOutcome, SectionResult
from .registry import ComponentRegistry, get_default_registry
from .sources import ConfigSource, PropertiesSource


LabeledSource = Tuple[str, Optional[ConfigSource]]


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """
    Set up structured logging.

    Args:
        level: Log level
        log_format: Output format (json or text)
        correlation_id: Correlation ID for tracing

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
                "correlation_id": correlation_id or "",
            })
        )
    else:
        formatter = logging.Formatter(
            f"%(asctime)s | %(levelname)-8s | %(name)s | {correlation_id or ''} | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("decoration")


def _factory_name(factory: object) -> str:
    module = getattr(factory, "__module__", None)
    name = getattr(factory, "__qualname__", None) or type(factory).__name__
    return f"{module}.{name}" if module else name


# ============================================================
# GRAPH DECORATOR
# ============================================================

class GraphDecorator:
    """
    Activates configured components into a runtime context.

    Holds no state between calls besides the registry it was
    built with; every pass works on the context it is given.
    """

    def __init__(
        self,
        registry: Optional[ComponentRegistry] = None,
        join_timeout_seconds: float = 0.0,
        clock: Optional[ClockProtocol] = None,
    ):
        """
        Initialize decorator.

        Args:
            registry: Component registry (default: built-in types)
            join_timeout_seconds: Time to wait for scheduler workers on
                deactivation (0 = don't wait)
            clock: Clock used to stamp reports
        """
        self._registry = registry if registry is not None else get_default_registry()
        self._join_timeout_seconds = join_timeout_seconds
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    @property
    def registry(self) -> ComponentRegistry:
        return self._registry

    # --------------------------------------------------------
    # Activation
    # --------------------------------------------------------

    def activate(
        self,
        context: RuntimeContext,
        primary: Optional[ConfigSource],
    ) -> ActivationReport:
        """
        Activate every resolvable section of the main and embedded
        configurations.

        Args:
            context: Runtime context to wire units into
            primary: Main configuration (may be None)

        Returns:
            Report with one result per section encountered
        """
        scheduler = context.get_periodic_scheduler(create=True)

        embedded: Optional[ConfigSource] = None
        embedded_service = context.get_embedded_config()
        if embedded_service is not None:
            embedded = PropertiesSource(embedded_service.get_properties())

        sources = [("main", primary), ("embedded", embedded)]
        in_use = " ".join(f"[{label}]" for label, source in sources if source is not None)
        self._logger.info(f"Using configurations: {in_use or '(none)'}")

        report = self.apply_configuration(context, sources)

        if scheduler.size() == 0 and context.get_periodic_scheduler() is scheduler:
            context.put_periodic_scheduler(None)
            report.scheduler_removed = True
            self._logger.debug("No periodic task registered, scheduler removed")

        return report

    def apply_configuration(
        self,
        context: RuntimeContext,
        sources: Sequence[LabeledSource],
    ) -> ActivationReport:
        """
        Apply an ordered list of sources to a context.

        The order of the list matters: a section name already seen
        is never processed again.

        Args:
            context: Runtime context
            sources: (label, source) pairs; None sources are skipped

        Returns:
            Activation report
        """
        clock = self._clock or ClockFactory.get_clock()
        report = ActivationReport(started_at=clock.now())
        resolved: Set[str] = set()

        try:
            for label, source in sources:
                if source is None:
                    continue
                report.sources_used.append(label)

                for name in source.child_names():
                    if name in resolved:
                        report.add(SectionResult(name, label, SectionOutcome.SHADOWED))
                        continue
                    resolved.add(name)
                    report.add(
                        self._activate_section(context, label, name, source.section(name))
                    )
        except BackingStoreError as e:
            self._logger.error(f"Can't read configuration: {e.to_log_format()}", exc_info=True)
            report.aborted = True
            report.abort_error = str(e)

        report.completed_at = clock.now()
        self._logger.info(f"Activation pass complete | {report.summary()}")
        return report

    def _activate_section(
        self,
        context: RuntimeContext,
        label: str,
        name: str,
        section: ConfigSource,
    ) -> SectionResult:
        component_type = section.get("type", None)
        if component_type is None:
            self._logger.info(f"Section '{name}' has no type, skipped")
            return SectionResult(name, label, SectionOutcome.MISSING_TYPE)

        factory = self._registry.resolve(component_type)
        if factory is None:
            self._logger.info(f"Section '{name}' has unknown type '{component_type}', skipped")
            return SectionResult(
                name, label, SectionOutcome.UNKNOWN_TYPE, component_type=component_type
            )

        try:
            self._logger.info(
                f"Configuring section '{name}' of type '{component_type}' "
                f"({_factory_name(factory)})"
            )
            unit = factory()
            unit.configure(context, section)
        except Exception as e:
            error = ActivationError(
                message=f"Can't configure section: {name}",
                section=name,
                component_type=component_type,
                cause=e,
            )
            self._logger.error(error.to_log_format(), exc_info=True)
            return SectionResult(
                name,
                label,
                SectionOutcome.FAILED,
                component_type=component_type,
                error=str(e),
                error_type=type(e).__name__,
            )

        return SectionResult(
            name, label, SectionOutcome.ACTIVATED, component_type=component_type
        )

    # --------------------------------------------------------
    # Shutdown
    # --------------------------------------------------------

    def deactivate(self, context: RuntimeContext) -> None:
        """
        Tear down what activation registered.

        Shutdown coordinator first, then the periodic scheduler.
        On a context that was never activated this does nothing.
        """
        coordinator = context.get_shutdown_coordinator()
        if coordinator is not None:
            try:
                coordinator.shutdown(context)
            except Exception as e:
                error = ShutdownError(
                    message="Shutdown coordinator failed",
                    step="shutdown_coordinator",
                    cause=e,
                )
                self._logger.error(error.to_log_format(), exc_info=True)

        scheduler = context.get_periodic_scheduler()
        if scheduler is not None:
            self._logger.info(f"Stopping periodic scheduler with {scheduler.size()} tasks.")
            scheduler.stop(timeout=self._join_timeout_seconds or None)


# ============================================================
# FACTORY FUNCTION
# ============================================================

def create_decorator(
    config: Optional[DecorationConfig] = None,
    registry: Optional[ComponentRegistry] = None,
) -> GraphDecorator:
    """
    Factory function to create a decorator.

    Args:
        config: Configuration (or load from environment)
        registry: Component registry (default: built-in types)

    Returns:
        Configured GraphDecorator instance
    """
    if config is None:
        config = DecorationConfig.from_env()

    return GraphDecorator(
        registry=registry,
        join_timeout_seconds=config.join_timeout_seconds,
    )


__all__ = [
    "LabeledSource",
    "GraphDecorator",
    "create_decorator",
    "setup_logging",
]
