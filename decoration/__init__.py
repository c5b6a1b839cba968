"""
Decoration Package - Configuration-Driven Component Activation.

============================================================
PACKAGE OVERVIEW
============================================================
Turns declarative configuration into live subsystems registered
in a runtime context, without hard-wiring them.

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |                   GraphDecorator                    |
    |-----------------------------------------------------|
    |  Sources   | main + embedded, first-seen-wins       |
    |  Registry  | type discriminator -> unit factory     |
    |  Units     | configure(context, section)            |
    |  Report    | one outcome per section                |
    +-----------------------------------------------------+

============================================================
QUICK START
============================================================
Command line usage::

    python app.py --config decorators.yaml
    python app.py --list-types

Programmatic usage::

    from core import RuntimeContext
    from decoration import GraphDecorator, load_source

    context = RuntimeContext()
    decorator = GraphDecorator()

    report = decorator.activate(context, load_source("decorators.yaml"))
    for result in report.failed:
        print(result.name, result.error)

    ...

    decorator.deactivate(context)

============================================================
EXPORTS
============================================================
"""

# ============================================================
# Models
# ============================================================
from decoration.models import (
    SectionOutcome,
    SectionResult,
    ActivationReport,
)

# ============================================================
# Sources
# ============================================================
from decoration.sources import (
    ConfigSource,
    PropertiesSource,
    FileSource,
    flatten_mapping,
    read_properties,
    load_source,
)

# ============================================================
# Registry
# ============================================================
from decoration.registry import (
    ActivationUnit,
    ComponentRegistry,
    create_default_registry,
    get_default_registry,
)

# ============================================================
# Core
# ============================================================
from decoration.config import DecorationConfig
from decoration.core import (
    GraphDecorator,
    create_decorator,
    setup_logging,
)

__version__ = "1.0.0"

__all__ = [
    # Models
    "SectionOutcome",
    "SectionResult",
    "ActivationReport",

    # Sources
    "ConfigSource",
    "PropertiesSource",
    "FileSource",
    "flatten_mapping",
    "read_properties",
    "load_source",

    # Registry
    "ActivationUnit",
    "ComponentRegistry",
    "create_default_registry",
    "get_default_registry",

    # Core
    "DecorationConfig",
    "GraphDecorator",
    "create_decorator",
    "setup_logging",
]
