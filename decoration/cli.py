"""
Decoration - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line host for the decorator.

- Loads the main and embedded configuration files
- Activates the configured components
- Runs until SIGINT/SIGTERM, then deactivates

============================================================
USAGE
============================================================
python -m decoration.cli --config decorators.yaml
python -m decoration.cli -c decorators.properties --embedded-config embedded.yaml --once
python -m decoration.cli --list-types

============================================================
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from core.context import RuntimeContext
from core.exceptions import BackingStoreError
from core.services import EmbeddedConfigService

from .config import JOIN_TIMEOUT_ENV, LOG_FORMATS, LOG_LEVELS, DecorationConfig
from .core import create_decorator, setup_logging
from .models import ActivationReport
from .registry import ComponentRegistry, get_default_registry
from .sources import load_source, read_properties


__version__ = "1.0.0"


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="graph-decorator",
        description="Activate real-time components from configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration files:
  *.yaml / *.yml   nested mapping, one top-level key per section
  anything else    properties file, dotted keys (bikes.type=bike-rental)

Examples:
  %(prog)s --config decorators.yaml
  %(prog)s -c main.properties --embedded-config embedded.yaml --once
  %(prog)s --list-types
        """
    )

    # --------------------------------------------------------
    # Configuration Sources
    # --------------------------------------------------------
    source_group = parser.add_argument_group("Configuration Sources")

    source_group.add_argument(
        "--config", "-c",
        type=str,
        metavar="PATH",
        help="Main configuration file (takes precedence)",
    )

    source_group.add_argument(
        "--embedded-config",
        type=str,
        metavar="PATH",
        help="Embedded configuration file (used for sections the main file lacks)",
    )

    # --------------------------------------------------------
    # Execution Options
    # --------------------------------------------------------
    execution_group = parser.add_argument_group("Execution Options")

    execution_group.add_argument(
        "--once",
        action="store_true",
        help="Activate, print the report, deactivate and exit",
    )

    execution_group.add_argument(
        "--join-timeout",
        type=float,
        metavar="SECONDS",
        help="Wait for scheduler workers on shutdown (default: 0, don't wait)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=list(LOG_LEVELS),
        help="Logging level (default: INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=list(LOG_FORMATS),
        help="Logging format (default: text)",
    )

    # --------------------------------------------------------
    # Version/Info
    # --------------------------------------------------------
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--list-types",
        action="store_true",
        help="Show registered component types and exit",
    )

    return parser


# ============================================================
# CLI VALIDATION
# ============================================================

def validate_args(args: argparse.Namespace) -> List[str]:
    """
    Validate CLI arguments.

    Returns:
        List of validation errors
    """
    errors = []

    if args.join_timeout is not None and args.join_timeout < 0:
        errors.append("--join-timeout must not be negative")

    return errors


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> DecorationConfig:
    """Environment configuration overridden by explicit CLI arguments."""
    config = DecorationConfig.from_env()

    if args.config:
        config.config_path = args.config
    if args.embedded_config:
        config.embedded_config_path = args.embedded_config
    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format
    if args.join_timeout is not None:
        config.join_timeout_seconds = args.join_timeout
        config.env_errors.pop(JOIN_TIMEOUT_ENV, None)

    return config


def build_context(config: DecorationConfig) -> RuntimeContext:
    """
    Create the runtime context, with the embedded configuration if any.

    Raises:
        BackingStoreError: Embedded configuration file unreadable
    """
    context = RuntimeContext()
    if config.embedded_config_path:
        properties = read_properties(config.embedded_config_path)
        context.put_embedded_config(EmbeddedConfigService(properties))
    return context


# ============================================================
# DISPLAY
# ============================================================

def show_types(registry: ComponentRegistry) -> None:
    """Print registered component types."""
    print("\nRegistered component types")
    print("=" * 60)
    for i, component_type in enumerate(registry.types(), 1):
        factory = registry.resolve(component_type)
        print(f"  {i:2d}. {component_type:25s} - {getattr(factory, '__name__', factory)}")
    print()


def print_report(report: ActivationReport) -> None:
    """Print an activation report."""
    print()
    print("=" * 60)
    print("  ACTIVATION REPORT")
    print("=" * 60)
    print(f"  Sources:    {' '.join(report.sources_used) or '(none)'}")
    print(f"  Summary:    {report.summary()}")
    if report.aborted:
        print(f"  Aborted:    {report.abort_error}")
    print("-" * 60)
    for result in report.results:
        line = f"  [{result.outcome.value:12s}] {result.name:25s} ({result.source})"
        if result.component_type:
            line += f" type={result.component_type}"
        if result.error:
            line += f" error={result.error}"
        print(line)
    print("=" * 60)
    print()


# ============================================================
# RUN
# ============================================================

def run(
    config: DecorationConfig,
    once: bool = False,
    registry: Optional[ComponentRegistry] = None,
) -> int:
    """
    Activate, wait for a stop signal (unless once), deactivate.

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)
    decorator = create_decorator(config, registry)

    try:
        context = build_context(config)
    except BackingStoreError as e:
        logger.error(f"Can't read embedded configuration: {e.to_log_format()}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    primary = load_source(config.config_path) if config.config_path else None
    report = decorator.activate(context, primary)
    print_report(report)

    if once:
        decorator.deactivate(context)
        return 1 if report.aborted else 0

    stop_event = threading.Event()
    original_handlers = {}

    def _signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        original_handlers[sig] = signal.getsignal(sig)
        signal.signal(sig, _signal_handler)

    try:
        while not stop_event.wait(0.5):
            pass
    finally:
        decorator.deactivate(context)
        for sig, handler in original_handlers.items():
            signal.signal(sig, handler)

    return 0


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.list_types:
        show_types(get_default_registry())
        return 0

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    config = build_config(args)
    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    setup_logging(level=config.log_level, log_format=config.log_format)
    return run(config, once=args.once)


if __name__ == "__main__":
    sys.exit(main())
