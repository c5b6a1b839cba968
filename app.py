#!/usr/bin/env python3
"""
Graph Decorator - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Loads the configured components, keeps them running and tears
them down on SIGINT/SIGTERM.

============================================================
USAGE
============================================================
Direct execution:
    python app.py --config decorators.yaml

One-shot check of a configuration:
    python app.py --config decorators.yaml --once

Environment-based configuration:
    DECORATION_CONFIG_PATH=decorators.yaml python app.py

============================================================
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from decoration.cli import main


if __name__ == "__main__":
    sys.exit(main())
