"""
Decoration - Configuration.

============================================================
RESPONSIBILITY
============================================================
Process-level settings of the decorator host.

Configuration can be loaded from:
- Default values
- Environment variables (a .env file is honoured)
- CLI arguments (see decoration.cli)

Component options are NOT validated here; each activation unit
validates its own section.

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "text")

JOIN_TIMEOUT_ENV = "DECORATION_JOIN_TIMEOUT_SECONDS"


@dataclass
class DecorationConfig:
    """Configuration for the decorator host."""

    config_path: Optional[str] = None
    """Main configuration file (YAML or properties)."""

    embedded_config_path: Optional[str] = None
    """Configuration file standing for the host-embedded configuration."""

    log_level: str = "INFO"
    """Logging level."""

    log_format: str = "text"
    """Logging format (json or text)."""

    join_timeout_seconds: float = 0.0
    """Time to wait for scheduler workers on shutdown (0 = don't wait)."""

    env_errors: Dict[str, str] = field(default_factory=dict, compare=False, repr=False)
    """Unparseable environment values, by variable name."""

    @classmethod
    def from_env(cls) -> "DecorationConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - DECORATION_CONFIG_PATH
        - DECORATION_EMBEDDED_CONFIG_PATH
        - DECORATION_LOG_LEVEL
        - DECORATION_LOG_FORMAT
        - DECORATION_JOIN_TIMEOUT_SECONDS

        A value that cannot be parsed keeps the default and is
        reported by validate().
        """
        load_dotenv()

        config = cls(
            config_path=os.getenv("DECORATION_CONFIG_PATH") or None,
            embedded_config_path=os.getenv("DECORATION_EMBEDDED_CONFIG_PATH") or None,
            log_level=os.getenv("DECORATION_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("DECORATION_LOG_FORMAT", "text").lower(),
        )

        raw_timeout = os.getenv(JOIN_TIMEOUT_ENV, "").strip()
        if raw_timeout:
            try:
                config.join_timeout_seconds = float(raw_timeout)
            except ValueError:
                config.env_errors[JOIN_TIMEOUT_ENV] = (
                    f"{JOIN_TIMEOUT_ENV} must be a number, got {raw_timeout!r}"
                )

        return config

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = list(self.env_errors.values())

        if self.log_level not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        if self.join_timeout_seconds < 0:
            errors.append("join_timeout_seconds must not be negative")

        return errors


__all__ = [
    "LOG_LEVELS",
    "LOG_FORMATS",
    "JOIN_TIMEOUT_ENV",
    "DecorationConfig",
]
