"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Exception hierarchy of the decoration layer.

Only BackingStoreError ends an activation pass. Everything a
single unit raises is contained by the decorator and recorded
against its section.

============================================================
EXCEPTION HIERARCHY
============================================================
DecorationException (base)
├── ConfigurationError
│   ├── MissingConfigError     (unit: required key absent)
│   ├── InvalidConfigError     (unit: value out of range / wrong type)
│   └── BackingStoreError      (source unreadable, pass aborted)
├── OrchestrationError
│   ├── ActivationError        (one section failed)
│   └── ShutdownError          (a teardown step failed)
└── SchedulerError             (scheduler misuse)

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY / CLASSIFICATION
# ============================================================

class Severity(Enum):
    """How much of the host is affected."""

    LOW = "low"
    """Nothing lost."""

    MEDIUM = "medium"
    """A teardown step or a single run was lost."""

    HIGH = "high"
    """A component is not running."""

    CRITICAL = "critical"
    """No component of the pass could be activated."""


class ErrorClassification(Enum):
    """Whether retrying can help."""

    RECOVERABLE = "recoverable"
    """Contained; the rest of the pass or task goes on."""

    TRANSIENT = "transient"
    """Likely to succeed on the next run (network, timeouts)."""

    NON_RECOVERABLE = "non_recoverable"
    """Needs a configuration change."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class DecorationException(Exception):
    """
    Base exception for all decoration errors.

    Carries a severity, a classification, a context dict for the
    log line and the underlying cause, if any.
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.classification = classification or self.default_classification
        self.context: Dict[str, Any] = dict(context or {})
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause is not None:
            self.context.setdefault("cause_type", type(cause).__name__)
            self.context.setdefault("cause_message", str(cause))

    @property
    def is_recoverable(self) -> bool:
        return self.classification is not ErrorClassification.NON_RECOVERABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "context": dict(self.context),
            "cause": str(self.cause) if self.cause is not None else None,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_log_format(self) -> str:
        """One-line form: [SEVERITY] Type: message | k=v, k=v"""
        line = f"[{self.severity.name}] {type(self).__name__}: {self.message}"
        if self.context:
            line += " | " + ", ".join(f"{k}={v}" for k, v in self.context.items())
        return line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(DecorationException):
    """A section or source cannot be used as configured."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        section: Optional[str] = None,
        key: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", None) or {}
        if section:
            context["section"] = section
        if key:
            context["key"] = key

        super().__init__(message, context=context, **kwargs)
        self.section = section
        self.key = key


class MissingConfigError(ConfigurationError):
    """A required key is absent from a section."""

    def __init__(self, key: str, section: Optional[str] = None):
        where = f"section '{section}'" if section else "configuration"
        super().__init__(
            message=f"Missing required key '{key}' in {where}",
            section=section,
            key=key,
        )


class InvalidConfigError(ConfigurationError):
    """A key holds a value the unit cannot use."""

    def __init__(self, key: str, value: Any, reason: str, section: Optional[str] = None):
        super().__init__(
            message=f"Invalid value for '{key}': {value!r} ({reason})",
            section=section,
            key=key,
            context={"value": str(value)[:100], "reason": reason},
        )
        self.value = value
        self.reason = reason


class BackingStoreError(ConfigurationError):
    """
    The storage behind a configuration source cannot be read.

    The only error that aborts a whole activation pass.
    """

    default_severity = Severity.CRITICAL

    def __init__(self, message: str, location: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", None) or {}
        if location:
            context["location"] = location

        super().__init__(message, context=context, **kwargs)
        self.location = location


# ============================================================
# ORCHESTRATION ERRORS
# ============================================================

class OrchestrationError(DecorationException):
    """Raised around the activation and shutdown passes."""

    default_severity = Severity.HIGH


class ActivationError(OrchestrationError):
    """One section could not be activated; the pass went on."""

    def __init__(
        self,
        message: str,
        section: Optional[str] = None,
        component_type: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", None) or {}
        if section:
            context["section"] = section
        if component_type:
            context["component_type"] = component_type

        super().__init__(message, context=context, **kwargs)


class ShutdownError(OrchestrationError):
    """A teardown step failed; the remaining steps still ran."""

    default_severity = Severity.MEDIUM

    def __init__(self, message: str, step: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", None) or {}
        if step:
            context["step"] = step

        super().__init__(message, context=context, **kwargs)


# ============================================================
# SCHEDULER ERRORS
# ============================================================

class SchedulerError(DecorationException):
    """Stopped scheduler, duplicate task, bad frequency or unknown task."""

    def __init__(self, message: str, task_name: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", None) or {}
        if task_name:
            context["task_name"] = task_name

        super().__init__(message, context=context, **kwargs)


# ============================================================
# CLASSIFICATION
# ============================================================

def classify_exception(exc: BaseException) -> ErrorClassification:
    """
    Classify any exception.

    Decoration errors carry their own classification; network and
    timeout errors are transient; the rest is contained.
    """
    if isinstance(exc, DecorationException):
        return exc.classification

    if isinstance(exc, (ConnectionError, TimeoutError)):
        return ErrorClassification.TRANSIENT

    if isinstance(exc, MemoryError):
        return ErrorClassification.NON_RECOVERABLE

    return ErrorClassification.RECOVERABLE


__all__ = [
    "Severity",
    "ErrorClassification",
    "DecorationException",
    "ConfigurationError",
    "MissingConfigError",
    "InvalidConfigError",
    "BackingStoreError",
    "OrchestrationError",
    "ActivationError",
    "ShutdownError",
    "SchedulerError",
    "classify_exception",
]
