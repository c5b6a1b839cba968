"""
Decoration - Models.

============================================================
RESPONSIBILITY
============================================================
Data models describing the outcome of an activation pass.

- Per-section outcome
- Pass-level report (partial failure is an inspectable value)

============================================================
"""

from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


# ============================================================
# SECTION OUTCOME
# ============================================================

class SectionOutcome(Enum):
    """What happened to a section during an activation pass."""

    ACTIVATED = "activated"
    """Unit instantiated and configured."""

    FAILED = "failed"
    """Instantiation or configure raised; pass continued."""

    UNKNOWN_TYPE = "unknown_type"
    """The type discriminator is not registered."""

    MISSING_TYPE = "missing_type"
    """The section has no type key."""

    SHADOWED = "shadowed"
    """An earlier source already defined this section name."""

    @property
    def created_unit(self) -> bool:
        return self in (SectionOutcome.ACTIVATED, SectionOutcome.FAILED)


# ============================================================
# SECTION RESULT
# ============================================================

@dataclass
class SectionResult:
    """Result for one section of one source."""

    name: str
    source: str
    outcome: SectionOutcome
    component_type: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "outcome": self.outcome.value,
            "component_type": self.component_type,
            "error": self.error,
            "error_type": self.error_type,
        }


# ============================================================
# ACTIVATION REPORT
# ============================================================

@dataclass
class ActivationReport:
    """Result of a complete activation pass."""

    started_at: datetime
    completed_at: Optional[datetime] = None
    sources_used: List[str] = field(default_factory=list)
    results: List[SectionResult] = field(default_factory=list)
    aborted: bool = False
    abort_error: Optional[str] = None
    scheduler_removed: bool = False

    def add(self, result: SectionResult) -> None:
        self.results.append(result)

    def _with_outcome(self, *outcomes: SectionOutcome) -> List[SectionResult]:
        return [r for r in self.results if r.outcome in outcomes]

    @property
    def activated(self) -> List[SectionResult]:
        return self._with_outcome(SectionOutcome.ACTIVATED)

    @property
    def failed(self) -> List[SectionResult]:
        return self._with_outcome(SectionOutcome.FAILED)

    @property
    def skipped(self) -> List[SectionResult]:
        """Sections that produced no unit."""
        return self._with_outcome(
            SectionOutcome.UNKNOWN_TYPE,
            SectionOutcome.MISSING_TYPE,
            SectionOutcome.SHADOWED,
        )

    @property
    def success(self) -> bool:
        """True if the pass completed and no unit failed."""
        return not self.aborted and not self.failed

    def outcome_for(self, name: str) -> Optional[SectionResult]:
        """The winning (first) result recorded for a section name."""
        for result in self.results:
            if result.name == name:
                return result
        return None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def summary(self) -> str:
        return (
            f"activated={len(self.activated)} failed={len(self.failed)} "
            f"skipped={len(self.skipped)} aborted={self.aborted}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "sources_used": list(self.sources_used),
            "aborted": self.aborted,
            "abort_error": self.abort_error,
            "scheduler_removed": self.scheduler_removed,
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
        }


__all__ = [
    "SectionOutcome",
    "SectionResult",
    "ActivationReport",
]
