"""Integrity data models — per-file verdicts and discovery hits."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from drift_toolkit.config.models import Severity
from drift_toolkit.errors import ErrorKind


class IntegrityStatus(enum.Enum):
    """Verdict for one protected file."""

    MATCH = "match"
    DRIFT = "drift"
    MISSING = "missing"
    ERROR = "error"


@dataclass(frozen=True)
class IntegrityResult:
    """Outcome of comparing one protected file with its approved baseline."""

    file: str
    status: IntegrityStatus
    severity: Severity
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def is_violation(self) -> bool:
        return self.status is not IntegrityStatus.MATCH


@dataclass(frozen=True)
class DiscoveryResult:
    """An unprotected file matching a discovery pattern."""

    file: str
    pattern: str
    suggestion: str
