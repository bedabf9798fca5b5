"""Scanner data models — scan context, per-scan results."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from drift_toolkit.config.models import Severity


class ScanStatus(enum.Enum):
    """Final state of a scan."""

    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


@dataclass(frozen=True)
class ScanContext:
    """Repository facts that gate which scans apply."""

    tier: str | None = None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan definition against one repository."""

    scan: str
    status: ScanStatus
    exit_code: int | None
    stdout: str
    stderr: str
    severity: Severity
    duration_ms: int = 0
    skip_reason: str = ""
    timed_out: bool = False
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.status is ScanStatus.FAIL
