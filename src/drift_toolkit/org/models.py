"""Organization scan models — options, per-repo outcomes and the summary."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from drift_toolkit.constants import CONCURRENCY, DEFAULTS
from drift_toolkit.errors import ErrorKind
from drift_toolkit.scanner.engine import DriftResults


class RepoStatus(enum.Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class OrgScanOptions:
    """How an organization scan selects and treats repositories."""

    config_repo: str = DEFAULTS.config_repo
    all: bool = False
    since_hours: int = DEFAULTS.since_hours
    repo_filter: str | None = None
    exclude: tuple[str, ...] = ()
    dry_run: bool = False
    concurrency: int = CONCURRENCY.max_repos


@dataclass
class RepoScanResult:
    """Outcome for one repository of the organization."""

    repo: str
    status: RepoStatus
    reason: str = ""
    results: DriftResults | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    issue: str | None = None


@dataclass
class OrgScanSummary:
    """Counts over every candidate repository.

    ``total_repos == scanned_repos + skipped_repos`` and
    ``scanned_repos == passed_repos + failed_repos``.
    """

    organization: str
    config_repo: str
    total_repos: int = 0
    scanned_repos: int = 0
    skipped_repos: int = 0
    passed_repos: int = 0
    failed_repos: int = 0

    def record(self, status: RepoStatus) -> None:
        self.total_repos += 1
        if status is RepoStatus.SKIPPED:
            self.skipped_repos += 1
            return
        self.scanned_repos += 1
        if status is RepoStatus.PASSED:
            self.passed_repos += 1
        else:
            self.failed_repos += 1


@dataclass
class OrgScanResults:
    summary: OrgScanSummary
    repos: list[RepoScanResult] = field(default_factory=list)
    error: ErrorKind | None = None
    error_message: str = ""

    @property
    def has_failures(self) -> bool:
        return self.error is not None or self.summary.failed_repos > 0
