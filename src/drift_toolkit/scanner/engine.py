"""Drift engine — runs every check kind against one repository and builds a report."""

from __future__ import annotations

import enum
import logging
import time
import tomllib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from drift_toolkit.config.models import DriftConfig
from drift_toolkit.constants import FILE_PATTERNS, TIMEOUTS
from drift_toolkit.errors import GitError
from drift_toolkit.git.changes import (
    ChangeDetectionOptions,
    DependencyChangesDetection,
    detect_dependency_changes,
)
from drift_toolkit.git.client import GitCli, GitClient
from drift_toolkit.integrity.checker import check_all_integrity
from drift_toolkit.integrity.discovery import discover_files
from drift_toolkit.integrity.models import DiscoveryResult, IntegrityResult
from drift_toolkit.repo.metadata import (
    MetadataResult,
    ScannabilityResult,
    find_check_toml_files,
    get_repo_metadata,
    is_scannable_repo,
)
from drift_toolkit.scanner.models import ScanContext, ScanResult
from drift_toolkit.scanner.runner import run_all_scans

logger = logging.getLogger(__name__)


class CheckKind(enum.Enum):
    """Every kind of check the engine evaluates."""

    INTEGRITY = "integrity"
    DISCOVERY = "discovery"
    SCAN = "scan"
    DEPENDENCY = "dependency"


@dataclass
class DriftResults:
    """Per-repository drift report."""

    path: str
    metadata: MetadataResult = field(default_factory=MetadataResult)
    scannability: ScannabilityResult | None = None
    warnings: list[str] = field(default_factory=list)
    integrity: list[IntegrityResult] = field(default_factory=list)
    discovered: list[DiscoveryResult] = field(default_factory=list)
    scans: list[ScanResult] = field(default_factory=list)
    dependency_changes: DependencyChangesDetection | None = None
    duration: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def integrity_violations(self) -> list[IntegrityResult]:
        return [r for r in self.integrity if r.is_violation]

    @property
    def failed_scans(self) -> list[ScanResult]:
        return [r for r in self.scans if r.failed]

    @property
    def has_failures(self) -> bool:
        return bool(self.integrity_violations or self.failed_scans)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def summary(self) -> str:
        """One-line verdict. Never claims a clean pass while warnings exist."""
        if self.has_failures:
            parts = []
            if self.integrity_violations:
                parts.append(f"{len(self.integrity_violations)} integrity violation(s)")
            if self.failed_scans:
                parts.append(f"{len(self.failed_scans)} failed scan(s)")
            return "Drift detected: " + ", ".join(parts)
        if self.has_warnings:
            return f"No violations, {len(self.warnings)} warning(s)"
        return "All checks passed"


@dataclass
class _RepoContext:
    repo: Path
    config: DriftConfig
    git: GitClient
    base_commit: str | None
    target_commit: str
    scan_timeout_ms: int
    is_git: bool


def _evaluate_integrity(ctx: _RepoContext, results: DriftResults) -> None:
    results.integrity = check_all_integrity(
        ctx.config.integrity.protected, ctx.repo, ctx.config.approved_base
    )


def _evaluate_discovery(ctx: _RepoContext, results: DriftResults) -> None:
    protected = [check.file for check in ctx.config.integrity.protected]
    results.discovered = discover_files(ctx.config.integrity.discover, ctx.repo, protected)


def _evaluate_scans(ctx: _RepoContext, results: DriftResults) -> None:
    tier = results.metadata.metadata.tier if results.metadata.metadata else None
    results.scans = run_all_scans(
        ctx.config.scans,
        ctx.repo,
        ScanContext(tier=tier),
        default_timeout_ms=ctx.scan_timeout_ms,
    )


def _evaluate_dependencies(ctx: _RepoContext, results: DriftResults) -> None:
    if ctx.base_commit is None or not ctx.is_git:
        return
    try:
        results.dependency_changes = detect_dependency_changes(
            ctx.repo,
            ChangeDetectionOptions(ctx.base_commit, ctx.target_commit),
            git=ctx.git,
            dependencies=ctx.config.code.dependencies,
        )
    except GitError as e:
        logger.warning("Dependency change detection failed: %s", e)
        results.warnings.append(f"dependency changes unavailable: {e}")


_EVALUATORS: dict[CheckKind, Callable[[_RepoContext, DriftResults], None]] = {
    CheckKind.INTEGRITY: _evaluate_integrity,
    CheckKind.DISCOVERY: _evaluate_discovery,
    CheckKind.SCAN: _evaluate_scans,
    CheckKind.DEPENDENCY: _evaluate_dependencies,
}

_unhandled = set(CheckKind) - set(_EVALUATORS)
if _unhandled:
    raise RuntimeError(f"No evaluator for check kinds: {sorted(k.value for k in _unhandled)}")


class DriftEngine:
    """Runs all check kinds against a repository working tree."""

    def __init__(
        self,
        config: DriftConfig,
        git: GitClient | None = None,
        scan_timeout_ms: int = TIMEOUTS.scan_ms,
    ) -> None:
        self._config = config
        self._git = git or GitCli()
        self._scan_timeout_ms = scan_timeout_ms

    def scan(
        self,
        repo_path: str | Path,
        base_commit: str | None = None,
        target_commit: str = "HEAD",
    ) -> DriftResults:
        """Scan a repository and return its drift report."""
        repo = Path(repo_path).resolve()
        start = time.time()

        results = DriftResults(path=str(repo))
        results.metadata = get_repo_metadata(repo, self._config.schema)
        results.scannability = is_scannable_repo(repo)
        results.warnings.extend(self._collect_warnings(repo, results))

        ctx = _RepoContext(
            repo=repo,
            config=self._config,
            git=self._git,
            base_commit=base_commit,
            target_commit=target_commit,
            scan_timeout_ms=self._scan_timeout_ms,
            is_git=self._git.is_repo(repo),
        )
        if not ctx.is_git:
            results.warnings.append(f"not a git repository: {repo}")

        for kind in CheckKind:
            logger.debug("Evaluating %s checks in %s", kind.value, repo)
            _EVALUATORS[kind](ctx, results)

        results.duration = time.time() - start
        return results

    def _collect_warnings(self, repo: Path, results: DriftResults) -> list[str]:
        warnings = list(results.metadata.warnings)
        scannability = results.scannability
        if scannability is not None and not scannability.has_metadata:
            warnings.append(f"missing metadata: {FILE_PATTERNS.metadata[0]} not found")
        if scannability is not None and not scannability.has_check_toml:
            warnings.append(f"missing {FILE_PATTERNS.check_toml}: no check manifest at repository root")
        for rel in find_check_toml_files(repo):
            try:
                with open(repo / rel, "rb") as f:
                    tomllib.load(f)
            except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
                warnings.append(f"parse error: {rel}: {e}")
            except OSError as e:
                warnings.append(f"parse error: cannot read {rel}: {e}")
        return warnings


def scan_repository(
    repo_path: str | Path,
    config: DriftConfig,
    *,
    base_commit: str | None = None,
    git: GitClient | None = None,
    scan_timeout_ms: int = TIMEOUTS.scan_ms,
) -> DriftResults:
    """Convenience wrapper around :class:`DriftEngine`."""
    engine = DriftEngine(config, git=git, scan_timeout_ms=scan_timeout_ms)
    return engine.scan(repo_path, base_commit=base_commit)
