"""Organization scanner — fan out drift scans across an organization's repositories."""

from __future__ import annotations

import logging
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from fnmatch import fnmatchcase
from pathlib import Path

from drift_toolkit.actions.base import ReportAction
from drift_toolkit.config.loader import load_config
from drift_toolkit.config.models import DriftConfig
from drift_toolkit.constants import FILE_PATTERNS
from drift_toolkit.errors import (
    ConfigRepoNotFound,
    DriftError,
    GitError,
    HostingError,
    RepoNotFound,
    RepoSkippedNotScannable,
)
from drift_toolkit.git.client import GitCli, GitClient
from drift_toolkit.github.client import HostedRepo, HostingClient
from drift_toolkit.org.models import (
    OrgScanOptions,
    OrgScanResults,
    OrgScanSummary,
    RepoScanResult,
    RepoStatus,
)
from drift_toolkit.repo.metadata import is_scannable_repo
from drift_toolkit.scanner.engine import DriftEngine
from drift_toolkit.settings import DriftSettings

logger = logging.getLogger(__name__)


class OrgScanner:
    """Scans every eligible repository of an organization against its config repo.

    Workers clone, scan and delete one repository each. Only the calling
    thread touches the summary or calls the reporter.
    """

    def __init__(
        self,
        hosting: HostingClient,
        git: GitClient | None = None,
        settings: DriftSettings | None = None,
        reporter: ReportAction | None = None,
    ) -> None:
        self._hosting = hosting
        self._git = git or GitCli()
        self._settings = settings or DriftSettings()
        self._reporter = reporter

    def scan(self, org: str, options: OrgScanOptions | None = None) -> OrgScanResults:
        options = options or OrgScanOptions()
        results = OrgScanResults(
            summary=OrgScanSummary(organization=org, config_repo=options.config_repo)
        )

        work_dir = Path(self._settings.work_dir)
        work_dir.mkdir(parents=True, exist_ok=True)
        config_dir = Path(tempfile.mkdtemp(prefix="config-", dir=work_dir))
        try:
            try:
                config = self._load_org_config(org, options.config_repo, config_dir)
            except DriftError as e:
                logger.error("%s", e)
                results.error = e.kind
                results.error_message = str(e)
                return results

            try:
                candidates = self._select_repos(org, options, config, results)
            except RepoNotFound as e:
                logger.error("%s", e)
                results.error = e.kind
                results.error_message = str(e)
                return results
            except HostingError as e:
                logger.error("Listing repositories of %s failed: %s", org, e)
                results.error = e.kind
                results.error_message = str(e)
                return results

            to_scan: list[HostedRepo] = []
            for repo in candidates:
                try:
                    self._pre_clone_gate(org, repo)
                except RepoSkippedNotScannable as e:
                    self._record(results, _skipped(repo.name, e))
                except HostingError as e:
                    logger.warning("Checking %s/%s failed: %s", org, repo.name, e)
                    self._record(results, _failed(repo.name, "hosting API error", e))
                else:
                    to_scan.append(repo)

            self._run_workers(org, to_scan, config, options, results)
        finally:
            shutil.rmtree(config_dir, ignore_errors=True)

        results.repos.sort(key=lambda r: r.repo)
        s = results.summary
        logger.info(
            "Scanned %s: %d total, %d scanned, %d skipped, %d passed, %d failed",
            org,
            s.total_repos,
            s.scanned_repos,
            s.skipped_repos,
            s.passed_repos,
            s.failed_repos,
        )
        return results

    # -- setup --

    def _load_org_config(self, org: str, config_repo: str, dest: Path) -> DriftConfig:
        if not self._hosting.repo_exists(org, config_repo):
            raise ConfigRepoNotFound(f"Config repository {org}/{config_repo} not found")
        clone_dir = dest / config_repo
        try:
            self._git.clone(self._hosting.clone_url(org, config_repo), clone_dir)
        except GitError as e:
            raise ConfigRepoNotFound(
                f"Config repository {org}/{config_repo} could not be cloned: {e}"
            ) from e
        return load_config(clone_dir)

    def _select_repos(
        self,
        org: str,
        options: OrgScanOptions,
        config: DriftConfig,
        results: OrgScanResults,
    ) -> list[HostedRepo]:
        listed = [r for r in self._hosting.list_repos(org) if r.name != options.config_repo]
        patterns = tuple(config.exclude) + tuple(options.exclude)

        if options.repo_filter:
            match = next((r for r in listed if r.name == options.repo_filter), None)
            if match is None:
                raise RepoNotFound(f"Repository {org}/{options.repo_filter} not found")
            if match.archived or _excluded(match.name, patterns):
                reason = "archived" if match.archived else "excluded by pattern"
                self._record(
                    results,
                    RepoScanResult(repo=match.name, status=RepoStatus.SKIPPED, reason=reason),
                )
                return []
            return [match]

        active = [r for r in listed if not r.archived]
        candidates = [r for r in active if not _excluded(r.name, patterns)]
        logger.debug(
            "%d of %d repositories left after exclusions", len(candidates), len(active)
        )
        if options.all:
            return candidates

        since = datetime.now(timezone.utc) - timedelta(hours=options.since_hours)
        recent: list[HostedRepo] = []
        for repo in candidates:
            try:
                if self._hosting.recent_commit(org, repo.name, since):
                    recent.append(repo)
            except HostingError as e:
                logger.warning("Checking recent commits of %s/%s failed: %s", org, repo.name, e)
                self._record(results, _failed(repo.name, "hosting API error", e))
        logger.debug(
            "%d repositories with commits in the last %dh", len(recent), options.since_hours
        )
        return recent

    def _pre_clone_gate(self, org: str, repo: HostedRepo) -> None:
        missing = []
        if not any(self._hosting.has_file(org, repo.name, n) for n in FILE_PATTERNS.metadata):
            missing.append(FILE_PATTERNS.metadata[0])
        if not self._hosting.has_file(org, repo.name, FILE_PATTERNS.check_toml):
            missing.append(FILE_PATTERNS.check_toml)
        if missing:
            raise _not_scannable(tuple(missing))

    # -- fan-out --

    def _run_workers(
        self,
        org: str,
        repos: list[HostedRepo],
        config: DriftConfig,
        options: OrgScanOptions,
        results: OrgScanResults,
    ) -> None:
        if not repos:
            return
        workers = max(1, options.concurrency)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="drift-repo") as pool:
            futures = {
                pool.submit(self._scan_one, org, repo.name, config): repo.name
                for repo in repos
            }
            for future in as_completed(futures):
                outcome = future.result()
                if (
                    outcome.status is RepoStatus.FAILED
                    and outcome.results is not None
                    and self._reporter is not None
                    and not options.dry_run
                ):
                    outcome.issue = self._report(org, outcome)
                self._record(results, outcome)

    def _scan_one(self, org: str, name: str, config: DriftConfig) -> RepoScanResult:
        work_dir = Path(self._settings.work_dir)
        clone_root = Path(tempfile.mkdtemp(prefix=f"{name}-", dir=work_dir))
        clone_dir = clone_root / name
        try:
            try:
                self._git.clone(self._hosting.clone_url(org, name), clone_dir)
            except GitError as e:
                logger.warning("Clone of %s/%s failed: %s", org, name, e)
                return _failed(name, "clone failed", e)

            scannability = is_scannable_repo(clone_dir)
            if not scannability.scannable:
                raise _not_scannable(scannability.missing)

            engine = DriftEngine(
                config, git=self._git, scan_timeout_ms=self._settings.scan_timeout_ms
            )
            drift = engine.scan(clone_dir)
            status = RepoStatus.FAILED if drift.has_failures else RepoStatus.PASSED
            return RepoScanResult(
                repo=name, status=status, reason=drift.summary(), results=drift
            )
        except RepoSkippedNotScannable as e:
            return _skipped(name, e)
        except (DriftError, OSError) as e:
            logger.warning("Scan of %s/%s failed: %s", org, name, e)
            return _failed(name, "scan failed", e)
        finally:
            shutil.rmtree(clone_root, ignore_errors=True)

    def _report(self, org: str, outcome: RepoScanResult) -> str | None:
        try:
            return self._reporter.execute(org, outcome.repo, outcome.results)
        except HostingError as e:
            logger.warning("Reporting %s/%s failed: %s", org, outcome.repo, e)
            outcome.error = f"issue not created: {e}"
            return None

    @staticmethod
    def _record(results: OrgScanResults, outcome: RepoScanResult) -> None:
        results.repos.append(outcome)
        results.summary.record(outcome.status)


def _excluded(name: str, patterns: tuple[str, ...]) -> bool:
    return any(fnmatchcase(name, p) for p in patterns)


def _not_scannable(missing: tuple[str, ...]) -> RepoSkippedNotScannable:
    return RepoSkippedNotScannable(
        f"not scannable: missing {', '.join(missing)}", missing=missing
    )


def _skipped(name: str, e: RepoSkippedNotScannable) -> RepoScanResult:
    return RepoScanResult(
        repo=name, status=RepoStatus.SKIPPED, reason=str(e), error_kind=e.kind
    )


def _failed(name: str, reason: str, e: Exception) -> RepoScanResult:
    return RepoScanResult(
        repo=name,
        status=RepoStatus.FAILED,
        reason=reason,
        error=str(e),
        error_kind=e.kind if isinstance(e, DriftError) else None,
    )
