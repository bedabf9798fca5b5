"""Dependency change detection — which tracked config files changed between commits."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath

from drift_toolkit.config.models import (
    ALWAYS_TRACKED_CHECK,
    ALWAYS_TRACKED_FILES,
    DEFAULT_DEPENDENCIES,
    DependencyCategory,
)
from drift_toolkit.git.client import GitCli, GitClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeDetectionOptions:
    base_commit: str
    target_commit: str = "HEAD"


@dataclass(frozen=True)
class DependencyChange:
    """A tracked file that was added, modified or deleted."""

    file: str
    status: str
    check_type: str
    always_tracked: bool = False


@dataclass
class DependencyChangesDetection:
    """All tracked changes between two commits, grouped by check type."""

    changes: list[DependencyChange] = field(default_factory=list)
    by_check: dict[str, list[DependencyChange]] = field(default_factory=dict)
    always_tracked_changes: list[DependencyChange] = field(default_factory=list)
    total_tracked_files: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


@dataclass
class CheckTomlChanges:
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.deleted)


def _pattern_matches(path: str, pattern: str) -> bool:
    """Match a repository path against a dependency pattern.

    Patterns without a slash match the file name at any depth; patterns with a
    slash match the whole path.
    """
    if "/" in pattern:
        return fnmatchcase(path, pattern)
    return fnmatchcase(PurePosixPath(path).name, pattern)


def classify_path(
    path: str, dependencies: Sequence[DependencyCategory] = DEFAULT_DEPENDENCIES
) -> tuple[str, bool] | None:
    """Return ``(check_type, always_tracked)`` for a path, or None if untracked."""
    name = PurePosixPath(path).name
    if name in ALWAYS_TRACKED_FILES:
        return ALWAYS_TRACKED_CHECK, True
    for category in dependencies:
        if any(_pattern_matches(path, p) for p in category.patterns):
            return category.check_type, False
    return None


def detect_dependency_changes(
    repo_path: str | Path,
    options: ChangeDetectionOptions,
    *,
    git: GitClient | None = None,
    dependencies: Sequence[DependencyCategory] | None = None,
) -> DependencyChangesDetection:
    """Classify tracked configuration files that changed between two commits.

    Running this twice over the same range gives the same result. When both
    commits resolve to the same sha nothing is diffed.
    """
    git = git or GitCli()
    repo = Path(repo_path)
    categories = DEFAULT_DEPENDENCIES if dependencies is None else tuple(dependencies)

    base = git.resolve_commit(repo, options.base_commit)
    target = git.resolve_commit(repo, options.target_commit)

    detection = DependencyChangesDetection(
        total_tracked_files=len(_tracked(git.list_files(repo, target), categories))
    )
    if base == target:
        return detection

    for change in git.diff_tree(repo, base, target):
        classified = classify_path(change.path, categories)
        if classified is None:
            continue
        check_type, always = classified
        dep = DependencyChange(
            file=change.path,
            status=change.status,
            check_type=check_type,
            always_tracked=always,
        )
        detection.changes.append(dep)
        detection.by_check.setdefault(check_type, []).append(dep)
        if always:
            detection.always_tracked_changes.append(dep)

    logger.debug(
        "%d tracked change(s) between %s and %s",
        len(detection.changes),
        base[:12],
        target[:12],
    )
    return detection


def get_tracked_dependency_files(
    repo_path: str | Path,
    commit: str = "HEAD",
    *,
    git: GitClient | None = None,
    dependencies: Sequence[DependencyCategory] | None = None,
) -> dict[str, list[str]]:
    """Return tracked files at ``commit`` grouped by check type."""
    git = git or GitCli()
    categories = DEFAULT_DEPENDENCIES if dependencies is None else tuple(dependencies)
    grouped: dict[str, list[str]] = {}
    for path, check_type in _tracked(git.list_files(Path(repo_path), commit), categories):
        grouped.setdefault(check_type, []).append(path)
    return grouped


def get_check_toml_files_at_commit(
    repo_path: str | Path, commit: str = "HEAD", *, git: GitClient | None = None
) -> list[str]:
    git = git or GitCli()
    return sorted(
        f
        for f in git.list_files(Path(repo_path), commit)
        if PurePosixPath(f).name in ALWAYS_TRACKED_FILES
    )


def compare_check_toml_files(
    repo_path: str | Path,
    base_ref: str,
    target_ref: str = "HEAD",
    *,
    git: GitClient | None = None,
) -> CheckTomlChanges:
    """Diff the set of check.toml files between two refs."""
    git = git or GitCli()
    repo = Path(repo_path)
    result = CheckTomlChanges()
    for change in git.diff_tree(repo, base_ref, target_ref):
        if PurePosixPath(change.path).name not in ALWAYS_TRACKED_FILES:
            continue
        getattr(result, change.status).append(change.path)
    return result


def detect_check_toml_changes(
    repo_path: str | Path,
    options: ChangeDetectionOptions,
    *,
    git: GitClient | None = None,
) -> CheckTomlChanges:
    return compare_check_toml_files(
        repo_path, options.base_commit, options.target_commit, git=git
    )


def _tracked(
    files: Iterable[str], categories: Sequence[DependencyCategory]
) -> list[tuple[str, str]]:
    tracked = []
    for path in files:
        classified = classify_path(path, categories)
        if classified is not None:
            tracked.append((path, classified[0]))
    return tracked
